"""
WhatsApp Gateway - API Principal
"""
import asyncio
import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.error_handlers import register_exception_handlers
from app.api.routes import health, webhook, whatsapp
from app.core.config import settings
from app.core.logging import setup_logging
from app.services.gateway import Gateway, build_gateway

setup_logging(settings.ENVIRONMENT)
logger = logging.getLogger(__name__)


def _force_exit(code: int) -> None:
    os._exit(code)


async def shutdown_gateway(gateway: Gateway, timeout: float) -> None:
    """
    Destroi o driver com prazo maximo.

    Timeout ou falha no destroy encerram o processo com codigo 1.
    """
    try:
        await asyncio.wait_for(gateway.session.shutdown(), timeout=timeout)
    except asyncio.TimeoutError:
        logger.error(f"Shutdown excedeu {timeout:.0f}s. Forcando saida.")
        _force_exit(1)
    except Exception as e:
        logger.error(f"Erro ao destruir cliente WhatsApp: {e}")
        _force_exit(1)
    else:
        logger.info("Cliente WhatsApp destruido.")


def create_app(gateway: Optional[Gateway] = None) -> FastAPI:
    """
    Cria a aplicacao.

    Args:
        gateway: Gateway pronto (testes). Default: montado no startup.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Gerencia startup e shutdown da aplicação."""
        if getattr(app.state, "gateway", None) is None:
            app.state.gateway = build_gateway(settings)
        logger.info(f"Iniciando {settings.APP_NAME} na porta {settings.PORT}...")
        await app.state.gateway.session.start()
        yield
        logger.info(f"Encerrando {settings.APP_NAME}...")
        await shutdown_gateway(app.state.gateway, settings.SHUTDOWN_TIMEOUT_SECONDS)

    app = FastAPI(
        title=settings.APP_NAME,
        description="Gateway HTTP para envio de mensagens WhatsApp",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.gateway = gateway

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_methods=["GET", "POST"],
        allow_headers=["Content-Type"],
    )

    register_exception_handlers(app)

    app.include_router(health.router, tags=["Health"])
    app.include_router(whatsapp.router)
    app.include_router(webhook.router)

    return app


app = create_app()


def run() -> None:
    """Entry point: sobe o servidor uvicorn."""
    import uvicorn

    uvicorn.run("app.main:app", host="0.0.0.0", port=settings.PORT)
