"""
Exception handlers para FastAPI.

Resposta padrao: {"error": <mensagem>, "details": <detalhes>}
"""

import logging
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.core.exceptions import (
    GatewayException,
    ValidationError,
    ExternalAPIError,
)

logger = logging.getLogger(__name__)

INVALID_BODY_MESSAGE = "Invalid request body"


async def gateway_exception_handler(request: Request, exc: GatewayException) -> JSONResponse:
    """Handler para todas as exceptions customizadas."""
    status_code = 500
    error_type = exc.__class__.__name__

    if isinstance(exc, ValidationError):
        status_code = 400
    elif isinstance(exc, ExternalAPIError):
        status_code = 502

    if status_code >= 500:
        logger.error(
            f"{error_type}: {exc.message}",
            extra={"error_type": error_type, "path": request.url.path},
        )

    return JSONResponse(
        status_code=status_code,
        content={"error": exc.message, "details": exc.details},
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Corpo fora do formato esperado (ex: JSON que nao e objeto)."""
    return JSONResponse(
        status_code=400,
        content={"error": INVALID_BODY_MESSAGE, "details": jsonable_encoder(exc.errors())},
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handler para exceptions nao tratadas."""
    logger.exception(f"Erro nao tratado: {exc}", extra={"path": request.url.path})

    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error", "details": None},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """
    Registra os exception handlers no app FastAPI.

    Usage:
        app = FastAPI()
        register_exception_handlers(app)
    """
    app.add_exception_handler(GatewayException, gateway_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, generic_exception_handler)
