"""
Dependencias FastAPI.

O gateway vive em app.state.gateway (montado no lifespan ou injetado
em create_app nos testes).

Uso em endpoints:
    @router.get("/api/status")
    async def status(session: SessionManager = Depends(get_session_manager)):
        ...
"""
from fastapi import Request

from app.core.exceptions import ConfigurationError
from app.services.gateway import Gateway
from app.services.notifications import EventBroadcaster
from app.services.outbound.pipeline import SendPipeline
from app.services.session.manager import SessionManager
from app.services.whatsapp_driver.base import ChannelDriver


def get_gateway(request: Request) -> Gateway:
    gateway = getattr(request.app.state, "gateway", None)
    if gateway is None:
        raise ConfigurationError("Gateway nao inicializado")
    return gateway


def get_session_manager(request: Request) -> SessionManager:
    return get_gateway(request).session


def get_send_pipeline(request: Request) -> SendPipeline:
    return get_gateway(request).sender


def get_notifications(request: Request) -> EventBroadcaster:
    return get_gateway(request).notifications


def get_driver(request: Request) -> ChannelDriver:
    return get_gateway(request).driver
