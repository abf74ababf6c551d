"""
Webhook da Evolution API.

Recebe eventos de conexao/QR e repassa ao driver, que os traduz em
eventos de ciclo de vida para o SessionManager.
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, Request

from app.api.deps import get_driver
from app.services.whatsapp_driver.base import ChannelDriver
from app.services.whatsapp_driver.evolution import EvolutionDriver

router = APIRouter(prefix="/webhook", tags=["Webhook"])
logger = logging.getLogger(__name__)


@router.post("/evolution")
async def evolution_webhook(request: Request, driver: ChannelDriver = Depends(get_driver)):
    """Recebe webhooks da Evolution API."""
    if not isinstance(driver, EvolutionDriver):
        raise HTTPException(status_code=404, detail="Evolution driver nao configurado")

    try:
        payload = await request.json()
    except ValueError:
        raise HTTPException(status_code=400, detail="JSON invalido")

    event = driver.handle_webhook(payload if isinstance(payload, dict) else {})
    return {"received": True, "event": event.type.value if event else None}
