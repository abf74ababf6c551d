"""
Rotas da sessao WhatsApp e de envio.

Endpoints:
- GET  /api/status        - Estado da sessao
- GET  /api/qr            - QR code pendente (data URL)
- POST /api/send-message  - Envio individual
- POST /api/send-bulk     - Envio em massa (sequencial, com intervalo)
- POST /api/disconnect    - Logout da sessao
- GET  /api/events        - Stream SSE de 'qr' e 'status'
"""

import logging
from typing import Any, List, Optional

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse
from pydantic import BaseModel

from app.api.deps import get_notifications, get_send_pipeline, get_session_manager
from app.core.exceptions import ChannelError
from app.services.notifications import EventBroadcaster
from app.services.outbound.pipeline import SendPipeline
from app.services.session.manager import SessionManager

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["WhatsApp"])


class SendMessageRequest(BaseModel):
    recipient: Any = None
    message: Any = None


class SendBulkRequest(BaseModel):
    numbers: Any = None
    message: Any = None


def _as_text(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


def _as_recipient(value: Any) -> Optional[str]:
    """Aceita numero como string ou inteiro; qualquer outro tipo vira None."""
    if isinstance(value, bool) or not isinstance(value, (str, int)):
        return None
    return str(value)


@router.get("/status")
async def get_status(session: SessionManager = Depends(get_session_manager)):
    """Estado atual da sessao."""
    try:
        status = await session.get_status()
    except Exception as e:
        logger.error(f"Erro ao obter status: {e}")
        raise ChannelError("Failed to get status", details=str(e)) from e
    return {"status": status.value}


@router.get("/qr")
async def get_qr(session: SessionManager = Depends(get_session_manager)):
    """QR code pendente, ou null se a sessao nao aguarda autenticacao."""
    try:
        qr = session.get_challenge()
    except Exception as e:
        logger.error(f"Erro ao gerar QR code: {e}")
        raise ChannelError("Failed to generate QR code", details=str(e)) from e
    return {"qr": qr}


@router.post("/send-message")
async def send_message(
    body: Optional[SendMessageRequest] = None,
    sender: SendPipeline = Depends(get_send_pipeline),
):
    """Envia mensagem para um destinatario."""
    body = body or SendMessageRequest()
    recipient = _as_recipient(body.recipient)
    result = await sender.send_one(recipient, _as_text(body.message))

    if not result.success:
        raise ChannelError("Failed to send message", details=result.error)

    return {"success": True, "messageId": result.message_id, "recipient": recipient}


@router.post("/send-bulk")
async def send_bulk(
    body: Optional[SendBulkRequest] = None,
    sender: SendPipeline = Depends(get_send_pipeline),
):
    """
    Envia a mesma mensagem para varios numeros.

    A resposta so volta apos o ultimo envio (3-5s entre mensagens).
    Entradas que nao sao numero nem string viram invalid_recipient.
    """
    body = body or SendBulkRequest()
    numbers: List[str] = []
    if isinstance(body.numbers, list):
        numbers = [_as_recipient(n) or "" for n in body.numbers]
    results = await sender.send_many(numbers, _as_text(body.message))
    return {"results": [r.to_dict() for r in results]}


@router.post("/disconnect")
async def disconnect(session: SessionManager = Depends(get_session_manager)):
    """Logout da sessao WhatsApp."""
    try:
        await session.disconnect()
    except Exception as e:
        logger.error(f"Erro ao desconectar: {e}")
        raise ChannelError("Failed to disconnect", details=str(e)) from e
    return {"success": True, "message": "Disconnecting..."}


@router.get("/events")
async def stream_events(notifications: EventBroadcaster = Depends(get_notifications)):
    """
    Stream SSE de notificacoes da sessao.

    Eventos emitidos:
    - qr: data URL do QR code
    - status: "QR Code Ready" | "Connected" | "Authentication Failure" |
      "Disconnected" | "Error"
    """
    return StreamingResponse(
        notifications.stream(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )
