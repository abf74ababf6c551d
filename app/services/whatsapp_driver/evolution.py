"""
Driver de canal sobre a Evolution API.

Documentação: https://doc.evolution-api.com/

A Evolution mantem a sessao WhatsApp Web e avisa mudancas por webhook
(POST /webhook/evolution). O driver traduz esses webhooks em DriverEvent.

A credencial local guarda {instance, token} da instancia criada. Sem ela,
initialize() recria a instancia do zero, o que exige novo QR code.
"""

import logging
from typing import Any, Dict, Optional

import httpx

from app.core.exceptions import ConfigurationError, ExternalAPIError
from app.services.http_client import close_http_client, get_http_client
from app.services.recipient import address_to_number
from app.services.whatsapp_driver.base import (
    ChannelDriver,
    DriverEvent,
    DriverEventType,
    SessionState,
)
from app.services.whatsapp_driver.credentials import CredentialStore

logger = logging.getLogger(__name__)

SERVICE_NAME = "evolution"

# connectionState da Evolution -> estado da sessao
CONNECTION_STATES = {
    "open": SessionState.CONNECTED,
    "connecting": SessionState.AWAITING_AUTHENTICATION,
    "close": SessionState.DISCONNECTED,
}

# statusReason (codigos de desconexao do Baileys) -> motivo
DISCONNECT_REASONS = {
    401: "LOGOUT",
    403: "BANNED",
}
BAD_SESSION_STATUS = 500

WEBHOOK_EVENTS = [
    "QRCODE_UPDATED",
    "CONNECTION_UPDATE",
    "LOGOUT_INSTANCE",
    "MESSAGES_UPSERT",
]


class EvolutionDriver(ChannelDriver):
    """Driver WhatsApp via Evolution API (self-hosted)."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        instance_name: str,
        credentials: CredentialStore,
        webhook_url: str = "",
        executable_path: Optional[str] = None,
        timeout: float = 30,
    ):
        super().__init__()
        if not base_url:
            raise ConfigurationError("EVOLUTION_API_URL nao configurada")

        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.instance_name = instance_name
        self.credentials = credentials
        self.webhook_url = webhook_url
        self.executable_path = executable_path
        self.timeout = timeout

    @property
    def headers(self) -> dict:
        """Headers padrão para requisições."""
        return {
            "apikey": self.api_key,
            "Content-Type": "application/json",
        }

    async def _request(
        self,
        method: str,
        path: str,
        json: Optional[dict] = None,
        allow_404: bool = False,
    ) -> Any:
        """
        Executa requisicao na Evolution API.

        Raises:
            ExternalAPIError: erro HTTP ou de rede
        """
        client = await get_http_client()
        url = f"{self.base_url}{path}"
        try:
            response = await client.request(
                method, url, headers=self.headers, json=json, timeout=self.timeout
            )
        except httpx.HTTPError as e:
            raise ExternalAPIError(
                f"Evolution API indisponivel: {e}", service=SERVICE_NAME, original_error=e
            ) from e

        if allow_404 and response.status_code == 404:
            return None

        if response.status_code >= 400:
            raise ExternalAPIError(
                f"Evolution API error: HTTP {response.status_code}",
                service=SERVICE_NAME,
                details=response.text,
            )

        if not response.content:
            return {}
        return response.json()

    # ------------------------------------------------------------------
    # Ciclo de vida
    # ------------------------------------------------------------------

    async def initialize(self) -> None:
        """
        Cria ou reconecta a instancia.

        Sem credencial local valida (ausente, corrompida ou de outra
        instancia): remove instancia antiga e cria uma nova.
        Com credencial: pede reconexao. QR code devolvido vira qr-issued.
        """
        stored = self.credentials.read()
        if not stored or stored.get("instance") != self.instance_name:
            data = await self._create_instance()
        else:
            logger.info(f"[Evolution] Reconectando instancia {self.instance_name}")
            data = await self._request("GET", f"/instance/connect/{self.instance_name}")

        qr_token = _extract_qr_token(data)
        if qr_token:
            self._emit(DriverEvent(DriverEventType.QR_ISSUED, qr_token))

    async def _create_instance(self) -> Dict[str, Any]:
        logger.info(f"[Evolution] Recriando instancia {self.instance_name}")
        await self._request("DELETE", f"/instance/delete/{self.instance_name}", allow_404=True)

        payload: Dict[str, Any] = {
            "instanceName": self.instance_name,
            "qrcode": True,
            "integration": "WHATSAPP-BAILEYS",
        }
        if self.webhook_url:
            payload["webhook"] = {
                "enabled": True,
                "url": self.webhook_url,
                "webhookByEvents": False,
                "events": WEBHOOK_EVENTS,
            }

        data = await self._request("POST", "/instance/create", json=payload)

        token = data.get("hash")
        if isinstance(token, dict):
            token = token.get("apikey")
        self.credentials.write({"instance": self.instance_name, "token": token})
        return data

    async def logout(self) -> None:
        await self._request("DELETE", f"/instance/logout/{self.instance_name}")
        logger.info(f"[Evolution] Logout da instancia {self.instance_name}")

    async def destroy(self) -> None:
        await close_http_client()

    # ------------------------------------------------------------------
    # Leitura e envio
    # ------------------------------------------------------------------

    async def get_state(self) -> Optional[SessionState]:
        data = await self._request(
            "GET", f"/instance/connectionState/{self.instance_name}", allow_404=True
        )
        if not data:
            return None
        state = (data.get("instance") or data).get("state")
        return CONNECTION_STATES.get(state)

    async def is_registered_recipient(self, address: str) -> bool:
        number = address_to_number(address)
        data = await self._request(
            "POST",
            f"/chat/whatsappNumbers/{self.instance_name}",
            json={"numbers": [number]},
        )
        return any(entry.get("exists") for entry in data or [])

    async def send(self, address: str, text: str) -> str:
        data = await self._request(
            "POST",
            f"/message/sendText/{self.instance_name}",
            json={"number": address_to_number(address), "text": text},
        )
        message_id = (data.get("key") or {}).get("id")
        if not message_id:
            raise ExternalAPIError(
                "Evolution API nao retornou ID da mensagem", service=SERVICE_NAME, details=data
            )
        return message_id

    # ------------------------------------------------------------------
    # Webhook
    # ------------------------------------------------------------------

    def handle_webhook(self, payload: Dict[str, Any]) -> Optional[DriverEvent]:
        """
        Traduz webhook da Evolution em evento do driver.

        Aceita nomes de evento nos dois formatos (CONNECTION_UPDATE e
        connection.update).

        Returns:
            Evento emitido, ou None se o webhook foi ignorado
        """
        instance = payload.get("instance")
        if instance and instance != self.instance_name:
            logger.debug(f"[Evolution] Webhook de outra instancia ignorado: {instance}")
            return None

        name = str(payload.get("event", "")).lower().replace("_", ".")
        data = payload.get("data") or {}
        event = _translate_webhook(name, data)

        if event is not None:
            logger.info(f"[Evolution] Webhook {name} -> {event.type.value}")
            self._emit(event)
        return event


def _extract_qr_token(data: Optional[Dict[str, Any]]) -> Optional[str]:
    """QR vem em data.qrcode.code (create) ou data.code (connect)."""
    if not data:
        return None
    qr = data.get("qrcode")
    if isinstance(qr, dict):
        return qr.get("code")
    return data.get("code")


def _translate_webhook(name: str, data: Dict[str, Any]) -> Optional[DriverEvent]:
    if name == "qrcode.updated":
        token = _extract_qr_token(data)
        return DriverEvent(DriverEventType.QR_ISSUED, token) if token else None

    if name == "connection.update":
        state = data.get("state")
        if state == "open":
            return DriverEvent(DriverEventType.READY)
        if state == "close":
            status = data.get("statusReason")
            if status == BAD_SESSION_STATUS:
                return DriverEvent(DriverEventType.AUTH_FAILED, "bad session")
            reason = DISCONNECT_REASONS.get(status, f"connection closed ({status})")
            return DriverEvent(DriverEventType.DISCONNECTED, reason)
        if state == "refused":
            return DriverEvent(DriverEventType.ERROR, "connection refused")
        return None

    if name == "logout.instance":
        return DriverEvent(DriverEventType.DISCONNECTED, "LOGOUT")

    if name == "messages.upsert":
        message = data.get("message") or {}
        body = message.get("conversation") or (message.get("extendedTextMessage") or {}).get("text")
        logger.info(f"[Evolution] Mensagem recebida: {body}")
        return None

    return None
