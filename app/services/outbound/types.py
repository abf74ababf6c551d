"""
Tipos do pipeline de envio.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class SendErrorKind(str, Enum):
    """Motivo de falha de um envio individual."""

    INVALID_RECIPIENT = "invalid_recipient"
    NOT_READY = "not_ready"
    UNREGISTERED_RECIPIENT = "unregistered_recipient"
    SEND_FAILED = "send_failed"


@dataclass(frozen=True)
class SendResult:
    """
    Resultado do envio para um destinatario.

    Attributes:
        to: Destinatario como informado pelo chamador
        success: True se o driver aceitou a mensagem
        message_id: ID da mensagem na rede quando success
        error: Mensagem de erro quando falhou
        error_kind: Categoria da falha
    """

    to: str
    success: bool
    message_id: Optional[str] = None
    error: Optional[str] = None
    error_kind: Optional[SendErrorKind] = None

    @classmethod
    def sent(cls, to: str, message_id: str) -> "SendResult":
        return cls(to=to, success=True, message_id=message_id)

    @classmethod
    def failed(cls, to: str, kind: SendErrorKind, error: str) -> "SendResult":
        return cls(to=to, success=False, error=error, error_kind=kind)

    def to_dict(self) -> dict:
        """Formato da API (camelCase)."""
        data = {"to": self.to, "success": self.success}
        if self.success:
            data["messageId"] = self.message_id
        else:
            data["error"] = self.error
            data["errorKind"] = self.error_kind.value if self.error_kind else None
        return data
