"""
Exceptions customizadas do gateway.
"""
from typing import Any, Optional


class GatewayException(Exception):
    """Base exception para todos os erros do sistema."""

    def __init__(
        self,
        message: str,
        details: Any = None,
        original_error: Optional[Exception] = None
    ):
        self.message = message
        self.details = details
        self.original_error = original_error
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} - {self.details}"
        return self.message


class ValidationError(GatewayException):
    """Erro de validacao de dados de entrada."""
    pass


class ChannelError(GatewayException):
    """Falha numa operacao da sessao WhatsApp (status, logout, QR)."""
    pass


class ExternalAPIError(GatewayException):
    """Erro de API externa (backend do driver)."""

    def __init__(
        self,
        message: str,
        service: str,
        details: Any = None,
        original_error: Optional[Exception] = None
    ):
        self.service = service
        super().__init__(message, details, original_error)


class ConfigurationError(GatewayException):
    """Erro de configuracao do sistema."""
    pass
