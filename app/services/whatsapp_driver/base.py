"""
Contrato do driver de canal WhatsApp.

O driver e quem de fato fala com a rede (handshake, protocolo, automacao).
O gerenciador de sessao e o pipeline de envio dependem apenas desta
interface, o que permite trocar o backend ou usar um driver falso em testes.

Eventos de ciclo de vida sao empurrados para um unico assinante via
subscribe(); o gerenciador de sessao os consome em fila.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional


class SessionState(str, Enum):
    """Estado da sessao WhatsApp."""

    DISCONNECTED = "disconnected"
    AWAITING_AUTHENTICATION = "awaiting_authentication"
    CONNECTED = "connected"
    AUTH_FAILURE = "auth_failure"
    ERROR = "error"


class DriverEventType(str, Enum):
    """Sinais de ciclo de vida emitidos pelo driver."""

    QR_ISSUED = "qr-issued"
    READY = "ready"
    AUTH_FAILED = "auth-failed"
    DISCONNECTED = "disconnected"
    ERROR = "error"


@dataclass(frozen=True)
class DriverEvent:
    """
    Evento do driver.

    payload depende do tipo:
    - qr-issued: token do desafio (conteudo do QR)
    - disconnected: motivo (ex: LOGOUT, BANNED)
    - auth-failed / error: mensagem descritiva
    """

    type: DriverEventType
    payload: Optional[str] = None


EventCallback = Callable[[DriverEvent], None]


class ChannelDriver(ABC):
    """
    Interface abstrata do driver de canal.

    Metodos de ciclo de vida (initialize, logout, destroy) so devem ser
    chamados pelo SessionManager. O pipeline de envio usa apenas
    get_state, is_registered_recipient e send.
    """

    def __init__(self):
        self._callback: Optional[EventCallback] = None

    def subscribe(self, callback: EventCallback) -> None:
        """Registra o assinante unico dos eventos do driver."""
        self._callback = callback

    def _emit(self, event: DriverEvent) -> None:
        """Entrega evento ao assinante (descarta se ninguem assinou)."""
        if self._callback is not None:
            self._callback(event)

    @abstractmethod
    async def initialize(self) -> None:
        """
        Inicia (ou retoma) a sessao com a rede.

        Raises:
            Exception: qualquer falha de inicializacao
        """
        pass

    @abstractmethod
    async def get_state(self) -> Optional[SessionState]:
        """
        Consulta o estado ao vivo da sessao.

        Returns:
            SessionState, ou None se o backend nao souber informar
        """
        pass

    @abstractmethod
    async def is_registered_recipient(self, address: str) -> bool:
        """
        Verifica se o endereco existe na rede.

        Args:
            address: Endereco canonico (ex: 15550001111@c.us)
        """
        pass

    @abstractmethod
    async def send(self, address: str, text: str) -> str:
        """
        Envia mensagem de texto.

        Args:
            address: Endereco canonico do destinatario
            text: Texto da mensagem

        Returns:
            ID da mensagem na rede
        """
        pass

    @abstractmethod
    async def logout(self) -> None:
        """Encerra a sessao autenticada na rede."""
        pass

    @abstractmethod
    async def destroy(self) -> None:
        """Libera os recursos do driver."""
        pass
