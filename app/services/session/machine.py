"""
Maquina de estados da sessao WhatsApp.

Funcao pura transition(snapshot, event) -> (snapshot, actions). Nao faz IO:
quem executa as acoes (notificar, apagar credencial, agendar nova
inicializacao) e o SessionManager. Assim a maquina e testavel sem driver.

Dois mecanismos de retry coexistem:
- inicializacao: backoff exponencial limitado (20s, 40s, 60s) e depois
  cooldown de 30 min com contador zerado;
- queda apos conexao: nova inicializacao com delay fixo de 10s, sem limite.
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple, Union

from app.core.constants import (
    CREDENTIAL_INVALIDATING_REASONS,
    INIT_BACKOFF_BASE_SECONDS,
    INIT_BACKOFF_MAX_SECONDS,
    INIT_COOLDOWN_SECONDS,
    INIT_MAX_RETRIES,
    RECONNECT_DELAY_SECONDS,
    STATUS_AUTH_FAILURE,
    STATUS_CONNECTED,
    STATUS_DISCONNECTED,
    STATUS_ERROR,
)
from app.services.whatsapp_driver.base import DriverEvent, DriverEventType, SessionState


class InitEventType(str, Enum):
    """Resultado de uma chamada a driver.initialize()."""

    SUCCEEDED = "init-succeeded"
    FAILED = "init-failed"


@dataclass(frozen=True)
class InitEvent:
    type: InitEventType
    error: Optional[str] = None


SessionEvent = Union[DriverEvent, InitEvent]


@dataclass(frozen=True)
class SessionSnapshot:
    """
    Estado completo da sessao.

    challenge so existe enquanto state == AWAITING_AUTHENTICATION.
    retries conta apenas falhas de inicializacao.
    """

    state: SessionState = SessionState.DISCONNECTED
    challenge: Optional[str] = None
    retries: int = 0


# Acoes -----------------------------------------------------------------------


@dataclass(frozen=True)
class NotifyStatus:
    label: str


@dataclass(frozen=True)
class PublishChallenge:
    """Codificar o token e notificar 'qr' + status 'QR Code Ready'."""

    token: str


@dataclass(frozen=True)
class ClearCredentials:
    reason: str


@dataclass(frozen=True)
class ScheduleInitialize:
    delay_seconds: float
    attempt: Optional[int] = None  # None = reconexao ou cooldown


Action = Union[NotifyStatus, PublishChallenge, ClearCredentials, ScheduleInitialize]
Transition = Tuple[SessionSnapshot, List[Action]]


def init_backoff_delay(attempt: int) -> float:
    """Delay da tentativa N (1-based): min(60, 10 * 2^N)."""
    return min(INIT_BACKOFF_MAX_SECONDS, INIT_BACKOFF_BASE_SECONDS * 2 ** attempt)


# Handlers --------------------------------------------------------------------


def _on_qr_issued(snapshot: SessionSnapshot, event: DriverEvent) -> Transition:
    token = event.payload or ""
    return (
        replace(snapshot, state=SessionState.AWAITING_AUTHENTICATION, challenge=token),
        [PublishChallenge(token)],
    )


def _on_ready(snapshot: SessionSnapshot, event: DriverEvent) -> Transition:
    return (
        SessionSnapshot(state=SessionState.CONNECTED, challenge=None, retries=0),
        [NotifyStatus(STATUS_CONNECTED)],
    )


def _on_auth_failed(snapshot: SessionSnapshot, event: DriverEvent) -> Transition:
    return (
        replace(snapshot, state=SessionState.AUTH_FAILURE, challenge=None),
        [
            ClearCredentials("auth_failure"),
            NotifyStatus(STATUS_AUTH_FAILURE),
            ScheduleInitialize(RECONNECT_DELAY_SECONDS),
        ],
    )


def _on_disconnected(snapshot: SessionSnapshot, event: DriverEvent) -> Transition:
    reason = (event.payload or "").strip().lower()
    actions: List[Action] = []
    if reason in CREDENTIAL_INVALIDATING_REASONS:
        actions.append(ClearCredentials(reason))
    actions.append(NotifyStatus(STATUS_DISCONNECTED))
    actions.append(ScheduleInitialize(RECONNECT_DELAY_SECONDS))
    return replace(snapshot, state=SessionState.DISCONNECTED, challenge=None), actions


def _on_error(snapshot: SessionSnapshot, event: DriverEvent) -> Transition:
    return (
        replace(snapshot, state=SessionState.ERROR, challenge=None),
        [NotifyStatus(STATUS_ERROR)],
    )


def _on_init_succeeded(snapshot: SessionSnapshot, event: InitEvent) -> Transition:
    return replace(snapshot, retries=0), []


def _on_init_failed(snapshot: SessionSnapshot, event: InitEvent) -> Transition:
    failed = replace(snapshot, state=SessionState.ERROR, challenge=None)

    if snapshot.retries < INIT_MAX_RETRIES:
        attempt = snapshot.retries + 1
        return (
            replace(failed, retries=attempt),
            [
                NotifyStatus(STATUS_ERROR),
                ScheduleInitialize(init_backoff_delay(attempt), attempt=attempt),
            ],
        )

    # Tentativas esgotadas: credencial pode estar corrompida
    return (
        replace(failed, retries=0),
        [
            NotifyStatus(STATUS_ERROR),
            ClearCredentials("max_retries"),
            ScheduleInitialize(INIT_COOLDOWN_SECONDS),
        ],
    )


_HANDLERS: Dict[Enum, Callable[..., Transition]] = {
    DriverEventType.QR_ISSUED: _on_qr_issued,
    DriverEventType.READY: _on_ready,
    DriverEventType.AUTH_FAILED: _on_auth_failed,
    DriverEventType.DISCONNECTED: _on_disconnected,
    DriverEventType.ERROR: _on_error,
    InitEventType.SUCCEEDED: _on_init_succeeded,
    InitEventType.FAILED: _on_init_failed,
}


def transition(snapshot: SessionSnapshot, event: SessionEvent) -> Transition:
    """
    Aplica um evento ao estado da sessao.

    Args:
        snapshot: Estado atual
        event: Evento do driver ou resultado de inicializacao

    Returns:
        (novo estado, acoes a executar na ordem)
    """
    handler = _HANDLERS.get(event.type)
    if handler is None:
        return snapshot, []
    return handler(snapshot, event)
