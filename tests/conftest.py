"""
Configuração global de testes - Fixtures compartilhadas.

Driver falso, sink que grava notificacoes e sleep controlavel para
exercitar SessionManager e SendPipeline sem rede e sem esperar timers.
"""

import asyncio
from typing import Any, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest

from app.services.whatsapp_driver.base import (
    ChannelDriver,
    DriverEvent,
    DriverEventType,
    SessionState,
)
from app.services.whatsapp_driver.credentials import CredentialStore


# =============================================================================
# FAKES
# =============================================================================


class FakeDriver(ChannelDriver):
    """
    Driver com metodos AsyncMock.

    Por padrao: conectado, todo destinatario registrado, send devolve "msg-1".
    """

    async def initialize(self) -> None: ...
    async def get_state(self) -> Optional[SessionState]: ...
    async def is_registered_recipient(self, address: str) -> bool: ...
    async def send(self, address: str, text: str) -> str: ...
    async def logout(self) -> None: ...
    async def destroy(self) -> None: ...

    def __init__(self):
        super().__init__()
        self.initialize = AsyncMock(return_value=None)
        self.get_state = AsyncMock(return_value=SessionState.CONNECTED)
        self.is_registered_recipient = AsyncMock(return_value=True)
        self.send = AsyncMock(return_value="msg-1")
        self.logout = AsyncMock(return_value=None)
        self.destroy = AsyncMock(return_value=None)

    def emit(self, event_type: DriverEventType, payload: Optional[str] = None) -> None:
        """Simula evento vindo da rede."""
        self._emit(DriverEvent(event_type, payload))


class RecordingSink:
    """NotificationSink que guarda tudo que foi emitido."""

    def __init__(self):
        self.events: list[tuple[str, Any]] = []

    def emit(self, event: str, payload: Any) -> None:
        self.events.append((event, payload))

    @property
    def statuses(self) -> list[str]:
        return [payload for event, payload in self.events if event == "status"]


class FakeSleep:
    """
    Substituto de asyncio.sleep que grava os delays e retorna na hora.

    block_after=N faz a N-esima chamada ficar pendente para sempre,
    interrompendo loops de retry infinitos.
    """

    def __init__(self, block_after: Optional[int] = None):
        self.delays: list[float] = []
        self.block_after = block_after

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)
        if self.block_after is not None and len(self.delays) >= self.block_after:
            await asyncio.Event().wait()


class FakeClock:
    """Relogio simulado: sleep avanca o tempo sem esperar."""

    def __init__(self):
        self.now = 0.0
        self.sleeps: list[float] = []

    async def sleep(self, delay: float) -> None:
        self.sleeps.append(delay)
        self.now += delay


def criar_mock_http_response(
    status_code: int = 200,
    json_data: Any = None,
    text: str = "",
) -> MagicMock:
    """
    Cria mock de resposta HTTP (httpx.Response).

    Args:
        status_code: HTTP status code
        json_data: Dados JSON a retornar
        text: Texto raw da resposta
    """
    mock = MagicMock()
    mock.status_code = status_code
    mock.json.return_value = json_data if json_data is not None else {}
    mock.text = text
    mock.content = b"{}" if json_data is not None or not text else text.encode()
    return mock


# =============================================================================
# FIXTURES
# =============================================================================


@pytest.fixture
def fake_driver():
    return FakeDriver()


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def credentials(tmp_path):
    """CredentialStore num diretorio temporario."""
    return CredentialStore(tmp_path / "auth_session")


@pytest.fixture
def fake_sleep():
    return FakeSleep()


@pytest.fixture
def fake_sleep_factory():
    return FakeSleep


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def mock_http_response_factory():
    """
    Factory de respostas HTTP mockadas.

    Uso:
        def test_algo(mock_http_response_factory):
            resp = mock_http_response_factory(200, {"key": {"id": "x"}})
    """
    return criar_mock_http_response


@pytest.fixture
def settle():
    """
    Deixa o event loop rodar tarefas pendentes (consumer, timers).

    Uso:
        await settle()
    """

    async def _settle(rounds: int = 100) -> None:
        for _ in range(rounds):
            await asyncio.sleep(0)

    return _settle
