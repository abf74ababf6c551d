"""
Gerenciador da sessao WhatsApp.

Dono exclusivo do driver: unico componente que chama initialize, logout e
destroy. Eventos do driver e resultados de inicializacao entram numa fila
e sao aplicados um a um pela maquina de estados (machine.transition);
as acoes resultantes sao executadas aqui.

Ciclo de vida:
    manager = SessionManager(driver, credentials, sink)
    await manager.start()      # apaga credencial e agenda inicializacao
    ...
    await manager.shutdown()   # cancela timers e destroi o driver
"""

import asyncio
import logging
from typing import Awaitable, Callable, List, Optional, Set

from app.core.constants import (
    EVENT_QR,
    EVENT_STATUS,
    STATUS_DISCONNECTED,
    STATUS_ERROR,
    STATUS_QR_READY,
)
from app.services.notifications import NotificationSink
from app.services.session.challenge import encode_challenge
from app.services.session.machine import (
    Action,
    ClearCredentials,
    InitEvent,
    InitEventType,
    NotifyStatus,
    PublishChallenge,
    ScheduleInitialize,
    SessionEvent,
    SessionSnapshot,
    transition,
)
from app.services.whatsapp_driver.base import ChannelDriver, SessionState
from app.services.whatsapp_driver.credentials import CredentialStore

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


class SessionManager:
    """Maquina de estados da sessao com retry/backoff."""

    def __init__(
        self,
        driver: ChannelDriver,
        credentials: CredentialStore,
        sink: NotificationSink,
        encoder: Callable[[str], str] = encode_challenge,
        sleep: Sleep = asyncio.sleep,
        console_renderer: Optional[Callable[[str], str]] = None,
    ):
        self._driver = driver
        self._credentials = credentials
        self._sink = sink
        self._encoder = encoder
        self._console_renderer = console_renderer
        self._sleep = sleep

        self._snapshot = SessionSnapshot()
        self._events: asyncio.Queue = asyncio.Queue()
        self._consumer: Optional[asyncio.Task] = None
        self._timers: Set[asyncio.Task] = set()

        driver.subscribe(self._enqueue)

    # ------------------------------------------------------------------
    # Estado
    # ------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        """Estado rastreado localmente."""
        return self._snapshot.state

    @property
    def retries(self) -> int:
        return self._snapshot.retries

    @property
    def pending_timers(self) -> int:
        return len(self._timers)

    async def get_status(self) -> SessionState:
        """
        Estado da sessao.

        Consulta o driver; se a consulta falhar ou nao trouxer resposta,
        usa o estado rastreado localmente. Nunca levanta excecao.
        """
        try:
            live = await self._driver.get_state()
        except Exception as e:
            logger.warning(f"[Session] Falha ao consultar estado do driver: {e}")
            return self._snapshot.state
        return live or self._snapshot.state

    def get_challenge(self) -> Optional[str]:
        """
        QR code pendente como data URL.

        Retorna None fora de awaiting_authentication, mesmo que um token
        antigo ainda esteja em memoria.
        """
        snapshot = self._snapshot
        if snapshot.state != SessionState.AWAITING_AUTHENTICATION or not snapshot.challenge:
            return None
        return self._encoder(snapshot.challenge)

    # ------------------------------------------------------------------
    # Ciclo de vida
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """
        Inicia a sessao a partir do zero.

        A credencial salva e sempre apagada: nao ha retomada de sessao,
        todo start exige novo QR.
        """
        if self._consumer is not None:
            return

        self._credentials.clear()
        logger.info("[Session] Credencial anterior removida. Iniciando conexao WhatsApp...")

        self._consumer = asyncio.create_task(self._consume(), name="session-events")
        self._schedule_initialize(0)

    async def disconnect(self) -> None:
        """
        Faz logout da sessao.

        Se o logout falhar, a excecao sobe para o chamador e o estado nao
        e alterado.
        """
        await self._driver.logout()

        previous = self._snapshot.state
        self._snapshot = SessionSnapshot(
            state=SessionState.DISCONNECTED,
            challenge=None,
            retries=self._snapshot.retries,
        )
        logger.info(f"[Session] {previous.value} -> disconnected (logout manual)")
        self._sink.emit(EVENT_STATUS, STATUS_DISCONNECTED)
        self._credentials.clear()

    async def shutdown(self) -> None:
        """
        Cancela timers pendentes e destroi o driver.

        Falha no destroy sobe para o chamador (o processo deve sair com
        codigo != 0).
        """
        pending: List[asyncio.Task] = list(self._timers)
        if self._consumer is not None:
            pending.append(self._consumer)
            self._consumer = None

        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

        logger.info(f"[Session] {len(pending)} tarefas canceladas. Destruindo driver...")
        await self._driver.destroy()
        logger.info("[Session] Driver destruido")

    # ------------------------------------------------------------------
    # Eventos
    # ------------------------------------------------------------------

    def _enqueue(self, event: SessionEvent) -> None:
        self._events.put_nowait(event)

    async def _consume(self) -> None:
        while True:
            event = await self._events.get()
            try:
                self._apply(event)
            except Exception:
                logger.exception(f"[Session] Erro ao aplicar evento {event.type.value}")

    def _apply(self, event: SessionEvent) -> None:
        """Aplica evento de forma atomica (sem await entre estado e acoes)."""
        previous = self._snapshot
        self._snapshot, actions = transition(previous, event)

        if previous.state != self._snapshot.state:
            logger.info(
                f"[Session] {previous.state.value} -> {self._snapshot.state.value} "
                f"({event.type.value})",
                extra={"session_state": self._snapshot.state.value, "event": event.type.value},
            )

        for action in actions:
            self._run(action)

    def _run(self, action: Action) -> None:
        if isinstance(action, NotifyStatus):
            self._sink.emit(EVENT_STATUS, action.label)

        elif isinstance(action, PublishChallenge):
            try:
                encoded = self._encoder(action.token)
            except Exception as e:
                logger.error(f"[Session] Falha ao gerar QR code: {e}")
                self._sink.emit(EVENT_STATUS, STATUS_ERROR)
                return
            logger.info("[Session] QR code disponivel para autenticacao")
            self._print_challenge(action.token)
            self._sink.emit(EVENT_QR, encoded)
            self._sink.emit(EVENT_STATUS, STATUS_QR_READY)

        elif isinstance(action, ClearCredentials):
            logger.info(f"[Session] Removendo credencial ({action.reason})")
            self._credentials.clear()

        elif isinstance(action, ScheduleInitialize):
            if action.attempt is not None:
                logger.info(
                    f"[Session] Nova tentativa ({action.attempt}) em {action.delay_seconds:.0f}s",
                    extra={"delay_seconds": action.delay_seconds, "attempt": action.attempt},
                )
            else:
                logger.info(
                    f"[Session] Reinicializando em {action.delay_seconds:.0f}s",
                    extra={"delay_seconds": action.delay_seconds},
                )
            self._schedule_initialize(action.delay_seconds)

    def _print_challenge(self, token: str) -> None:
        if self._console_renderer is None:
            return
        try:
            rendered = self._console_renderer(token)
        except Exception as e:
            logger.warning(f"[Session] Falha ao desenhar QR code no console: {e}")
            return
        logger.info(f"[Session] Escaneie o QR code:\n{rendered}")

    # ------------------------------------------------------------------
    # Inicializacao
    # ------------------------------------------------------------------

    def _schedule_initialize(self, delay_seconds: float) -> None:
        task = asyncio.create_task(self._delayed_initialize(delay_seconds))
        self._timers.add(task)
        task.add_done_callback(self._timers.discard)

    async def _delayed_initialize(self, delay_seconds: float) -> None:
        if delay_seconds > 0:
            await self._sleep(delay_seconds)
        await self._initialize()

    async def _initialize(self) -> None:
        """Chama driver.initialize() e converte o resultado em evento."""
        try:
            await self._driver.initialize()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"[Session] Falha ao inicializar cliente: {e}")
            self._enqueue(InitEvent(InitEventType.FAILED, error=str(e)))
            return
        self._enqueue(InitEvent(InitEventType.SUCCEEDED))
