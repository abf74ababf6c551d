"""
Broadcast de notificacoes em tempo real.

O SessionManager emite eventos ('qr', 'status'); cada cliente conectado
em GET /api/events recebe os eventos via SSE. Entrega fire-and-forget:
sem confirmacao e, se a fila do cliente estiver cheia, o evento e
descartado para aquele cliente.
"""

import asyncio
import json
import logging
from typing import Any, AsyncIterator, Protocol, Set, Tuple

logger = logging.getLogger(__name__)

# Eventos pendentes por cliente antes de descartar
SUBSCRIBER_QUEUE_SIZE = 100

Notification = Tuple[str, Any]


class NotificationSink(Protocol):
    """Capacidade de escrita usada pelo nucleo."""

    def emit(self, event: str, payload: Any) -> None:
        ...


class EventBroadcaster:
    """Fan-out de notificacoes para assinantes SSE."""

    def __init__(self, queue_size: int = SUBSCRIBER_QUEUE_SIZE):
        self._queue_size = queue_size
        self._subscribers: Set[asyncio.Queue] = set()

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def emit(self, event: str, payload: Any) -> None:
        """Envia evento a todos os assinantes atuais."""
        logger.debug(f"[Notify] {event}: {payload if event != 'qr' else '<qr>'}")
        for queue in list(self._subscribers):
            try:
                queue.put_nowait((event, payload))
            except asyncio.QueueFull:
                logger.warning(f"[Notify] Fila cheia, evento '{event}' descartado para um cliente")

    def subscribe(self) -> asyncio.Queue:
        queue: asyncio.Queue = asyncio.Queue(maxsize=self._queue_size)
        self._subscribers.add(queue)
        return queue

    def unsubscribe(self, queue: asyncio.Queue) -> None:
        self._subscribers.discard(queue)

    async def stream(self) -> AsyncIterator[str]:
        """
        Gera eventos no formato SSE ate o cliente desconectar.

        Yields:
            "event: <nome>\\ndata: <json>\\n\\n"
        """
        queue = self.subscribe()
        try:
            yield "event: connected\ndata: {}\n\n"
            while True:
                event, payload = await queue.get()
                yield format_sse(event, payload)
        finally:
            self.unsubscribe(queue)


def format_sse(event: str, payload: Any) -> str:
    return f"event: {event}\ndata: {json.dumps(payload, ensure_ascii=False)}\n\n"
