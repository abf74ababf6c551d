"""
Pipeline de envio de mensagens.

Cada envio passa por checagens sequenciais com saida antecipada:
1. destinatario normalizavel (>= 10 digitos)
2. sessao conectada
3. destinatario registrado na rede
4. envio pelo driver

Falhas por destinatario viram SendResult(success=False), nunca excecao.
Apenas argumentos ausentes levantam ValidationError.

Envio em massa e estritamente sequencial, com intervalo aleatorio de
3-5s entre mensagens para nao acionar a deteccao de abuso da rede.
"""

import asyncio
import logging
import random
import time
from typing import Awaitable, Callable, List, Optional, Sequence

from app.core.constants import BULK_DELAY_MAX_SECONDS, BULK_DELAY_MIN_SECONDS
from app.core.exceptions import ValidationError
from app.services.outbound.types import SendErrorKind, SendResult
from app.services.recipient import mask_recipient, normalize_recipient
from app.services.whatsapp_driver.base import ChannelDriver, SessionState

logger = logging.getLogger(__name__)

MISSING_SINGLE_ARGS = "Recipient and message are required"
MISSING_BULK_ARGS = 'A non-empty array of "numbers" and a "message" are required'


class SendPipeline:
    """Validacao e despacho de mensagens pelo driver."""

    def __init__(
        self,
        driver: ChannelDriver,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        rng: Optional[random.Random] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._driver = driver
        self._sleep = sleep
        self._rng = rng or random.Random()
        self._clock = clock
        # Um envio em massa por vez contra o driver compartilhado
        self._bulk_lock = asyncio.Lock()
        self._last_bulk_send_at: Optional[float] = None

    async def send_one(self, recipient: str, text: str) -> SendResult:
        """
        Envia mensagem para um destinatario.

        Raises:
            ValidationError: recipient ou text ausentes
        """
        if not recipient or not text:
            raise ValidationError(MISSING_SINGLE_ARGS)
        return await self._send(recipient, text)

    async def send_many(self, recipients: Sequence[str], text: str) -> List[SendResult]:
        """
        Envia a mesma mensagem para varios destinatarios, um por vez.

        Retorna exatamente um resultado por destinatario, na ordem de
        entrada. Chamadas concorrentes sao serializadas.

        Raises:
            ValidationError: lista vazia ou text ausente
        """
        if not recipients or not text:
            raise ValidationError(MISSING_BULK_ARGS)

        async with self._bulk_lock:
            results: List[SendResult] = []
            total = len(recipients)
            logger.info(f"[Send] Envio em massa iniciado: {total} destinatarios")
            await self._wait_after_previous_bulk()

            for index, recipient in enumerate(recipients):
                results.append(await self._send(recipient, text))
                self._last_bulk_send_at = self._clock()
                if index < total - 1:
                    await self._sleep(self._next_delay())

            sent = sum(1 for r in results if r.success)
            logger.info(f"[Send] Envio em massa concluido: {sent}/{total} enviados")
            return results

    async def _wait_after_previous_bulk(self) -> None:
        """Garante o intervalo minimo entre o fim de um lote e o inicio do proximo."""
        if self._last_bulk_send_at is None:
            return
        remaining = self._next_delay() - (self._clock() - self._last_bulk_send_at)
        if remaining > 0:
            logger.debug(f"[Send] Aguardando {remaining:.1f}s apos lote anterior")
            await self._sleep(remaining)

    def _next_delay(self) -> float:
        """Delay uniforme em [3.0, 5.0) segundos."""
        spread = BULK_DELAY_MAX_SECONDS - BULK_DELAY_MIN_SECONDS
        return BULK_DELAY_MIN_SECONDS + self._rng.random() * spread

    async def _send(self, recipient: str, text: str) -> SendResult:
        masked = mask_recipient(recipient)

        address = normalize_recipient(recipient)
        if address is None:
            logger.warning(f"[Send] Numero invalido: {masked}")
            return SendResult.failed(
                recipient, SendErrorKind.INVALID_RECIPIENT, f"Invalid phone number: {recipient}"
            )

        try:
            state = await self._driver.get_state()
        except Exception as e:
            logger.warning(f"[Send] Falha ao consultar estado: {e}")
            return SendResult.failed(recipient, SendErrorKind.NOT_READY, str(e))

        if state != SessionState.CONNECTED:
            current = state.value if state else "unknown"
            logger.warning(f"[Send] Cliente nao pronto ({current}), destino={masked}")
            return SendResult.failed(
                recipient,
                SendErrorKind.NOT_READY,
                f"Client not ready, current state: {current}",
            )

        try:
            registered = await self._driver.is_registered_recipient(address)
            if not registered:
                logger.warning(f"[Send] Numero nao registrado no WhatsApp: {masked}")
                return SendResult.failed(
                    recipient,
                    SendErrorKind.UNREGISTERED_RECIPIENT,
                    f"Number {recipient} is not registered on WhatsApp",
                )

            message_id = await self._driver.send(address, text)
        except Exception as e:
            logger.error(f"[Send] Falha ao enviar para {masked}: {e}")
            return SendResult.failed(recipient, SendErrorKind.SEND_FAILED, str(e))

        logger.info(f"[Send] Mensagem enviada para {masked}, id={message_id}")
        return SendResult.sent(recipient, message_id)
