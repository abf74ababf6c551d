"""
HTTP Client compartilhado com connection pooling.

Usado pelo driver para falar com o backend WhatsApp:
- Reutilização de conexões
- Timeout padronizado
- Fechamento explicito no shutdown (ChannelDriver.destroy)
"""

import httpx
import logging
from typing import Optional

logger = logging.getLogger(__name__)

# Cliente HTTP global (singleton)
_client: Optional[httpx.AsyncClient] = None


async def get_http_client() -> httpx.AsyncClient:
    """
    Obtém o cliente HTTP singleton.

    Cria o cliente na primeira chamada.

    Returns:
        httpx.AsyncClient configurado com pooling
    """
    global _client
    if _client is None:
        _client = httpx.AsyncClient(
            timeout=httpx.Timeout(
                connect=10.0,
                read=30.0,
                write=30.0,
                pool=5.0,
            ),
            limits=httpx.Limits(
                max_connections=20,
                max_keepalive_connections=5,
                keepalive_expiry=30.0,
            ),
            headers={
                "User-Agent": "WhatsApp-Gateway/1.0",
            },
            follow_redirects=True,
        )
        logger.info("HTTP client criado")

    return _client


async def close_http_client() -> None:
    """
    Fecha o cliente HTTP.

    Chamado no shutdown para liberar conexões.
    """
    global _client
    if _client is not None:
        await _client.aclose()
        _client = None
        logger.info("HTTP client fechado")
