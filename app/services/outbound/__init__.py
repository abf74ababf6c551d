"""
Envio de mensagens outbound.

    from app.services.outbound import SendPipeline, SendResult
"""

from app.services.outbound.types import SendErrorKind, SendResult
from app.services.outbound.pipeline import SendPipeline

__all__ = [
    "SendErrorKind",
    "SendPipeline",
    "SendResult",
]
