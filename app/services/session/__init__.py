"""
Sessao WhatsApp: maquina de estados, retry/backoff e QR code.

    from app.services.session import SessionManager
"""

from app.services.session.manager import SessionManager
from app.services.session.machine import SessionSnapshot, transition

__all__ = [
    "SessionManager",
    "SessionSnapshot",
    "transition",
]
