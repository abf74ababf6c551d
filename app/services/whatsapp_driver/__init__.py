"""
Drivers de canal WhatsApp.

    from app.services.whatsapp_driver import ChannelDriver, EvolutionDriver
"""

from app.services.whatsapp_driver.base import (
    ChannelDriver,
    DriverEvent,
    DriverEventType,
    SessionState,
)
from app.services.whatsapp_driver.credentials import CredentialStore
from app.services.whatsapp_driver.evolution import EvolutionDriver

__all__ = [
    "ChannelDriver",
    "CredentialStore",
    "DriverEvent",
    "DriverEventType",
    "EvolutionDriver",
    "SessionState",
]
