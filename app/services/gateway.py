"""
Composicao dos componentes do gateway.

Um unico driver compartilhado: o SessionManager controla o ciclo de vida
e o SendPipeline apenas le estado e envia.
"""

from dataclasses import dataclass
from typing import Optional

from app.core.config import Settings, settings as default_settings
from app.services.notifications import EventBroadcaster
from app.services.outbound.pipeline import SendPipeline
from app.services.session.challenge import render_challenge_ascii
from app.services.session.manager import SessionManager
from app.services.whatsapp_driver.base import ChannelDriver
from app.services.whatsapp_driver.credentials import CredentialStore
from app.services.whatsapp_driver.evolution import EvolutionDriver


@dataclass
class Gateway:
    driver: ChannelDriver
    credentials: CredentialStore
    notifications: EventBroadcaster
    session: SessionManager
    sender: SendPipeline


def build_gateway(
    settings: Optional[Settings] = None,
    driver: Optional[ChannelDriver] = None,
) -> Gateway:
    """
    Monta o gateway a partir das configuracoes.

    Args:
        settings: Configuracoes (default: settings globais)
        driver: Driver ja construido (default: EvolutionDriver)
    """
    settings = settings or default_settings
    credentials = CredentialStore(settings.SESSION_STORAGE_PATH)

    if driver is None:
        driver = EvolutionDriver(
            base_url=settings.EVOLUTION_API_URL,
            api_key=settings.EVOLUTION_API_KEY,
            instance_name=settings.EVOLUTION_INSTANCE,
            credentials=credentials,
            webhook_url=settings.WEBHOOK_URL,
            executable_path=settings.DRIVER_EXECUTABLE_PATH,
        )

    notifications = EventBroadcaster()
    return Gateway(
        driver=driver,
        credentials=credentials,
        notifications=notifications,
        session=SessionManager(
            driver,
            credentials,
            notifications,
            console_renderer=None if settings.is_production else render_challenge_ascii,
        ),
        sender=SendPipeline(driver),
    )
