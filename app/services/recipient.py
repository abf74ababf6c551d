"""
Normalizacao de destinatarios.

Converte o que o usuario digitou ("+1 (555) 000-1111") no endereco
canonico da rede ("15550001111@c.us").
"""

import re
from typing import Optional

from app.core.constants import ADDRESS_SUFFIX, MIN_RECIPIENT_DIGITS


def normalize_recipient(recipient: str) -> Optional[str]:
    """
    Normaliza destinatario para endereco canonico.

    Remove tudo que nao for digito e acrescenta o sufixo de endereco.
    Aplicar sobre um endereco ja normalizado devolve o mesmo valor.

    Args:
        recipient: Numero em qualquer formato

    Returns:
        Endereco canonico, ou None se sobrarem menos de 10 digitos.
    """
    if not recipient:
        return None

    digits = re.sub(r"\D", "", str(recipient))

    if len(digits) < MIN_RECIPIENT_DIGITS:
        return None

    return f"{digits}{ADDRESS_SUFFIX}"


def address_to_number(address: str) -> str:
    """Extrai apenas os digitos de um endereco (ex: 15550001111@c.us -> 15550001111)."""
    return re.sub(r"\D", "", address.split("@", 1)[0])


def mask_recipient(recipient: str) -> str:
    """Mascara para logs: mostra apenas os 4 ultimos digitos."""
    digits = re.sub(r"\D", "", str(recipient or ""))
    return f"...{digits[-4:]}" if digits else "<vazio>"
