"""
Testes para normalize_recipient().
"""

import pytest

from app.services.recipient import address_to_number, mask_recipient, normalize_recipient


class TestNormalizeRecipient:
    """Testes de normalizacao de destinatario."""

    def test_formato_internacional(self):
        assert normalize_recipient("+1 (555) 000-1111") == "15550001111@c.us"

    def test_apenas_digitos(self):
        assert normalize_recipient("5511942023377") == "5511942023377@c.us"

    def test_idempotente(self):
        once = normalize_recipient("+55 (11) 94202-3377")
        assert normalize_recipient(once) == once

    def test_dez_digitos_aceito(self):
        assert normalize_recipient("1134567890") == "1134567890@c.us"

    @pytest.mark.parametrize("value", ["", "123456789", "+-() ", "abc", None])
    def test_menos_de_dez_digitos(self, value):
        assert normalize_recipient(value) is None

    def test_address_to_number(self):
        assert address_to_number("15550001111@c.us") == "15550001111"

    def test_mask_mostra_quatro_ultimos(self):
        assert mask_recipient("+1 (555) 000-1111") == "...1111"
        assert mask_recipient("") == "<vazio>"
