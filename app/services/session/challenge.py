"""
Codificacao do desafio de autenticacao (QR) como imagem.

O frontend recebe um data URL PNG pronto para <img src=...>.
"""

import base64
import io

import qrcode


def encode_challenge(token: str) -> str:
    """
    Gera data URL PNG do QR code para o token.

    Args:
        token: Conteudo do QR emitido pelo driver

    Returns:
        "data:image/png;base64,..."
    """
    image = qrcode.make(token)
    buffer = io.BytesIO()
    image.save(buffer)
    encoded = base64.b64encode(buffer.getvalue()).decode("ascii")
    return f"data:image/png;base64,{encoded}"


def render_challenge_ascii(token: str) -> str:
    """
    Desenha o QR code em texto, para escanear direto do console.

    Cada modulo escuro vira "██" e cada claro vira dois espacos.
    """
    qr = qrcode.QRCode(border=1)
    qr.add_data(token)
    qr.make(fit=True)
    return "\n".join(
        "".join("██" if cell else "  " for cell in row) for row in qr.get_matrix()
    )
