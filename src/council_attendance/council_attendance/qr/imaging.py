from __future__ import annotations

import io
from typing import BinaryIO

import qrcode
from PIL import Image
from pyzbar.pyzbar import decode as pyzbar_decode

from ..core.exceptions import TokenInvalid


def render_png(payload: str) -> bytes:
    """Render a QR payload as PNG bytes."""

    qr = qrcode.QRCode(
        version=None,
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=10,
        border=2,
    )
    qr.add_data(payload)
    qr.make(fit=True)

    img = qr.make_image(fill_color="black", back_color="white")

    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


def decode_image(stream: BinaryIO) -> str:
    """Decode the first QR code found in an uploaded camera frame."""

    img = Image.open(stream).convert("RGB")
    decoded = pyzbar_decode(img)
    if not decoded:
        raise TokenInvalid()
    return decoded[0].data.decode("utf-8").strip()
