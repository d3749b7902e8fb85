# Overview: QR code rendering for printed tickets and digital passes.

from __future__ import annotations

import base64
import io

import qrcode


def qr_png_data_uri(data: str, box_size: int = 6, border: int = 2) -> str:
    """Render data as a QR code PNG and return it as a base64 data URI."""
    qr = qrcode.QRCode(
        version=None,
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=box_size,
        border=border,
    )
    qr.add_data(data)
    qr.make(fit=True)
    img = qr.make_image(fill_color="black", back_color="white")

    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return "data:image/png;base64," + base64.b64encode(buf.getvalue()).decode("ascii")
