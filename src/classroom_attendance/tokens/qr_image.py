from __future__ import annotations

import io
from urllib.parse import parse_qs, urlparse

import qrcode


def render_qr_png(data: str) -> bytes:
    qr = qrcode.QRCode(
        version=1,
        error_correction=qrcode.constants.ERROR_CORRECT_L,
        box_size=10,
        border=2,
    )
    qr.add_data(data)
    qr.make(fit=True)

    img = qr.make_image(fill_color="black", back_color="white")
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


def extract_token(scanned: str) -> str:
    """Token from a scanned payload: either the check-in URL or the bare token."""

    text = (scanned or "").strip()
    if "token=" in text:
        values = parse_qs(urlparse(text).query).get("token")
        if values:
            return values[0].strip()
    return text
