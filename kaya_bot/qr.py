"""二维码渲染：网关给的 QR 字符串 -> PNG data URL（直接塞进 <img src>）。"""

from __future__ import annotations

import base64
import io

import qrcode
from qrcode.image.pil import PilImage


def render_qr_data_url(text: str, *, box_size: int = 8, border: int = 4) -> str:
    """把 QR 内容编码成 data:image/png;base64,... 。"""
    if not text:
        raise ValueError("QR 内容为空")

    qr = qrcode.QRCode(
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=box_size,
        border=border,
        image_factory=PilImage,
    )
    qr.add_data(text)
    qr.make(fit=True)

    buf = io.BytesIO()
    qr.make_image().save(buf)
    return "data:image/png;base64," + base64.b64encode(buf.getvalue()).decode("ascii")
