# Overview: Member check-in QR codes (qrcode + Pillow) and payload parsing for the scanner.

from __future__ import annotations

import base64
import io
import json
import time

import qrcode

from ..models import Member


QR_TYPE = "ULIFTS_CHECKIN"
QR_BOX_SIZE = 10
QR_BORDER = 2


class QRCodeError(ValueError):
    """Scanned text is not a check-in code."""


def build_payload(member: Member) -> dict:
    return {
        "type": QR_TYPE,
        "memberId": member.id,
        "uuid": member.uuid,
        "timestamp": int(time.time() * 1000),
    }


def render_png(data: str) -> bytes:
    qr = qrcode.QRCode(
        version=None,
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=QR_BOX_SIZE,
        border=QR_BORDER,
    )
    qr.add_data(data)
    qr.make(fit=True)
    img = qr.make_image(fill_color="black", back_color="white")

    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    return buffer.getvalue()


def member_qr_data_url(member: Member) -> str:
    """PNG data URL the member portal shows at the front desk."""
    png = render_png(json.dumps(build_payload(member), separators=(",", ":")))
    return "data:image/png;base64," + base64.b64encode(png).decode("ascii")


def parse_qr_payload(text) -> dict:
    """
    Decode scanned text. Accepts the JSON string or an already-decoded dict.

    Raises QRCodeError for anything that is not a check-in payload.
    """
    if isinstance(text, dict):
        data = text
    else:
        try:
            data = json.loads(text or "")
        except (TypeError, ValueError):
            raise QRCodeError("Invalid QR code format")

    if not isinstance(data, dict) or data.get("type") != QR_TYPE:
        raise QRCodeError("Invalid QR code type")
    member_id = data.get("memberId")
    if isinstance(member_id, str) and member_id.strip().isdecimal():
        member_id = int(member_id.strip())
    # bool is an int subclass; ids must fit a 64-bit column
    if not isinstance(member_id, int) or isinstance(member_id, bool) or not 0 < member_id < 2 ** 63:
        raise QRCodeError("Invalid QR code format")
    uuid = data.get("uuid")
    if not isinstance(uuid, str) or not uuid.strip():
        raise QRCodeError("Invalid QR code format")
    return {**data, "memberId": member_id, "uuid": uuid.strip()}
