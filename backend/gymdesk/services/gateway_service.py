# Overview: Razorpay payment gateway client (order creation) and signature verification.

"""
Payment gateway integration.

WHY: Online payments happen in the browser through Razorpay Checkout. The
server creates the order (so the amount cannot be tampered with) and, after
checkout, verifies the signature Razorpay returns before recording anything.

SECURITY:
- Signature = HMAC-SHA256(key_secret, "<order_id>|<payment_id>"), hex
- Compared with hmac.compare_digest (constant time)
- Without RAZORPAY_KEY_ID / RAZORPAY_KEY_SECRET online payments are disabled
"""

from __future__ import annotations

import hashlib
import hmac
import logging

import httpx
from flask import current_app


logger = logging.getLogger(__name__)

GATEWAY_TIMEOUT = 15.0


class GatewayNotConfiguredError(Exception):
    """Online payments requested while gateway keys are missing."""

    def __init__(self, message: str = "Online payments not configured. Please pay via Cash/UPI."):
        super().__init__(message)


class GatewayError(Exception):
    """The gateway rejected the request or could not be reached."""
    pass


class SignatureError(ValueError):
    """Gateway callback signature did not verify."""

    def __init__(self, message: str = "Invalid payment signature"):
        super().__init__(message)


def _credentials() -> tuple[str, str]:
    key_id = current_app.config.get("RAZORPAY_KEY_ID")
    key_secret = current_app.config.get("RAZORPAY_KEY_SECRET")
    if not key_id or not key_secret:
        raise GatewayNotConfiguredError()
    return key_id, key_secret


def is_configured() -> bool:
    try:
        _credentials()
    except GatewayNotConfiguredError:
        return False
    return True


def public_key_id() -> str:
    return _credentials()[0]


def create_order(*, amount_cents: int, receipt: str, notes: dict | None = None, currency: str = "INR") -> dict:
    """
    POST /v1/orders. Returns the gateway's order object (id, amount, ...).

    Raises GatewayNotConfiguredError or GatewayError.
    """
    key_id, key_secret = _credentials()
    url = current_app.config.get("RAZORPAY_API_URL", "https://api.razorpay.com/v1").rstrip("/") + "/orders"
    payload = {
        "amount": amount_cents,
        "currency": currency,
        "receipt": receipt,
        "notes": notes or {},
    }

    try:
        response = httpx.post(url, json=payload, auth=(key_id, key_secret), timeout=GATEWAY_TIMEOUT)
    except httpx.HTTPError as exc:
        logger.exception("Razorpay order request failed")
        raise GatewayError("Payment gateway unavailable") from exc

    if response.status_code >= 400:
        logger.error("Razorpay order rejected: %s %s", response.status_code, response.text[:500])
        raise GatewayError("Payment gateway rejected the order")

    order = response.json()
    if not order.get("id"):
        raise GatewayError("Payment gateway returned no order id")
    return order


def expected_signature(order_id: str, payment_id: str, secret: str) -> str:
    message = f"{order_id}|{payment_id}".encode("utf-8")
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).hexdigest()


def verify_signature(*, order_id: str, payment_id: str, signature: str) -> None:
    """
    Raise SignatureError unless signature == HMAC-SHA256(secret, "order|payment").
    """
    _, key_secret = _credentials()
    if not order_id or not payment_id or not signature:
        raise SignatureError()
    expected = expected_signature(order_id, payment_id, key_secret)
    if not hmac.compare_digest(expected, str(signature)):
        raise SignatureError()
