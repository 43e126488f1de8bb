"""Helpers for starting the BankID app from an order."""

from __future__ import annotations

import hashlib
import hmac
from typing import Optional
from urllib.parse import urlencode

from .models import Order


def qr_code_data(order: Order, elapsed_seconds: int) -> str:
    """Return the animated QR payload for ``elapsed_seconds`` after the order started.

    The payload changes every second and should be regenerated and redrawn
    while the order is pending.
    """
    if elapsed_seconds < 0:
        raise ValueError("elapsed_seconds must not be negative")
    seconds = str(int(elapsed_seconds))
    auth_code = hmac.new(
        order.qr_start_secret.encode("ascii"), seconds.encode("ascii"), hashlib.sha256
    ).hexdigest()
    return f"bankid.{order.qr_start_token}.{seconds}.{auth_code}"


def autostart_url(order: Order, redirect: Optional[str] = None) -> str:
    """Return the link that opens the BankID app on the same device."""
    query = urlencode(
        {"autostarttoken": order.auto_start_token, "redirect": redirect or "null"}
    )
    return f"bankid:///?{query}"
