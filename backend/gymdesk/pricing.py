"""
Money helpers.

Amounts are integer paise ("cents"); GST rates are basis points
(1800 = 18%). Nothing here touches the database.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class GSTBreakdown:
    base_cents: int
    gst_bps: int
    gst_cents: int
    total_cents: int

    def to_dict(self) -> dict:
        return {
            "base_amount_cents": self.base_cents,
            "gst_percent": bps_to_percent(self.gst_bps),
            "gst_amount_cents": self.gst_cents,
            "total_amount_cents": self.total_cents,
        }


def percent_to_bps(percent: float) -> int:
    return int(round(float(percent) * 100))


def bps_to_percent(bps: int) -> float:
    return round(bps / 100, 2)


def calculate_gst(base_cents: int, gst_bps: int = 0, *, enabled: bool = False) -> GSTBreakdown:
    """
    GST-inclusive total for a base price.

    With enabled=False the rate is forced to 0 and the total equals the
    base price. Half paise round up.
    """
    if not enabled:
        gst_bps = 0
    gst_cents = (base_cents * gst_bps + 5000) // 10000
    return GSTBreakdown(
        base_cents=base_cents,
        gst_bps=gst_bps,
        gst_cents=gst_cents,
        total_cents=base_cents + gst_cents,
    )


def _group_indian(digits: str) -> str:
    # 1234567 -> 12,34,567
    if len(digits) <= 3:
        return digits
    head, tail = digits[:-3], digits[-3:]
    groups = []
    while len(head) > 2:
        groups.insert(0, head[-2:])
        head = head[:-2]
    if head:
        groups.insert(0, head)
    return ",".join(groups) + "," + tail


def format_inr(amount_cents: int, symbol: str = "₹") -> str:
    """
    Rupee amount with Indian digit grouping; paise shown only when non-zero.

    format_inr(177000) -> "₹1,770"; format_inr(12345650) -> "₹1,23,456.50"
    """
    sign = "-" if amount_cents < 0 else ""
    rupees, paise = divmod(abs(amount_cents), 100)
    text = _group_indian(str(rupees))
    if paise:
        text += f".{paise:02d}"
    return f"{sign}{symbol}{text}"


def cents_to_rupees(amount_cents: int | None) -> float | None:
    if amount_cents is None:
        return None
    return round(amount_cents / 100, 2)
