"""Display formatting shared by insights, reports, the assistant and the UI."""

import math
from datetime import date, datetime

CURRENCY_SYMBOL = "₹"


def round_half_up(value: float) -> int:
    """Round halves upward: 2.5 -> 3, -2.5 -> -2."""
    return int(math.floor(value + 0.5))


def format_number(value) -> str:
    """Thousands separators, at most two decimals, no trailing zeros."""
    value = float(value)
    text = f"{value:,.2f}".rstrip("0").rstrip(".")
    return "0" if text in ("-0", "") else text


def format_currency(value) -> str:
    value = float(value)
    if value < 0:
        return f"-{CURRENCY_SYMBOL}{format_number(-value)}"
    return f"{CURRENCY_SYMBOL}{format_number(value)}"


def format_currency_rounded(value) -> str:
    return format_currency(round_half_up(float(value)))


def format_percent(value, signed: bool = False) -> str:
    text = f"{float(value):.1f}%"
    if signed and value > 0:
        return f"+{text}"
    return text


def format_date(value) -> str:
    """e.g. ``18 Oct 2026``."""
    if isinstance(value, str):
        value = date.fromisoformat(value[:10])
    if isinstance(value, datetime):
        value = value.date()
    return f"{value.day} {value.strftime('%b %Y')}"
