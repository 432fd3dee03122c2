"""Display formatting shared by the board and the exporters.

Formats are fixed strings, never locale-dependent, so exports are
reproducible.
"""

from typing import Optional

NO_PRICE = "-"


def ordinal(num: int) -> str:
    """1 -> "1st", 2 -> "2nd", 11 -> "11th", 23 -> "23rd"."""
    if num % 100 in (11, 12, 13):
        return f"{num}th"
    suffix = {1: "st", 2: "nd", 3: "rd"}.get(num % 10, "th")
    return f"{num}{suffix}"


def format_price(odds: float) -> str:
    if odds <= 0:
        return NO_PRICE
    return f"${odds:.2f}"


def format_profit(pct: Optional[float]) -> str:
    """Signed percentage with one decimal, "-" when not computable."""
    if pct is None:
        return NO_PRICE
    pct = round(pct, 1) + 0.0  # no "-0.0"
    sign = "+" if pct >= 0 else ""
    return f"{sign}{pct:.1f}%"


def format_countdown(seconds: int) -> str:
    """Seconds as M:SS."""
    mins, secs = divmod(max(seconds, 0), 60)
    return f"{mins}:{secs:02d}"


def sanitize_csv_field(text: Optional[str]) -> str:
    """Commas would split the row, so they become semicolons."""
    return (text or "").replace(",", ";")
