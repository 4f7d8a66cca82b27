"""
Display helpers for auction listings.

Amounts live in base units inside the engine; the CLI shows and accepts
them as decimal strings with a fixed number of decimals (18 by default,
the native-coin convention of the wallet front end).
"""

from decimal import Decimal, InvalidOperation, localcontext
from typing import Optional

DEFAULT_DECIMALS = 18
UNITS_PRECISION = 100


def short(addr: Optional[str]) -> str:
    """Abbreviate an address as 0x1234...abcd."""
    if not addr:
        return ""
    if len(addr) <= 10:
        return addr
    return f"{addr[:6]}...{addr[-4:]}"


def time_left(end_time: int, now: int) -> str:
    """Remaining time as 'Mm Ss', or 'Ended' once the deadline has passed."""
    diff = end_time - now
    if diff <= 0:
        return "Ended"
    minutes, seconds = divmod(diff, 60)
    return f"{minutes}m {seconds}s"


def parse_units(value: str, decimals: int = DEFAULT_DECIMALS) -> int:
    """
    Convert a decimal string into integer base units.

    Args:
        value: Decimal string such as "0.02"
        decimals: Number of fractional digits of the unit

    Returns:
        Amount in base units

    Raises:
        ValueError: If the value is not a decimal, is negative, or has
            more fractional digits than the unit supports
    """
    try:
        amount = Decimal(value.strip())
    except (InvalidOperation, AttributeError):
        raise ValueError(f"Invalid amount: {value!r}")

    if not amount.is_finite() or amount < 0:
        raise ValueError(f"Amount must be a non-negative number, got {value!r}")

    # Scaling must be exact; the default 28-digit context would round
    with localcontext() as ctx:
        ctx.prec = max(UNITS_PRECISION, len(amount.as_tuple().digits) + 1)
        scaled = amount.scaleb(decimals)
    if scaled != scaled.to_integral_value():
        raise ValueError(f"Amount {value!r} has more than {decimals} decimals")

    return int(scaled)


def format_units(amount: int, decimals: int = DEFAULT_DECIMALS) -> str:
    """Render base units as a decimal string without trailing zeros."""
    if amount == 0:
        return "0.0"
    whole, frac = divmod(amount, 10**decimals)
    if frac == 0:
        return f"{whole}.0"
    frac_str = str(frac).rjust(decimals, "0").rstrip("0")
    return f"{whole}.{frac_str}"
