"""Locale-style formatting of numbers, currency, addresses and runway."""

from datetime import UTC, datetime
from decimal import ROUND_HALF_UP, Decimal

from treasury_dashboard.core.models import RUNWAY_CAP_MONTHS, DashboardSnapshot

_COMPACT_UNITS = (
    (Decimal("1e12"), "T"),
    (Decimal("1e9"), "B"),
    (Decimal("1e6"), "M"),
    (Decimal("1e3"), "K"),
    (Decimal("1"), ""),
)


def _round(value: Decimal | float | int, decimals: int) -> Decimal:
    quantum = Decimal(1).scaleb(-decimals)
    return Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP)


def format_number(value: Decimal | float | int, decimals: int = 2) -> str:
    """
    Format a number with thousands separators and fixed decimals.

    Examples
    --------
    >>> format_number(Decimal("1234.5"))
    '1,234.50'

    """
    return f"{_round(value, decimals):,.{decimals}f}"


def format_currency(value: Decimal | float | int, decimals: int = 0) -> str:
    """
    Format a USD amount, e.g. ``$12,345``.

    Parameters
    ----------
    value : Decimal | float | int
        Amount in USD
    decimals : int
        Fraction digits to show

    Returns
    -------
    str
        Formatted amount, negative values as ``-$1,234``

    """
    rounded = _round(value, decimals)
    sign = "-" if rounded < 0 else ""
    return f"{sign}${abs(rounded):,.{decimals}f}"


def format_compact_currency(value: Decimal | float | int) -> str:
    """
    Format a USD amount in compact notation, e.g. ``$1.2K`` or ``$3.4M``.

    One fraction digit at most; a trailing ``.0`` is dropped.
    """
    amount = Decimal(str(value))
    sign = "-" if amount < 0 else ""
    amount = abs(amount)
    for index, (threshold, suffix) in enumerate(_COMPACT_UNITS):
        if amount >= threshold:
            scaled = _round(amount / threshold, 1)
            # Rounding can carry into the next unit, e.g. 999_950 -> 1000.0K
            if scaled >= 1000 and index > 0:
                threshold, suffix = _COMPACT_UNITS[index - 1]
                scaled = _round(amount / threshold, 1)
            return f"{sign}${_strip_zero(scaled)}{suffix}"
    return f"{sign}${_strip_zero(amount)}"


def _strip_zero(value: Decimal) -> str:
    text = f"{value:.1f}"
    return text[:-2] if text.endswith(".0") else text


def format_percent(value: Decimal | float | int, decimals: int = 1) -> str:
    """Format a percentage, e.g. ``12.5%``."""
    return f"{_round(value, decimals):.{decimals}f}%"


def format_change(value: Decimal | float | int, decimals: int = 1) -> str:
    """Format a signed percent change, e.g. ``+3.2%`` or ``-1.0%``."""
    rounded = _round(value, decimals)
    sign = "+" if rounded >= 0 else ""
    return f"{sign}{rounded:.{decimals}f}%"


def shorten_address(address: str | None) -> str:
    """
    Shorten an address to ``first6...last4``.

    Examples
    --------
    >>> shorten_address("5DXqqdrvu5FK3dASRVTCdGPZKx4Q9nkAZZSmibKG6PEEeW4j")
    '5DXqqd...eW4j'

    """
    if not address:
        return "Unknown"
    if len(address) <= 12:
        return address
    return f"{address[:6]}...{address[-4:]}"


def format_month(month: str) -> str:
    """Format ``YYYY-MM`` as ``Jan 25``."""
    return datetime.strptime(month, "%Y-%m").strftime("%b %y")


def format_timestamp(timestamp_ms: int, fmt: str = "%b %d, %Y %H:%M") -> str:
    """Format epoch milliseconds in UTC."""
    return datetime.fromtimestamp(timestamp_ms / 1000, tz=UTC).strftime(fmt)


def runway_text(runway_months: Decimal | float | int) -> str:
    """
    Human readable runway.

    Parameters
    ----------
    runway_months : Decimal | float | int
        Runway in months; ``RUNWAY_CAP_MONTHS`` means no burn

    Returns
    -------
    str
        ``Infinite``, ``10+ years``, ``N.N years``, ``N.N months`` or ``--``

    """
    months = Decimal(str(runway_months))
    if months == RUNWAY_CAP_MONTHS:
        return "Infinite"
    if months > 120:
        return "10+ years"
    if months > 12:
        return f"{_round(months / 12, 1)} years"
    if months > 0:
        return f"{_round(months, 1)} months"
    return "--"


def is_placeholder(snapshot: DashboardSnapshot | None) -> bool:
    """Whether a snapshot carries no treasury data at all."""
    if snapshot is None:
        return True
    return snapshot.treasury.total_tao == 0 and snapshot.treasury.total_eth == 0


def status_banner(error: str | None, snapshot: DashboardSnapshot | None) -> str | None:
    """
    Warning text shown above the dashboard, None when all is well.

    Parameters
    ----------
    error : str | None
        Last fetch error
    snapshot : DashboardSnapshot | None
        Snapshot currently displayed

    Returns
    -------
    str | None
        Banner text

    """
    placeholder = is_placeholder(snapshot)
    if error is None and not placeholder:
        return None
    text = f"Data fetch error: {error}" if error else "Loading data..."
    if placeholder:
        text += " Showing placeholder values."
    return text
