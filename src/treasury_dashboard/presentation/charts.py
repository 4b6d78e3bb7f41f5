"""Chart series construction from snapshot records."""

from datetime import UTC, date, datetime
from decimal import Decimal
from typing import Any

from treasury_dashboard.core.models import BurnSnapshot, PriceSnapshot
from treasury_dashboard.presentation.formatting import format_month

PALETTE = ["#3b82f6", "#10b981", "#f59e0b", "#ef4444", "#8b5cf6", "#ec4899"]

BURN_HISTORY_MONTHS = 12
PROJECTION_MONTHS = 6


def color_for(index: int) -> str:
    """Palette colour for the item at ``index``, cycling through the palette."""
    return PALETTE[index % len(PALETTE)]


def _date_key(timestamp_ms: int) -> str:
    return datetime.fromtimestamp(timestamp_ms / 1000, tz=UTC).date().isoformat()


def price_series(price: PriceSnapshot) -> list[dict[str, Any]]:
    """Price history as ``{date, timestamp, price}`` points."""
    return [
        {"date": _date_key(point.timestamp), "timestamp": point.timestamp, "price": float(point.price)}
        for point in price.history
    ]


def _add_months(month: date, count: int) -> date:
    index = month.month - 1 + count
    return date(month.year + index // 12, index % 12 + 1, 1)


def burn_series(
    burn: BurnSnapshot,
    history_months: int = BURN_HISTORY_MONTHS,
    projection_months: int = PROJECTION_MONTHS,
) -> list[dict[str, Any]]:
    """
    Monthly burn bars: recent actuals followed by a projection.

    The projection repeats the current monthly burn for ``projection_months``
    months after the last recorded month and keeps accumulating the
    cumulative total. No projection is produced when there is no history or
    no burn.

    Parameters
    ----------
    burn : BurnSnapshot
        Burn snapshot with monthly history
    history_months : int
        Number of most recent actual months to include
    projection_months : int
        Number of projected months to append

    Returns
    -------
    list[dict[str, Any]]
        Actual points ``{month, burn, cumulative}`` then projected points
        ``{month, projected, cumulative}``

    """
    history = burn.burn_history[-history_months:] if history_months > 0 else []
    series: list[dict[str, Any]] = [
        {"month": format_month(point.month), "burn": float(point.burn), "cumulative": float(point.cumulative_burn)}
        for point in history
    ]

    if not burn.burn_history or burn.monthly_burn_usd <= 0:
        return series

    last = burn.burn_history[-1]
    last_month = datetime.strptime(last.month, "%Y-%m").date()
    cumulative = last.cumulative_burn
    for offset in range(1, projection_months + 1):
        cumulative += burn.monthly_burn_usd
        series.append(
            {
                "month": _add_months(last_month, offset).strftime("%b %y"),
                "projected": float(burn.monthly_burn_usd),
                "cumulative": float(cumulative),
            }
        )
    return series


def category_slices(burn: BurnSnapshot) -> list[dict[str, Any]]:
    """Pie slices for expense categories, coloured by position."""
    return [
        {
            "name": category.category,
            "value": float(category.amount),
            "percentage": float(category.percentage),
            "color": color_for(index),
        }
        for index, category in enumerate(burn.expenses_by_category)
    ]


def total_spent(burn: BurnSnapshot) -> Decimal:
    """Cumulative spend up to the latest month, 0 without history."""
    if not burn.burn_history:
        return Decimal("0")
    return burn.burn_history[-1].cumulative_burn
