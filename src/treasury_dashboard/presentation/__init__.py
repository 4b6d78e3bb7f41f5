"""Formatting helpers, chart series and terminal views."""

from treasury_dashboard.presentation.charts import (
    PALETTE,
    burn_series,
    category_slices,
    color_for,
    price_series,
)
from treasury_dashboard.presentation.formatting import (
    format_change,
    format_compact_currency,
    format_currency,
    format_number,
    format_percent,
    runway_text,
    shorten_address,
    status_banner,
)
from treasury_dashboard.presentation.views import dashboard_view

__all__ = [
    "PALETTE",
    "burn_series",
    "category_slices",
    "color_for",
    "dashboard_view",
    "format_change",
    "format_compact_currency",
    "format_currency",
    "format_number",
    "format_percent",
    "price_series",
    "runway_text",
    "shorten_address",
    "status_banner",
]
