"""Expense parsing, categorisation and burn-rate derivation."""

import csv
import io
import re
from collections.abc import Iterable
from datetime import date, datetime
from decimal import Decimal

from treasury_dashboard.core.models import (
    BurnPoint,
    BurnSnapshot,
    CategoryExpense,
    Expense,
    PayorExpense,
    coerce_decimal,
)
from treasury_dashboard.data.loader import RecurringExpenseConfig

# Monthly burn is averaged over this many calendar months.
BURN_WINDOW_MONTHS = 3
RECENT_EXPENSES_LIMIT = 10

# First matching category wins; keywords are matched as lower-case substrings.
CATEGORY_KEYWORDS: list[tuple[str, tuple[str, ...]]] = [
    ("Personnel", ("cto", "contractor", "salary")),
    ("Software", ("google", "notion", "lucid", "docusign", "subscription")),
    ("Marketing", ("brand", "design", "graphics", "marketing", "website")),
    ("Events & Training", ("conference", "event", "coaching")),
    ("HR & Recruiting", ("bonus", "recruiting")),
]
DEFAULT_CATEGORY = "Other"

DATE_FORMATS = ("%Y-%m-%d", "%m/%d/%Y", "%m/%d/%y", "%Y/%m/%d", "%b %d, %Y", "%B %d, %Y", "%d %b %Y")

_CURRENCY_JUNK = re.compile(r"[$,\s]")


def parse_currency(value: str | None) -> Decimal:
    """
    Parse a spreadsheet currency cell such as ``"$10,000"``.

    Parameters
    ----------
    value : str | None
        Raw cell text

    Returns
    -------
    Decimal
        Parsed amount, 0 for blank or unparseable cells

    """
    if not value:
        return Decimal("0")
    return coerce_decimal(_CURRENCY_JUNK.sub("", value))


def categorize_expense(item: str) -> str:
    """
    Assign a category from the expense description.

    Parameters
    ----------
    item : str
        Expense description

    Returns
    -------
    str
        Category name, ``Other`` when no keyword matches

    """
    item_lower = item.lower()
    for category, keywords in CATEGORY_KEYWORDS:
        if any(keyword in item_lower for keyword in keywords):
            return category
    return DEFAULT_CATEGORY


def parse_expense_date(value: str) -> date | None:
    """Parse a sheet date in any of the accepted formats, None if unrecognised."""
    text = value.strip()
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None


def parse_csv_rows(text: str) -> list[dict[str, str]]:
    """
    Parse CSV text into rows keyed by lower-cased, trimmed header.

    Blank lines are skipped; missing trailing cells become empty strings.
    """
    lines = [line for line in text.splitlines() if line.strip()]
    if len(lines) < 2:
        return []

    reader = csv.reader(io.StringIO("\n".join(lines)))
    headers = [header.strip().lower() for header in next(reader)]
    rows = []
    for values in reader:
        row = {}
        for index, header in enumerate(headers):
            row[header] = values[index].strip() if index < len(values) else ""
        rows.append(row)
    return rows


def expense_from_row(row: dict[str, str]) -> Expense:
    """Build an ``Expense`` from one parsed sheet row."""
    item = row.get("item") or "Unknown"
    return Expense(
        date=row.get("date", ""),
        payor=row.get("payor") or "Unknown",
        item=item,
        cost=parse_currency(row.get("cost")),
        recurring=row.get("recurring", "").lower() in ("yes", "true"),
        annualized=parse_currency(row.get("annualized") or row.get("annual") or ""),
        category=categorize_expense(item),
    )


def parse_expenses(text: str) -> list[Expense]:
    """
    Parse the expense sheet CSV export.

    Rows without a date or a cost are ignored.

    Parameters
    ----------
    text : str
        CSV export body

    Returns
    -------
    list[Expense]
        Expenses in sheet order

    """
    return [expense_from_row(row) for row in parse_csv_rows(text) if row.get("date") and row.get("cost")]


def _month_start(year: int, month: int) -> date:
    """First day of a month, normalising month overflow in either direction."""
    year += (month - 1) // 12
    month = (month - 1) % 12 + 1
    return date(year, month, 1)


def _parse_month(value: str) -> date:
    return datetime.strptime(value.strip(), "%Y-%m").date()


def expand_recurring(schedule: Iterable[RecurringExpenseConfig], today: date) -> list[Expense]:
    """
    Expand the recurring-expense schedule into one ``Expense`` per month.

    Each entry contributes a row dated the first of every month from its
    start month through its end month, never past the current month.

    Parameters
    ----------
    schedule : Iterable[RecurringExpenseConfig]
        Configured recurring expenses
    today : date
        Current date

    Returns
    -------
    list[Expense]
        Generated monthly expenses, ordered by schedule entry then month

    """
    current_month = today.replace(day=1)
    expenses = []
    for entry in schedule:
        month = _parse_month(entry.start)
        last = min(_parse_month(entry.end), current_month) if entry.end else current_month
        while month <= last:
            expenses.append(
                Expense(
                    date=month.isoformat(),
                    payor=entry.payor,
                    item=entry.item,
                    cost=entry.cost,
                    recurring=True,
                    annualized=entry.cost * 12,
                    category=categorize_expense(entry.item),
                )
            )
            month = _month_start(month.year, month.month + 1)
    return expenses


def compute_monthly_burn(expenses: Iterable[Expense], today: date) -> Decimal:
    """
    Average monthly spend over the burn window.

    Sums every expense dated on or after the first day of the month
    ``BURN_WINDOW_MONTHS`` months before ``today`` and divides by the window.
    Expenses with unparseable dates are excluded.
    """
    window_start = _month_start(today.year, today.month - BURN_WINDOW_MONTHS)
    total = Decimal("0")
    for expense in expenses:
        expense_date = parse_expense_date(expense.date)
        if expense_date is not None and expense_date >= window_start:
            total += expense.cost
    return total / BURN_WINDOW_MONTHS


def _shares(totals: dict[str, Decimal], grand_total: Decimal) -> list[tuple[str, Decimal, Decimal]]:
    shares = [
        (key, amount, amount / grand_total * 100 if grand_total > 0 else Decimal("0"))
        for key, amount in totals.items()
    ]
    return sorted(shares, key=lambda share: share[1], reverse=True)


def expense_shares(
    expenses: Iterable[Expense],
) -> tuple[list[CategoryExpense], list[PayorExpense]]:
    """
    Group spend by category and by payor.

    Parameters
    ----------
    expenses : Iterable[Expense]
        Expenses to group

    Returns
    -------
    tuple[list[CategoryExpense], list[PayorExpense]]
        Category and payor totals with their percentage of all spend, each
        sorted by amount descending

    """
    by_category: dict[str, Decimal] = {}
    by_payor: dict[str, Decimal] = {}
    total = Decimal("0")
    for expense in expenses:
        by_category[expense.category] = by_category.get(expense.category, Decimal("0")) + expense.cost
        by_payor[expense.payor] = by_payor.get(expense.payor, Decimal("0")) + expense.cost
        total += expense.cost

    categories = [
        CategoryExpense(category=name, amount=amount, percentage=pct) for name, amount, pct in _shares(by_category, total)
    ]
    payors = [PayorExpense(payor=name, amount=amount, percentage=pct) for name, amount, pct in _shares(by_payor, total)]
    return categories, payors


def build_burn_history(expenses: Iterable[Expense]) -> list[BurnPoint]:
    """
    Monthly spend series with running cumulative totals.

    Parameters
    ----------
    expenses : Iterable[Expense]
        Expenses; undated rows are skipped

    Returns
    -------
    list[BurnPoint]
        One point per month with spend, ordered oldest first

    """
    by_month: dict[str, Decimal] = {}
    for expense in expenses:
        expense_date = parse_expense_date(expense.date)
        if expense_date is None:
            continue
        key = expense_date.strftime("%Y-%m")
        by_month[key] = by_month.get(key, Decimal("0")) + expense.cost

    history = []
    cumulative = Decimal("0")
    for month in sorted(by_month):
        cumulative += by_month[month]
        history.append(BurnPoint(month=month, burn=by_month[month], cumulative_burn=cumulative))
    return history


def build_burn_snapshot(
    sheet_expenses: list[Expense],
    today: date,
    recurring: Iterable[RecurringExpenseConfig] = (),
) -> BurnSnapshot:
    """
    Derive the burn snapshot from sheet rows and the recurring schedule.

    Runway is left at 0; it depends on treasury value and is filled in by the
    aggregator.

    Parameters
    ----------
    sheet_expenses : list[Expense]
        Expenses from the sheet, in sheet order
    today : date
        Current date, anchors the burn window
    recurring : Iterable[RecurringExpenseConfig]
        Recurring-expense schedule

    Returns
    -------
    BurnSnapshot
        Burn, breakdowns, recent expenses and monthly history

    """
    expenses = sheet_expenses + expand_recurring(recurring, today)
    monthly_burn = compute_monthly_burn(expenses, today)
    categories, payors = expense_shares(expenses)
    return BurnSnapshot(
        monthly_burn=monthly_burn,
        monthly_burn_usd=monthly_burn,
        runway_months=Decimal("0"),
        expenses_by_category=categories,
        expenses_by_payor=payors,
        recent_expenses=list(reversed(sheet_expenses[-RECENT_EXPENSES_LIMIT:])),
        burn_history=build_burn_history(expenses),
    )
