"""Published Google Sheets client for the expense ledger."""

import logging
from collections.abc import Sequence
from datetime import date
from typing import Any

from treasury_dashboard.core.expenses import build_burn_snapshot, parse_expenses
from treasury_dashboard.core.models import BurnSnapshot, Expense
from treasury_dashboard.data.loader import RecurringExpenseConfig
from treasury_dashboard.transport.client import CachedJSONClient
from treasury_dashboard.transport.errors import SourceError

logger = logging.getLogger(__name__)


class SheetsClient(CachedJSONClient):
    """
    Reads published spreadsheets through their CSV export URL.

    Parameters
    ----------
    expenses_sheet_id : str
        Id of the expense ledger sheet
    recurring : Sequence[RecurringExpenseConfig]
        Recurring expenses merged into the ledger when computing burn
    base_url : str
        Spreadsheet base URL
    **kwargs
        Forwarded to ``CachedJSONClient``

    """

    BASE_URL = "https://docs.google.com/spreadsheets/d"

    source = "sheets"

    def __init__(
        self,
        expenses_sheet_id: str,
        recurring: Sequence[RecurringExpenseConfig] = (),
        base_url: str = BASE_URL,
        **kwargs: Any,
    ) -> None:
        super().__init__(base_url, **kwargs)
        self.expenses_sheet_id = expenses_sheet_id
        self.recurring = list(recurring)

    async def fetch_sheet_csv(self, sheet_id: str) -> str:
        """Fetch a sheet's CSV export."""
        return await self.fetch_text(f"/{sheet_id}/export", {"format": "csv"})

    async def get_expense_rows(self) -> list[Expense]:
        """
        Fetch and parse the expense ledger.

        Returns
        -------
        list[Expense]
            Expenses in sheet order, empty when the sheet is unavailable

        """
        try:
            text = await self.fetch_sheet_csv(self.expenses_sheet_id)
        except SourceError as e:
            logger.error("Error fetching expenses: %s", e)
            return []
        return parse_expenses(text)

    async def get_expenses(self, today: date | None = None) -> BurnSnapshot:
        """
        Build the burn snapshot from the expense ledger.

        Parameters
        ----------
        today : date | None
            Anchor for the burn window. Uses the current date if None.

        Returns
        -------
        BurnSnapshot
            Burn rate and breakdowns; runway is filled in by the aggregator

        """
        rows = await self.get_expense_rows()
        return build_burn_snapshot(rows, today or date.today(), self.recurring)
