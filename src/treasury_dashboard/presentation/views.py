"""Rich renderables for the terminal dashboard."""

from rich.console import Group
from rich.panel import Panel
from rich.table import Table

from treasury_dashboard.core.models import DashboardSnapshot
from treasury_dashboard.presentation.charts import burn_series, category_slices, price_series, total_spent
from treasury_dashboard.presentation.formatting import (
    format_change,
    format_compact_currency,
    format_currency,
    format_number,
    format_percent,
    format_timestamp,
    runway_text,
    shorten_address,
    status_banner,
)


def _change_style(text: str) -> str:
    colour = "red" if text.startswith("-") else "green"
    return f"[{colour}]{text}[/{colour}]"


def banner_panel(error: str | None, snapshot: DashboardSnapshot | None) -> Panel | None:
    """Yellow warning panel for fetch errors or placeholder data, None otherwise."""
    text = status_banner(error, snapshot)
    if text is None:
        return None
    return Panel(text, style="yellow", title="Warning", title_align="left")


def overview_table(snapshot: DashboardSnapshot) -> Table:
    """Headline figures: treasury value, prices, burn and runway."""
    treasury = snapshot.treasury
    burn = snapshot.burn_rate

    table = Table(title="Treasury Overview", show_header=False, header_style="bold magenta")
    table.add_column("Label", style="bold")
    table.add_column("Value", style="bold green", justify="right")

    table.add_row("Total Treasury:", format_currency(treasury.total_usd))
    table.add_row("TAO Holdings:", f"{format_number(treasury.total_tao)} TAO")
    table.add_row("ETH Holdings:", f"{format_number(treasury.total_eth, 4)} ETH")
    table.add_row("TAO Price:", format_currency(treasury.tao_price, 2))
    table.add_row("24h Change:", _change_style(format_change(treasury.change_24h)))
    table.add_row("7d Change:", _change_style(format_change(treasury.change_7d)))
    table.add_row("Monthly Burn:", format_currency(burn.monthly_burn_usd))
    table.add_row("Total Spent:", format_currency(total_spent(burn)))
    table.add_row("Runway:", runway_text(burn.runway_months))
    table.add_row("Delegated Stake:", f"{format_number(snapshot.staking.total_delegated)} TAO")
    table.add_row("Subnet Token:", format_currency(snapshot.subnet_price.current, 4))
    return table


def wallets_table(snapshot: DashboardSnapshot) -> Table:
    """Per-wallet balances."""
    table = Table(title="Wallets", show_header=True, header_style="bold magenta")
    table.add_column("Wallet", style="cyan")
    table.add_column("Network", style="blue")
    table.add_column("Address", style="dim")
    table.add_column("Balance", style="white", justify="right")
    table.add_column("USD Value", style="bold green", justify="right")

    for wallet in snapshot.treasury.wallets:
        table.add_row(
            wallet.name,
            wallet.network.value,
            shorten_address(wallet.address),
            f"{format_number(wallet.balance, 4)} {wallet.token}",
            format_currency(wallet.balance_usd, 2),
        )
    return table


def expenses_table(snapshot: DashboardSnapshot) -> Table:
    """Spend by category with each category's share."""
    table = Table(title="Expenses by Category", show_header=True, header_style="bold magenta")
    table.add_column("Category", style="cyan")
    table.add_column("Amount", style="white", justify="right")
    table.add_column("Share", style="yellow", justify="right")

    for slice_ in category_slices(snapshot.burn_rate):
        table.add_row(
            f"[{slice_['color']}]●[/] {slice_['name']}",
            format_currency(slice_["value"]),
            format_percent(slice_["percentage"]),
        )
    return table


def burn_table(snapshot: DashboardSnapshot) -> Table:
    """Monthly burn, actual then projected."""
    table = Table(title="Burn History", show_header=True, header_style="bold magenta")
    table.add_column("Month", style="cyan")
    table.add_column("Burn", style="white", justify="right")
    table.add_column("Cumulative", style="green", justify="right")

    for point in burn_series(snapshot.burn_rate):
        if "projected" in point:
            table.add_row(
                f"[dim]{point['month']}[/dim]",
                f"[dim]{format_compact_currency(point['projected'])} (projected)[/dim]",
                f"[dim]{format_compact_currency(point['cumulative'])}[/dim]",
            )
        else:
            table.add_row(
                point["month"],
                format_compact_currency(point["burn"]),
                format_compact_currency(point["cumulative"]),
            )
    return table


def price_history_table(snapshot: DashboardSnapshot, days: int = 7) -> Table:
    """Subnet token closing price per day, most recent days last."""
    daily: dict[str, float] = {}
    for point in price_series(snapshot.subnet_price):
        daily[point["date"]] = point["price"]

    table = Table(title="Subnet Token Price", show_header=True, header_style="bold magenta")
    table.add_column("Date", style="cyan")
    table.add_column("Price", style="green", justify="right")

    for day, close in list(daily.items())[-days:]:
        table.add_row(day, format_currency(close, 4))
    return table


def transactions_table(snapshot: DashboardSnapshot, limit: int = 10) -> Table:
    """Most recent transfers, large ones highlighted."""
    table = Table(title="Recent Transactions", show_header=True, header_style="bold magenta")
    table.add_column("Time", style="dim")
    table.add_column("Wallet", style="cyan")
    table.add_column("Type", style="yellow")
    table.add_column("Counterparty", style="blue")
    table.add_column("Amount", justify="right")
    table.add_column("USD", justify="right")

    for tx in snapshot.transactions[:limit]:
        counterparty = tx.to_address if tx.type.value == "send" else tx.from_address
        amount_style = "bold red" if tx.is_large else "white"
        table.add_row(
            format_timestamp(tx.timestamp),
            tx.wallet,
            tx.type.value,
            shorten_address(counterparty),
            f"[{amount_style}]{format_number(tx.amount)} TAO[/{amount_style}]",
            format_currency(tx.amount_usd),
        )
    return table


def alpha_trades_table(snapshot: DashboardSnapshot, limit: int = 10) -> Table:
    """Most recent subnet alpha trades."""
    table = Table(title="Alpha Trades", show_header=True, header_style="bold magenta")
    table.add_column("Time", style="dim")
    table.add_column("Type", style="yellow")
    table.add_column("Coldkey", style="cyan")
    table.add_column("Alpha", justify="right")
    table.add_column("TAO", justify="right")
    table.add_column("USD", style="green", justify="right")

    for trade in snapshot.alpha_trades[:limit]:
        table.add_row(
            format_timestamp(trade.timestamp),
            trade.type.value,
            shorten_address(trade.coldkey),
            format_number(trade.alpha_amount),
            format_number(trade.tao_amount),
            format_currency(trade.amount_usd),
        )
    return table


def dashboard_view(snapshot: DashboardSnapshot, error: str | None = None) -> Group:
    """
    Full terminal dashboard.

    Parameters
    ----------
    snapshot : DashboardSnapshot
        Snapshot to render
    error : str | None
        Last refresh error, shown in the warning banner

    Returns
    -------
    Group
        Banner (if any) followed by every table

    """
    parts = []
    banner = banner_panel(error, snapshot)
    if banner is not None:
        parts.append(banner)
    parts.extend(
        [
            overview_table(snapshot),
            wallets_table(snapshot),
            expenses_table(snapshot),
            burn_table(snapshot),
            price_history_table(snapshot),
            transactions_table(snapshot),
            alpha_trades_table(snapshot),
        ]
    )
    if snapshot.last_updated:
        parts.append(f"[dim]Last updated {format_timestamp(snapshot.last_updated, '%Y-%m-%d %H:%M:%S UTC')}[/dim]")
    return Group(*parts)
