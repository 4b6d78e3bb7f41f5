"""CLI for the subnet treasury dashboard."""

import asyncio
import json
import logging
from enum import StrEnum
from pathlib import Path

import typer
import uvicorn
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table
from rich.traceback import install

from treasury_dashboard.api.server import create_app
from treasury_dashboard.core.aggregator import DashboardAggregator
from treasury_dashboard.core.context import build_context
from treasury_dashboard.core.models import DashboardSnapshot
from treasury_dashboard.core.refresher import DashboardRefresher
from treasury_dashboard.data.loader import DashboardConfig, load_config
from treasury_dashboard.presentation.formatting import shorten_address
from treasury_dashboard.presentation.views import dashboard_view

app = typer.Typer(
    name="treasury-dashboard",
    help="Treasury, burn rate, staking and trade dashboard for a Bittensor subnet",
    add_completion=False,
)

console = Console()

# Set by the --config option on the root command
CONFIG_PATH: Path | None = None


class OutputFormat(StrEnum):
    """Output format options."""

    TABLE = "table"
    JSON = "json"


def _setup_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=debug)],
        force=True,
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.DEBUG if debug else logging.WARNING)


def _load_config() -> DashboardConfig:
    try:
        return load_config(CONFIG_PATH)
    except Exception as e:
        console.print(f"[bold red]Failed to load configuration:[/bold red] {e}")
        raise typer.Exit(code=1)


async def _fetch_snapshot(config: DashboardConfig) -> DashboardSnapshot:
    context = build_context(config)
    try:
        return await DashboardAggregator(context).aggregate()
    finally:
        await context.aclose()


@app.callback()
def main(
    config: Path | None = typer.Option(None, "--config", help="Alternate dashboard YAML file"),
    debug: bool = typer.Option(False, "--debug", "-d", help="Enable debug output"),
) -> None:
    """Aggregate treasury data from Taostats, Etherscan, CoinGecko and the expense sheet."""
    global CONFIG_PATH
    CONFIG_PATH = config
    _setup_logging(debug)
    if debug:
        install(show_locals=True)


@app.command()
def snapshot(
    format: OutputFormat = typer.Option(OutputFormat.TABLE, "--format", "-f", help="Output format"),
) -> None:
    """
    Fetch every source once and print the dashboard.

    Examples:

        # Rich tables
        treasury-dashboard snapshot

        # Same payload as GET /api/dashboard
        treasury-dashboard snapshot --format json
    """
    config = _load_config()

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
        transient=True,
    ) as progress:
        progress.add_task(f"Fetching {config.subnet.name} treasury data...", total=None)
        try:
            result = asyncio.run(_fetch_snapshot(config))
        except Exception as e:
            progress.stop()
            console.print(f"[bold red]Error:[/bold red] {e}")
            raise typer.Exit(1)

    if format == OutputFormat.JSON:
        _output_json(result)
    else:
        console.print(dashboard_view(result))


@app.command()
def watch(
    interval: float | None = typer.Option(
        None, "--interval", "-i", help="Seconds between refreshes (default from config)"
    ),
    count: int | None = typer.Option(None, "--count", "-n", help="Stop after this many refreshes"),
) -> None:
    """
    Refresh the dashboard on a fixed interval.

    The last good snapshot stays on screen when a refresh fails, with a
    warning banner describing the error.
    """
    config = _load_config()
    seconds = interval if interval is not None else config.refresh_interval

    def render(refresher: DashboardRefresher) -> None:
        console.clear()
        console.print(dashboard_view(refresher.current(), refresher.last_error))
        console.print(f"[dim]Refreshing every {seconds:g}s, Ctrl+C to stop[/dim]")

    async def loop() -> None:
        context = build_context(config)
        try:
            refresher = DashboardRefresher(DashboardAggregator(context))
            await refresher.run(seconds, on_update=render, iterations=count)
        finally:
            await context.aclose()

    try:
        asyncio.run(loop())
    except KeyboardInterrupt:
        console.print("\n[yellow]Stopped[/yellow]")


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", "--host", help="Bind address"),
    port: int = typer.Option(8000, "--port", "-p", help="Bind port"),
) -> None:
    """Serve GET /api/dashboard and GET /health over HTTP."""
    config = _load_config()
    console.print(f"[bold cyan]Serving {config.subnet.name} dashboard on[/bold cyan] http://{host}:{port}")
    uvicorn.run(create_app(config=config), host=host, port=port, log_level="info")


@app.command()
def wallets() -> None:
    """List the configured treasury wallets."""
    config = _load_config()

    table = Table(title="Treasury Wallets", show_header=True, header_style="bold magenta")
    table.add_column("Network", style="blue")
    table.add_column("Name", style="cyan")
    table.add_column("Address", style="green")
    table.add_column("Role", style="yellow")
    table.add_column("Description", style="dim")

    for network, entries in config.wallets.items():
        for wallet in entries:
            table.add_row(
                network,
                wallet.name,
                shorten_address(wallet.address),
                wallet.role or "-",
                wallet.description,
            )

    console.print(table)


def _output_json(result: DashboardSnapshot) -> None:
    """Output the snapshot as JSON."""
    console.print(json.dumps(result.to_json_dict(), indent=2), soft_wrap=True, markup=False, highlight=False)


if __name__ == "__main__":
    app()
