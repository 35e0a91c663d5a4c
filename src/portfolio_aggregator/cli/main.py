"""CLI for the wallet portfolio aggregator."""

import asyncio
import logging
import os
from enum import StrEnum

import httpx
import typer
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from portfolio_aggregator.core.aggregator import PortfolioAggregator
from portfolio_aggregator.core.demo import demo_snapshot
from portfolio_aggregator.core.exceptions import AggregationError
from portfolio_aggregator.core.formatting import format_address, format_currency, format_number
from portfolio_aggregator.core.models import MarketData, PortfolioSnapshot, SourceKind
from portfolio_aggregator.core.registry import ReaderRegistry
from portfolio_aggregator.data import get_pricing_settings, get_tracked_tokens
from portfolio_aggregator.pricing import CoinGeckoPricing
from portfolio_aggregator.rpc import ApeChainState, PriceCache, RateLimiter

app = typer.Typer(
    name="portfolio-aggregator",
    help="Aggregate a wallet's token balances and DeFi positions into one portfolio snapshot",
    add_completion=False,
)

console = Console()
logger = logging.getLogger("portfolio_aggregator")


class OutputFormat(StrEnum):
    """Output format options."""

    TABLE = "table"
    JSON = "json"


def _setup_logging(debug: bool) -> None:
    """Route logs through rich; level from --debug or LOG_LEVEL."""
    level_name = "DEBUG" if debug else os.getenv("LOG_LEVEL", "WARNING").upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.WARNING),
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=debug, show_path=False)],
        force=True,
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)


def _pricing() -> CoinGeckoPricing:
    """Build a price source from the configured settings."""
    settings = get_pricing_settings()
    return CoinGeckoPricing(
        cache=PriceCache(ttl=settings["cache_ttl"]),
        rate_limiter=RateLimiter(min_interval=settings["min_request_interval"]),
        base_url=settings["base_url"],
        timeout=settings["timeout"],
    )


def _connect(network: str) -> ApeChainState | None:
    """
    Connect to the chain, or return None to run without a wallet.

    Parameters
    ----------
    network : str
        Ethereum network name

    Returns
    -------
    ApeChainState | None
        Connected provider, None if the connection failed

    """
    provider = ApeChainState(chain="ethereum", network=network)
    try:
        provider.connect()
    except RuntimeError as e:
        console.print(f"[yellow]{e}[/yellow]")
        console.print("[dim]Continuing without chain access. Set WEB3_INFURA_PROJECT_ID to read on-chain data.[/dim]")
        return None
    return provider


async def _aggregate(address: str | None, provider: ApeChainState | None) -> PortfolioSnapshot:
    aggregator = PortfolioAggregator.from_provider(provider)
    try:
        if address is None:
            address = await aggregator.balances.get_wallet_address()
            if address is None:
                console.print("[bold red]No address given and no wallet account available[/bold red]")
                raise typer.Exit(code=1)
        try:
            snapshot = await aggregator.aggregate(address)
        except AggregationError as e:
            console.print(f"[bold red]{e}[/bold red]")
            console.print("[yellow]Showing demonstration data instead[/yellow]")
            return demo_snapshot(address)
        logger.debug("Price cache: %s", aggregator.cache_stats())
        return snapshot
    finally:
        await aggregator.aclose()


@app.command()
def portfolio(
    address: str | None = typer.Argument(None, help="Wallet address (default: first connected account)"),
    format: OutputFormat = typer.Option(OutputFormat.TABLE, "--format", "-f", help="Output format"),
    demo: bool = typer.Option(False, "--demo", help="Show the static demonstration portfolio"),
    network: str = typer.Option("mainnet", "--network", "-n", help="Ethereum network"),
    debug: bool = typer.Option(False, "--debug", "-d", help="Enable debug output"),
) -> None:
    """
    Show the portfolio snapshot for a wallet address.

    Examples:

        # Aggregate live data
        portfolio-aggregator portfolio 0xABC...

        # Demonstration data as JSON
        portfolio-aggregator portfolio --demo --format json
    """
    _setup_logging(debug)

    if demo:
        snapshot = demo_snapshot(address) if address else demo_snapshot()
    else:
        provider = _connect(network)
        try:
            with Progress(SpinnerColumn(), TextColumn("[progress.description]{task.description}"), console=console) as progress:
                task = progress.add_task("Aggregating portfolio...", total=None)
                snapshot = asyncio.run(_aggregate(address, provider))
                progress.update(task, description="✓ Aggregation complete")
        finally:
            if provider is not None:
                provider.disconnect()

    if format == OutputFormat.JSON:
        _output_json(snapshot)
    else:
        _output_table(snapshot)


@app.command()
def prices(
    asset_ids: list[str] = typer.Argument(..., help="CoinGecko asset ids (e.g. ethereum uniswap)"),
    debug: bool = typer.Option(False, "--debug", "-d", help="Enable debug output"),
) -> None:
    """Show current USD prices for a batch of assets."""
    _setup_logging(debug)

    async def _fetch() -> dict:
        async with _pricing() as pricing:
            return await pricing.fetch_prices(asset_ids)

    table_data = asyncio.run(_fetch())

    table = Table(title="Prices", show_header=True, header_style="bold magenta")
    table.add_column("Asset", style="cyan")
    table.add_column("USD", style="bold green", justify="right")
    table.add_column("24h Change", style="yellow", justify="right")

    for asset_id in asset_ids:
        quote = table_data.get(asset_id)
        if quote is None:
            table.add_row(asset_id, "-", "-")
            continue
        change = f"{format_number(quote.usd_24h_change)}%" if quote.usd_24h_change is not None else "-"
        table.add_row(asset_id, format_currency(quote.usd), change)

    console.print(table)


@app.command()
def markets(
    asset_ids: list[str] = typer.Argument(..., help="CoinGecko asset ids (e.g. ethereum uniswap)"),
    debug: bool = typer.Option(False, "--debug", "-d", help="Enable debug output"),
) -> None:
    """Show market details (price, market cap, volume) for a batch of assets."""
    _setup_logging(debug)

    async def _fetch() -> list[MarketData]:
        async with _pricing() as pricing:
            return await pricing.fetch_market_data(asset_ids)

    try:
        rows = asyncio.run(_fetch())
    except (httpx.HTTPError, ValidationError) as e:
        console.print(f"[bold red]Error fetching market data:[/bold red] {e}")
        raise typer.Exit(code=1) from e

    table = Table(title="Markets", show_header=True, header_style="bold magenta")
    table.add_column("#", justify="right")
    table.add_column("Asset", style="cyan")
    table.add_column("Symbol")
    table.add_column("Price", style="bold green", justify="right")
    table.add_column("Market Cap", justify="right")
    table.add_column("24h Volume", justify="right")
    table.add_column("24h Change", style="yellow", justify="right")

    for row in rows:
        table.add_row(
            str(row.market_cap_rank) if row.market_cap_rank is not None else "-",
            row.name,
            row.symbol.upper(),
            format_currency(row.current_price) if row.current_price is not None else "-",
            format_currency(row.market_cap) if row.market_cap is not None else "-",
            format_currency(row.total_volume) if row.total_volume is not None else "-",
            f"{format_number(row.price_change_percentage_24h)}%" if row.price_change_percentage_24h is not None else "-",
        )

    console.print(table)


@app.command()
def list_protocols() -> None:
    """List all supported protocols."""
    table = Table(title="Supported Protocols", show_header=True, header_style="bold magenta")
    table.add_column("Protocol", style="cyan")
    table.add_column("Name", style="green")
    table.add_column("Reader", style="dim")

    for name in ReaderRegistry.list_protocols():
        reader_class = ReaderRegistry.get_reader(name)
        table.add_row(name, reader_class.protocol.display_name, reader_class.__name__)

    console.print(table)


@app.command()
def list_tokens() -> None:
    """List the tokens read for every wallet."""
    table = Table(title="Tracked Tokens", show_header=True, header_style="bold magenta")
    table.add_column("Symbol", style="cyan")
    table.add_column("Address", style="green")
    table.add_column("Price Id", style="yellow")

    for token in get_tracked_tokens():
        table.add_row(token.symbol, token.address, token.asset_id or "-")

    console.print(table)


def _output_table(snapshot: PortfolioSnapshot) -> None:
    """Output snapshot as rich tables."""
    console.print(f"\n[bold cyan]Portfolio for[/bold cyan] {format_address(snapshot.address)}")

    if snapshot.tokens:
        tokens_table = Table(title="Tokens", show_header=True, header_style="bold magenta")
        tokens_table.add_column("Token", style="cyan")
        tokens_table.add_column("Balance", style="white", justify="right")
        tokens_table.add_column("Price", style="yellow", justify="right")
        tokens_table.add_column("USD Value", style="bold green", justify="right")
        for token in snapshot.tokens:
            tokens_table.add_row(
                token.symbol,
                format_number(token.balance, 4),
                format_currency(token.price),
                format_currency(token.value),
            )
        console.print(tokens_table)
    else:
        console.print("[yellow]No token balances found[/yellow]")

    if snapshot.positions:
        positions_table = Table(title="DeFi Positions", show_header=True, header_style="bold magenta")
        positions_table.add_column("Protocol", style="cyan")
        positions_table.add_column("Type", style="yellow")
        positions_table.add_column("Asset", style="green")
        positions_table.add_column("Amount", style="white")
        positions_table.add_column("APY", justify="right")
        positions_table.add_column("Yield", justify="right")
        positions_table.add_column("USD Value", style="bold green", justify="right")
        positions_table.add_column("Source", style="dim")
        for position in snapshot.positions:
            source = snapshot.sources.get(position.protocol, SourceKind.LIVE)
            positions_table.add_row(
                position.protocol.display_name,
                position.kind,
                position.underlying,
                position.amount,
                f"{format_number(position.apy)}%" if position.apy is not None else "-",
                format_currency(position.yield_accrued) if position.yield_accrued is not None else "-",
                format_currency(position.value),
                source.value,
            )
        console.print(positions_table)
    else:
        console.print("[yellow]No DeFi positions found[/yellow]")

    summary_table = Table(show_header=False, box=None)
    summary_table.add_column("Label", style="bold")
    summary_table.add_column("Value", style="bold green")
    summary_table.add_row("Total Value:", format_currency(snapshot.total_value))
    summary_table.add_row("Total Yield:", format_currency(snapshot.total_yield))
    summary_table.add_row("Tokens:", str(len(snapshot.tokens)))
    summary_table.add_row("Positions:", str(len(snapshot.positions)))

    console.print(summary_table)
    console.print("\n")


def _output_json(snapshot: PortfolioSnapshot) -> None:
    """Output snapshot as JSON."""
    console.print_json(snapshot.model_dump_json())


if __name__ == "__main__":
    app()
