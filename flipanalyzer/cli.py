"""CLI interface for FlipAnalyzer."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from flipanalyzer.analysis.buybox import analyze_deal, summarize
from flipanalyzer.analysis.calculator import QuickCalculator
from flipanalyzer.config import load_config, load_secrets
from flipanalyzer.formatting import format_currency, format_date, format_percent
from flipanalyzer.models import BuyBox, Deal, QuickCalcInput, RehabTemplate

app = typer.Typer(
    name="flipanalyzer",
    help="Fix-and-flip deal analyzer - grade deals against your buy box.",
    no_args_is_help=True,
)
console = Console()

GRADE_STYLES = {"A": "bold green", "B": "bold blue", "C": "bold yellow", "D": "bold red"}


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


@app.command()
def analyze(
    address: str = typer.Argument(..., help="Property address"),
    price: str = typer.Option(..., "--price", "-p", help="List price"),
    arv: str = typer.Option(..., "--arv", "-a", help="Estimated after-repair value"),
    rehab: str = typer.Option("0", "--rehab", "-r", help="Rehab estimate"),
    rate: float = typer.Option(None, "--rate", help="Hard money rate (%)"),
    points: float = typer.Option(None, "--points", help="Hard money points (%)"),
    months: int = typer.Option(None, "--months", help="Holding period in months"),
    config_path: Path = typer.Option(None, "--config", "-c"),
):
    """Grade a property against the configured buy box."""
    cfg = load_config(config_path)

    overrides = {
        "hard_money_rate": rate,
        "hard_money_points": points,
        "holding_period_months": months,
    }
    buy_box = BuyBox(
        **{
            **cfg.buy_box.model_dump(),
            **{k: v for k, v in overrides.items() if v is not None},
        }
    )
    deal = Deal(address=address, list_price=price, estimated_arv=arv, rehab_estimate=rehab)

    analysis = analyze_deal(deal, buy_box)
    style = GRADE_STYLES[analysis.grade.value]
    console.print()
    console.print(
        Panel(
            summarize(deal, analysis),
            title=f"Grade [{style}]{analysis.grade.value}[/{style}] - Buy box: {buy_box.name}",
        )
    )


@app.command()
def quick(
    price: str = typer.Option(..., "--price", "-p", help="Purchase price"),
    arv: str = typer.Option("", "--arv", help="Manual ARV override"),
    zillow: str = typer.Option("", "--zillow", help="Zillow estimate"),
    redfin: str = typer.Option("", "--redfin", help="Redfin estimate"),
    realtor: str = typer.Option("", "--realtor", help="Realtor.com estimate"),
    comp: list[str] = typer.Option(None, "--comp", help="Comparable sale price (repeatable)"),
    rehab: str = typer.Option("", "--rehab", "-r", help="Rehab budget"),
    template: RehabTemplate = typer.Option(RehabTemplate.CUSTOM, "--template", help="Rehab template"),
    buying_costs: str = typer.Option("", "--buying-costs"),
    selling_costs: str = typer.Option("", "--selling-costs"),
    address: str = typer.Option("", "--address"),
    config_path: Path = typer.Option(None, "--config", "-c"),
):
    """Run the quick flip calculator."""
    cfg = load_config(config_path)
    calculator = QuickCalculator(cfg.calculator)

    data = QuickCalcInput(
        address=address,
        purchase_price=price,
        arv_manual=arv,
        zillow=zillow,
        redfin=redfin,
        realtor=realtor,
        comps=[{"price": p} for p in (comp or [])],
        rehab=rehab,
        rehab_template=template,
        buying_costs=buying_costs,
        selling_costs=selling_costs,
    )
    result = calculator.calculate(data)
    console.print()
    console.print(Panel(calculator.summary(data, result), title="Quick Calculator"))


@app.command()
def deals(
    user: str = typer.Option(..., "--user", "-u", help="User id"),
    limit: int = typer.Option(20, "--limit", "-l", help="Max deals to show"),
    config_path: Path = typer.Option(None, "--config", "-c"),
):
    """List a user's saved deals with their stored grades."""
    from flipanalyzer.db.repository import Repository

    cfg = load_config(config_path)
    repo = Repository(cfg.database.url)
    saved = repo.get_deals(user)[:limit]
    analyses = repo.get_analyses(user)

    if not saved:
        console.print("[yellow]No deals saved for this user.[/yellow]")
        return

    table = Table(title="Deals", show_lines=True)
    table.add_column("#", style="dim", width=3)
    table.add_column("Grade", style="bold")
    table.add_column("Address", style="white")
    table.add_column("List", style="green")
    table.add_column("ARV", style="green")
    table.add_column("Profit", style="yellow")
    table.add_column("CoC", style="yellow")
    table.add_column("Status", style="cyan")
    table.add_column("Added", style="dim")

    for i, deal in enumerate(saved, 1):
        analysis = analyses.get(deal.id)
        if analysis:
            style = GRADE_STYLES[analysis.grade.value]
            grade = f"[{style}]{analysis.grade.value}[/{style}]"
            profit = format_currency(analysis.projected_profit)
            coc = format_percent(analysis.cash_on_cash_roi)
        else:
            grade, profit, coc = "-", "-", "-"
        table.add_row(
            str(i),
            grade,
            deal.address[:35],
            format_currency(deal.list_price),
            format_currency(deal.estimated_arv),
            profit,
            coc,
            deal.status.value,
            format_date(deal.created_at),
        )

    console.print(table)


@app.command()
def sync(
    user: str = typer.Option(..., "--user", "-u", help="User id"),
    config_path: Path = typer.Option(None, "--config", "-c"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
):
    """Sync a user's closed deals to Rooted Wealth."""
    setup_logging(verbose)
    cfg = load_config(config_path)
    result = asyncio.run(_run_sync(cfg, user))

    console.print(f"[bold green]Synced {result.synced}[/bold green], [bold red]failed {result.failed}[/bold red]")
    for error in result.errors:
        console.print(f"  [red]{error}[/red]")
    if result.failed:
        raise typer.Exit(code=1)


async def _run_sync(cfg, user: str):
    from flipanalyzer.db.repository import Repository
    from flipanalyzer.integrations.rooted import RootedClient

    client = RootedClient(Repository(cfg.database.url), load_secrets(), cfg.integrations)
    try:
        return await client.sync_all_closed_deals(user)
    finally:
        await client.close()


@app.command()
def config_show(
    config_path: Path = typer.Option(None, "--config", "-c"),
):
    """Display current configuration."""
    cfg = load_config(config_path)
    data = {**cfg.model_dump(), "integrations_env": load_secrets().safe_dump()}
    console.print_json(json.dumps(data, indent=2, default=str))


@app.command()
def serve(
    config_path: Path = typer.Option(None, "--config", "-c"),
    host: str = typer.Option(None, "--host"),
    port: int = typer.Option(None, "--port"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
):
    """Start the API server."""
    import uvicorn

    setup_logging(verbose)
    cfg = load_config(config_path)
    host = host or cfg.server.host
    port = port or cfg.server.port

    from flipanalyzer.api.server import create_app

    web_app = create_app(cfg)
    console.print(f"[bold]Starting FlipAnalyzer API at http://{host}:{port}[/bold]")
    uvicorn.run(web_app, host=host, port=port)


if __name__ == "__main__":
    app()
