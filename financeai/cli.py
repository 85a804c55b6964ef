# financeai/cli.py
import json

import click
from dotenv import load_dotenv

from financeai.budget_store import clear_limits, load_limits, save_limits
from financeai.config import load_config
from financeai.core.aggregator import Period
from financeai.core.models import TRACKED_CATEGORIES
from financeai.core.reconciler import BudgetLimits, InvalidInput
from financeai.dashboard import load_dashboard
from financeai.sources import get_source
from financeai.sources.base import SourceError
from financeai.utils import validate_month


def _load(config_path, env_file):
    if env_file:
        load_dotenv(env_file)
    return load_config(config_path)


config_option = click.option(
    '--config', 'config_path',
    default=None,
    type=click.Path(dir_okay=False),
    help='Path to config.yaml (defaults to $FINANCEAI_CONFIG or built-in defaults)'
)
env_option = click.option(
    '--env-file', 'env_file',
    default=None,
    type=click.Path(exists=True, dir_okay=False),
    help='Optional .env file containing API keys'
)
customer_option = click.option(
    '--customer', 'customer_id',
    required=True,
    help='Customer identifier (demo username or Nessie customer id)'
)


def _fetch(cfg, customer_id, month=None):
    limits = load_limits(cfg['budgets_file'], customer_id)
    source = get_source(cfg['source'], cfg)
    period = Period.month(validate_month(month)) if month else None
    return load_dashboard(
        source,
        customer_id,
        limits,
        period_filter=period,
        recent=cfg['dashboard']['recent_transactions'],
        daily_window=cfg['dashboard']['daily_window'],
    )


@click.group()
def main():
    """
    Spending summaries, budget progress and an AI advisor over
    transactions fetched from a banking-data source.
    """


@main.command()
@customer_option
@click.option('--month', default=None, help='Only count spending in this YYYY-MM month')
@click.option('--json', 'as_json', is_flag=True, default=False, help='Print the dashboard as JSON')
@click.option(
    '--ai-report',
    is_flag=True,
    default=False,
    help='Send the reconciled figures to an LLM and display the generated report.'
)
@config_option
@env_option
def report(customer_id, month, as_json, ai_report, config_path, env_file):
    """Print spending per category and progress against budgets."""
    cfg = _load(config_path, env_file)
    try:
        data = _fetch(cfg, customer_id, month)
    except (SourceError, InvalidInput, ValueError) as e:
        raise click.ClickException(str(e))

    if as_json:
        click.echo(json.dumps(data.to_dict(), indent=2))
    else:
        name = data.customer.full_name or customer_id
        click.echo(f"Spending for {name}" + (f" ({month})" if month else ""))
        for label in TRACKED_CATEGORIES:
            click.echo(f"  {label.value:<16} {data.totals[label]:>10.2f}")
        click.echo(f"  {'Total':<16} {data.totals.grand_total:>10.2f}")

        if data.report.is_empty:
            click.echo("\nNo budgets set. Use `financeai budgets set` to track categories.")
        else:
            click.echo("\nBudget progress:")
            rows = list(data.report.categories.values()) + [data.report.overall]
            for progress in rows:
                name = progress.label.value if progress.label else "Overall"
                if progress.is_over_budget:
                    tail = f"over by {progress.overage:.2f}"
                else:
                    tail = f"{progress.remaining:.2f} remaining"
                click.echo(
                    f"  {name:<16} {progress.spent:>10.2f} / {progress.limit:<10.2f}"
                    f" {progress.percentage:5.1f}%  {progress.status.value:<11} {tail}"
                )

    if ai_report:
        from financeai.ai.advisor import generate_report
        click.echo("\nAI Report:\n" + generate_report(data))


@main.group()
def budgets():
    """Show or replace a customer's monthly budget limits."""


@budgets.command('show')
@customer_option
@config_option
def budgets_show(customer_id, config_path):
    cfg = load_config(config_path)
    limits = load_limits(cfg['budgets_file'], customer_id)
    for label in TRACKED_CATEGORIES:
        value = limits[label]
        shown = f"{value:.2f}" if value > 0 else "not tracked"
        click.echo(f"{label.budget_key}: {shown}")


@budgets.command('set')
@customer_option
@click.option('--transportation', type=float, default=None)
@click.option('--food-dining', 'foodDining', type=float, default=None)
@click.option('--healthcare', type=float, default=None)
@click.option('--entertainment', type=float, default=None)
@click.option('--shopping', type=float, default=None)
@config_option
def budgets_set(customer_id, config_path, **amounts):
    """Replace all limits; omitted categories become untracked."""
    cfg = load_config(config_path)
    try:
        limits = BudgetLimits.from_mapping(amounts)
    except InvalidInput as e:
        raise click.ClickException(str(e))
    save_limits(cfg['budgets_file'], customer_id, limits)
    tracked = ", ".join(label.value for label in limits.tracked) or "none"
    click.echo(f"Saved budgets for {customer_id} (tracking: {tracked}).")


@budgets.command('clear')
@customer_option
@config_option
def budgets_clear(customer_id, config_path):
    cfg = load_config(config_path)
    clear_limits(cfg['budgets_file'], customer_id)
    click.echo(f"Cleared budgets for {customer_id}.")


@main.command()
@customer_option
@click.argument('message')
@config_option
@env_option
def chat(customer_id, message, config_path, env_file):
    """Ask the AI advisor a question about your spending."""
    from financeai.ai.advisor import ChatAdvisor

    cfg = _load(config_path, env_file)
    try:
        data = _fetch(cfg, customer_id)
    except (SourceError, InvalidInput, ValueError) as e:
        raise click.ClickException(str(e))
    advisor = ChatAdvisor(history_limit=cfg['chat']['history_limit'])
    click.echo(advisor.reply(message, data))


@main.command()
@click.option('--host', default='127.0.0.1', help='Host to bind (default: 127.0.0.1)')
@click.option('--port', default=8081, type=int, help='Port to bind (default: 8081)')
@env_option
def serve(host, port, env_file):
    """Run the JSON API."""
    import uvicorn

    if env_file:
        load_dotenv(env_file)
    uvicorn.run("webapp.main:app", host=host, port=port)
