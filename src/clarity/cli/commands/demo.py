"""Demo dataset commands."""

import logging
from typing import Annotated

import typer

from ...analytics import build_dashboard
from ...demo import DemoDataService
from ...models import TransactionType

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="demo",
    help="Inspect the bundled demo dataset",
    no_args_is_help=True,
)


@app.command("summary")
def summary(
    month: Annotated[
        str | None,
        typer.Option("--month", "-m", help="Month to summarize (YYYY-MM or 'all')"),
    ] = None,
) -> None:
    """Print dashboard totals and category breakdown for the demo data.

    Examples:
        clarity demo summary
        clarity demo summary --month 2024-02
    """
    service = DemoDataService()
    dashboard = build_dashboard(service.get_demo_transactions(), month)
    totals = dashboard.totals

    print(f"\n📊 Demo summary ({dashboard.selected_month})")
    print(
        f"   Transactions: {service.count()} "
        f"({service.count(TransactionType.CREDIT)} income, "
        f"{service.count(TransactionType.DEBIT)} expenses)"
    )
    print(f"   Income:   {totals.total_income:>12,.2f}")
    print(f"   Expenses: {totals.total_expenses:>12,.2f}")
    print(f"   Net:      {totals.net:>12,.2f}")

    if dashboard.category_breakdown:
        print("\n   Spending by category:")
        for item in dashboard.category_breakdown:
            print(
                f"   - {item.category:<20} {item.amount:>10,.2f} "
                f"({item.percentage:.1f}%)"
            )
    print(f"\n   Months available: {', '.join(dashboard.available_months)}")
    print()


@app.command("accounts")
def accounts() -> None:
    """Print the demo accounts and net worth.

    Example:
        clarity demo accounts
    """
    service = DemoDataService()
    print("\n🏦 Demo accounts")
    for account in service.get_demo_accounts():
        print(f"   {account.name} ({account.type}): {account.balance:,.2f}")
    print(f"\n   Net worth: {service.get_demo_net_worth():,.2f}")
    print()
