"""Demo-mode routes serving the bundled dataset without authentication."""

from typing import Any

from fastapi import APIRouter, Depends, Query

from ...analytics import DashboardSummary, build_dashboard
from ...demo import DemoDataService
from ..dependencies import get_demo
from ..errors import bad_request
from .transactions import validate_month

router = APIRouter(prefix="/api/demo", tags=["demo"])


@router.get("/transactions")
def demo_transactions(
    start_date: str | None = Query(None),
    end_date: str | None = Query(None),
    demo: DemoDataService = Depends(get_demo),
) -> dict[str, Any]:
    """Signed demo transactions, optionally limited to a date range."""
    if (start_date is None) != (end_date is None):
        raise bad_request("Both start_date and end_date are required for a range")

    if start_date is not None and end_date is not None:
        try:
            transactions = demo.get_transactions_by_date_range(start_date, end_date)
        except ValueError as e:
            raise bad_request("Invalid date format", details=str(e)) from e
    else:
        transactions = demo.get_demo_transactions()

    return {
        "transactions": [t.model_dump() for t in transactions],
        "count": len(transactions),
    }


@router.get("/accounts")
def demo_accounts(demo: DemoDataService = Depends(get_demo)) -> dict[str, Any]:
    accounts = demo.get_demo_accounts()
    return {
        "accounts": [a.model_dump() for a in accounts],
        "net_worth": demo.get_demo_net_worth(),
    }


@router.get("/dashboard")
def demo_dashboard(
    month: str | None = Depends(validate_month),
    demo: DemoDataService = Depends(get_demo),
) -> DashboardSummary:
    """Dashboard figures computed over the demo dataset."""
    return build_dashboard(demo.get_demo_transactions(), month)
