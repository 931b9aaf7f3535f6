"""Dashboard aggregations over a list of transactions.

All functions are pure: they take transactions (stored or demo) and return
new values. Amounts are aggregated as magnitudes with the direction taken
from ``type``, so signed demo amounts and unsigned stored amounts produce the
same results. Grouping is done with Polars.
"""

from collections.abc import Mapping, Sequence
from typing import Any

import polars as pl
from pydantic import BaseModel

from ..models import Transaction, TransactionType

ALL = "all"
RECENT_LIMIT = 5

_FRAME_SCHEMA: dict[str, type[pl.DataType]] = {
    "date": pl.Utf8,
    "description": pl.Utf8,
    "amount": pl.Float64,
    "type": pl.Utf8,
    "category": pl.Utf8,
}

_CREDIT = pl.col("type") == TransactionType.CREDIT.value
_DEBIT = pl.col("type") == TransactionType.DEBIT.value


class FinancialTotals(BaseModel):
    """Income, expenses and net over a set of transactions."""

    total_income: float
    total_expenses: float
    net: float
    income_count: int
    expense_count: int


class CategorySpending(BaseModel):
    """Expense total for one category."""

    category: str
    amount: float
    percentage: float


class MonthlyTrend(BaseModel):
    """Income and expenses for one ``YYYY-MM`` month."""

    month: str
    income: float
    expenses: float
    net: float


class DashboardSummary(BaseModel):
    """Everything the dashboard page renders."""

    selected_month: str
    totals: FinancialTotals
    category_breakdown: list[CategorySpending]
    monthly_trend: list[MonthlyTrend]
    available_months: list[str]
    recent_transactions: list[Transaction]


def _is_all(value: str | None) -> bool:
    return value is None or value == "" or value == ALL


def to_frame(transactions: Sequence[Transaction]) -> pl.DataFrame:
    """Build a DataFrame of magnitudes with a derived ``month`` column.

    Args:
        transactions: Stored or demo transactions

    Returns:
        pl.DataFrame: Columns date, description, amount, type, category, month
    """
    rows = [
        {
            "date": t.date,
            "description": t.description,
            "amount": abs(t.amount),
            "type": t.type,
            "category": t.category,
        }
        for t in transactions
    ]
    return pl.DataFrame(rows, schema=_FRAME_SCHEMA).with_columns(
        pl.col("date").str.slice(0, 7).alias("month")
    )


def _sum(df: pl.DataFrame) -> float:
    return float(df["amount"].sum() or 0.0)


def compute_totals(transactions: Sequence[Transaction]) -> FinancialTotals:
    """Total income, total expenses and net.

    Args:
        transactions: Transactions to summarize

    Returns:
        FinancialTotals: ``net`` is exactly ``total_income - total_expenses``
    """
    df = to_frame(transactions)
    credits = df.filter(_CREDIT)
    debits = df.filter(_DEBIT)
    total_income = _sum(credits)
    total_expenses = _sum(debits)
    return FinancialTotals(
        total_income=total_income,
        total_expenses=total_expenses,
        net=total_income - total_expenses,
        income_count=credits.height,
        expense_count=debits.height,
    )


def filter_by_month(
    transactions: Sequence[Transaction], month: str | None
) -> list[Transaction]:
    """Transactions whose date falls in ``month`` (``YYYY-MM``); all if ``month`` is unset."""
    if _is_all(month):
        return list(transactions)
    return [t for t in transactions if t.month == month]


def _category_sums(debits: pl.DataFrame) -> pl.DataFrame:
    return debits.group_by("category").agg(pl.col("amount").abs().sum())


def category_totals(transactions: Sequence[Transaction]) -> dict[str, float]:
    """Expense total per category (debits only)."""
    debits = to_frame(transactions).filter(_DEBIT)
    grouped = _category_sums(debits)
    return {row["category"]: row["amount"] for row in grouped.iter_rows(named=True)}


def rank_spending(rows: Sequence[Mapping[str, Any]]) -> list[dict[str, Any]]:
    """Sum debit rows (``{category, amount}``) per category, largest first.

    Ties are ordered by category name; amounts are rounded to cents.
    """
    debits = pl.DataFrame(
        [{"category": r["category"], "amount": r["amount"]} for r in rows],
        schema={"category": pl.Utf8, "amount": pl.Float64},
    )
    ranked = _category_sums(debits).sort(
        ["amount", "category"], descending=[True, False]
    )
    return [
        {"category": row["category"], "amount": round(row["amount"], 2)}
        for row in ranked.iter_rows(named=True)
    ]


def category_breakdown(
    transactions: Sequence[Transaction], month: str | None = None
) -> list[CategorySpending]:
    """Expense totals per category with their share of all expenses.

    Args:
        transactions: Transactions to group
        month: Optional ``YYYY-MM`` month to restrict to

    Returns:
        list[CategorySpending]: Largest category first; percentages are of the
        (month-filtered) expense total and are 0 when there are no expenses
    """
    debits = to_frame(filter_by_month(transactions, month)).filter(_DEBIT)
    expense_total = _sum(debits)
    grouped = (
        debits.group_by("category")
        .agg(pl.col("amount").sum())
        .sort(["amount", "category"], descending=[True, False])
    )
    return [
        CategorySpending(
            category=row["category"],
            amount=row["amount"],
            percentage=(row["amount"] / expense_total * 100) if expense_total > 0 else 0.0,
        )
        for row in grouped.iter_rows(named=True)
    ]


def monthly_trend(transactions: Sequence[Transaction]) -> list[MonthlyTrend]:
    """Income, expenses and net per month, oldest month first."""
    df = to_frame(transactions)
    grouped = (
        df.group_by("month")
        .agg(
            pl.when(_CREDIT)
            .then(pl.col("amount"))
            .otherwise(0.0)
            .sum()
            .alias("income"),
            pl.when(_CREDIT)
            .then(0.0)
            .otherwise(pl.col("amount"))
            .sum()
            .alias("expenses"),
        )
        .sort("month")
    )
    return [
        MonthlyTrend(
            month=row["month"],
            income=row["income"],
            expenses=row["expenses"],
            net=row["income"] - row["expenses"],
        )
        for row in grouped.iter_rows(named=True)
    ]


def available_months(transactions: Sequence[Transaction]) -> list[str]:
    """Distinct ``YYYY-MM`` months, newest first."""
    return sorted({t.month for t in transactions}, reverse=True)


def filter_transactions(
    transactions: Sequence[Transaction],
    search: str | None = None,
    category: str | None = None,
    type: str | None = None,
) -> list[Transaction]:
    """Apply the transaction list filters; all given filters must match.

    Args:
        transactions: Transactions to filter
        search: Case-insensitive substring of description or category
        category: Exact category; ``None`` or ``"all"`` disables it
        type: Exact type (``credit``/``debit``); ``None`` or ``"all"`` disables it

    Returns:
        list[Transaction]: Matching transactions in their original order
    """
    needle = search.strip().lower() if search else ""
    matched: list[Transaction] = []
    for t in transactions:
        if needle and not (
            needle in t.description.lower() or needle in t.category.lower()
        ):
            continue
        if not _is_all(category) and t.category != category:
            continue
        if not _is_all(type) and t.type != type:
            continue
        matched.append(t)
    return matched


def unique_categories(transactions: Sequence[Transaction]) -> list[str]:
    """Sorted distinct categories, for filter dropdowns."""
    return sorted({t.category for t in transactions})


def recent_transactions(
    transactions: Sequence[Transaction], limit: int = RECENT_LIMIT
) -> list[Transaction]:
    """The newest ``limit`` transactions."""
    return sorted(transactions, key=lambda t: t.date, reverse=True)[:limit]


def build_dashboard(
    transactions: Sequence[Transaction], month: str | None = None
) -> DashboardSummary:
    """Assemble the dashboard for a transaction list.

    Totals, trend and recent transactions cover all data; only the category
    breakdown is restricted to ``month``.
    """
    return DashboardSummary(
        selected_month=ALL if _is_all(month) else str(month),
        totals=compute_totals(transactions),
        category_breakdown=category_breakdown(transactions, month),
        monthly_trend=monthly_trend(transactions),
        available_months=available_months(transactions),
        recent_transactions=recent_transactions(transactions),
    )
