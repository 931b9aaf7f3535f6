"""Dashboard aggregation shared by live and demo data."""

from .aggregation import (
    CategorySpending,
    DashboardSummary,
    FinancialTotals,
    MonthlyTrend,
    available_months,
    build_dashboard,
    category_breakdown,
    category_totals,
    compute_totals,
    filter_by_month,
    filter_transactions,
    monthly_trend,
    rank_spending,
    recent_transactions,
    unique_categories,
)

__all__ = [
    "CategorySpending",
    "DashboardSummary",
    "FinancialTotals",
    "MonthlyTrend",
    "available_months",
    "build_dashboard",
    "category_breakdown",
    "category_totals",
    "compute_totals",
    "filter_by_month",
    "filter_transactions",
    "monthly_trend",
    "rank_spending",
    "recent_transactions",
    "unique_categories",
]
