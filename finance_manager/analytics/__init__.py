"""Aggregation and insight package."""

from finance_manager.analytics.aggregation import (
    balance_by_wallet,
    build_summary,
    category_totals,
    expense_by_wallet,
    income_by_wallet,
    payment_methods,
    savings_rate,
    top_categories,
    total_expense,
    total_income,
    wallet_summary,
)
from finance_manager.analytics.insights import generate_insights

__all__ = [
    "balance_by_wallet",
    "build_summary",
    "category_totals",
    "expense_by_wallet",
    "generate_insights",
    "income_by_wallet",
    "payment_methods",
    "savings_rate",
    "top_categories",
    "total_expense",
    "total_income",
    "wallet_summary",
]
