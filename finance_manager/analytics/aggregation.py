"""
Aggregation Engine

Pure functions over an in-memory snapshot of transactions.
Nothing here performs I/O or keeps state; every call recomputes from
the list it is given.

Empty input always yields zero / empty results.
"""

from collections import defaultdict
from decimal import Decimal
from typing import Iterable, Optional, Sequence

from finance_manager.models.records import (
    BorrowLend,
    Category,
    PaymentMethod,
    Transaction,
)
from finance_manager.models.report import FinancialSummary, WalletSummary

ZERO = Decimal("0")


def _sum_amounts(transactions: Iterable[Transaction]) -> Decimal:
    return sum((tx.amount for tx in transactions), ZERO)


def total_income(transactions: Iterable[Transaction]) -> Decimal:
    """Sum of all non-expense amounts."""
    return _sum_amounts(tx for tx in transactions if not tx.is_expense)


def total_expense(transactions: Iterable[Transaction]) -> Decimal:
    """Sum of all expense amounts."""
    return _sum_amounts(tx for tx in transactions if tx.is_expense)


def income_by_wallet(
    transactions: Iterable[Transaction],
    method: PaymentMethod,
) -> Decimal:
    return _sum_amounts(
        tx for tx in transactions
        if not tx.is_expense and tx.payment_method == method
    )


def expense_by_wallet(
    transactions: Iterable[Transaction],
    method: PaymentMethod,
) -> Decimal:
    return _sum_amounts(
        tx for tx in transactions
        if tx.is_expense and tx.payment_method == method
    )


def balance_by_wallet(
    transactions: Sequence[Transaction],
    method: PaymentMethod,
) -> Decimal:
    """Income minus expense for one wallet."""
    return income_by_wallet(transactions, method) - expense_by_wallet(transactions, method)


def wallet_summary(
    transactions: Sequence[Transaction],
    method: PaymentMethod,
) -> WalletSummary:
    return WalletSummary(
        method=method,
        income=income_by_wallet(transactions, method),
        expense=expense_by_wallet(transactions, method),
    )


def payment_methods() -> list[PaymentMethod]:
    """All wallets, in definition order."""
    return list(PaymentMethod)


def category_totals(transactions: Iterable[Transaction]) -> dict[Category, Decimal]:
    """
    Expense total per category.

    Only categories with at least one expense appear in the result;
    there are no zero-valued entries. Keys are in first-seen order.
    """
    totals: dict[Category, Decimal] = defaultdict(lambda: ZERO)
    for tx in transactions:
        if tx.is_expense:
            totals[tx.category] += tx.amount
    return dict(totals)


def top_categories(
    breakdown: dict[Category, Decimal],
    limit: int = 5,
) -> list[tuple[Category, Decimal]]:
    """Largest spending categories first, at most ``limit`` of them."""
    ranked = sorted(breakdown.items(), key=lambda item: item[1], reverse=True)
    return ranked[:limit]


def savings_rate(income: Decimal, net_balance: Decimal) -> float:
    """
    Net balance as a percentage of income.

    Zero income gives 0.0, whatever the expenses.
    """
    if income > 0:
        return float(net_balance / income * 100)
    return 0.0


def _top_spending(
    breakdown: dict[Category, Decimal],
) -> tuple[Optional[Category], Decimal]:
    if not breakdown:
        return None, ZERO
    # max() keeps the first of equal totals
    category = max(breakdown, key=lambda c: breakdown[c])
    return category, breakdown[category]


def build_summary(
    transactions: Sequence[Transaction],
    borrow_lend_records: Sequence[BorrowLend],
    total_receivable: Decimal,
    total_repayable: Decimal,
) -> FinancialSummary:
    """
    Build a FinancialSummary from a transaction snapshot.

    ``total_receivable`` and ``total_repayable`` come from the storage
    layer's own aggregate queries and are copied through verbatim. They
    are NOT recomputed from ``borrow_lend_records``, so the two can
    disagree when the storage totals are stale.
    """
    income = total_income(transactions)
    expense = total_expense(transactions)
    net = income - expense

    breakdown = category_totals(transactions)
    top_category, top_amount = _top_spending(breakdown)

    wallet_balances = {
        method: balance_by_wallet(transactions, method)
        for method in payment_methods()
    }

    return FinancialSummary(
        total_income=income,
        total_expense=expense,
        net_balance=net,
        savings_rate=savings_rate(income, net),
        top_spending_category=top_category,
        top_spending_amount=top_amount,
        wallet_balances=wallet_balances,
        total_receivable=total_receivable,
        total_repayable=total_repayable,
        category_breakdown=breakdown,
    )
