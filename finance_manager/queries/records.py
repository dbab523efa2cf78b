"""
Record Query Engine

Filtering, sorting and grouping for transaction and borrow/lend lists.

DESIGN DECISION: Query keys are plain strings (``"date_desc"``,
``"person_asc"``...) as chosen by the presentation layer. An unknown key
falls back to the default ordering (newest first) instead of raising.

All sorts are stable: records that compare equal keep their input order,
so sorting twice with the same key gives the same result as sorting once.
"""

from decimal import Decimal
from typing import Sequence

from finance_manager.models.records import (
    BorrowLend,
    BorrowLendType,
    PaymentMethod,
    Transaction,
)
from finance_manager.models.report import (
    FlatRecords,
    GroupedRecords,
    PersonGroup,
    ProcessedRecords,
)


TRANSACTION_SORT_KEYS = ("date_desc", "date_asc", "amount_desc", "amount_asc", "category")
BORROW_LEND_SORT_KEYS = (
    "date_desc", "date_asc", "amount_desc", "amount_asc", "person_asc", "person_desc",
)

_SORT_DESCRIPTIONS = {
    "date_desc": "Sorted by: Date (Newest First)",
    "date_asc": "Sorted by: Date (Oldest First)",
    "amount_desc": "Sorted by: Amount (High to Low)",
    "amount_asc": "Sorted by: Amount (Low to High)",
    "person_asc": "Sorted by: Person (A to Z)",
    "person_desc": "Sorted by: Person (Z to A)",
    "category": "Sorted by: Category",
}


# =============================================================================
# TRANSACTIONS
# =============================================================================

def filter_by_type(
    transactions: Sequence[Transaction],
    transaction_type: str,
) -> list[Transaction]:
    """
    Keep only ``"income"`` or ``"expense"`` transactions.

    Any other value returns the list unfiltered.
    """
    if transaction_type == "income":
        return [tx for tx in transactions if not tx.is_expense]
    elif transaction_type == "expense":
        return [tx for tx in transactions if tx.is_expense]
    return list(transactions)


def filter_by_wallet(
    transactions: Sequence[Transaction],
    method: PaymentMethod,
) -> list[Transaction]:
    """Transactions paid from or received into one wallet."""
    return [tx for tx in transactions if tx.payment_method == method]


def sort_transactions(
    transactions: Sequence[Transaction],
    key: str = "date_desc",
) -> list[Transaction]:
    """
    Sort transactions for display.

    ``category`` orders by the category's member name (``DRINKS`` before
    ``MEAL``), not its display label.
    """
    if key == "date_asc":
        return sorted(transactions, key=lambda tx: tx.date)
    elif key == "amount_desc":
        return sorted(transactions, key=lambda tx: tx.amount, reverse=True)
    elif key == "amount_asc":
        return sorted(transactions, key=lambda tx: tx.amount)
    elif key == "category":
        return sorted(transactions, key=lambda tx: tx.category.name)
    else:  # date_desc
        return sorted(transactions, key=lambda tx: tx.date, reverse=True)


# =============================================================================
# BORROW / LEND
# =============================================================================

def filter_unsettled_by_type(
    records: Sequence[BorrowLend],
    record_type: BorrowLendType,
) -> list[BorrowLend]:
    """
    Open records of one direction.

    LENT gives the receivables, BORROWED the repayables.
    """
    return [
        record for record in records
        if record.type == record_type and not record.is_settled
    ]


def sort_borrow_lend(
    records: Sequence[BorrowLend],
    key: str = "date_desc",
) -> list[BorrowLend]:
    """Sort borrow/lend records. Person sorts ignore case."""
    if key == "date_asc":
        return sorted(records, key=lambda r: r.date)
    elif key == "amount_desc":
        return sorted(records, key=lambda r: r.amount, reverse=True)
    elif key == "amount_asc":
        return sorted(records, key=lambda r: r.amount)
    elif key == "person_asc":
        return sorted(records, key=lambda r: r.person_name.lower())
    elif key == "person_desc":
        return sorted(records, key=lambda r: r.person_name.lower(), reverse=True)
    else:  # date_desc
        return sorted(records, key=lambda r: r.date, reverse=True)


def group_by_person(records: Sequence[BorrowLend]) -> list[PersonGroup]:
    """
    Group records by person name.

    NOTE: The grouping key is the raw ``person_name``. "Bob" and "bob"
    form two groups even though the person sorts place them next to
    each other.

    Records inside a group are newest first; groups are ordered by
    total amount, largest first.
    """
    buckets: dict[str, list[BorrowLend]] = {}
    for record in records:
        buckets.setdefault(record.person_name, []).append(record)

    groups = [
        PersonGroup(
            person_name=person_name,
            total_amount=sum((r.amount for r in person_records), Decimal("0")),
            records=sort_borrow_lend(person_records, "date_desc"),
        )
        for person_name, person_records in buckets.items()
    ]
    groups.sort(key=lambda group: group.total_amount, reverse=True)
    return groups


def process_borrow_lend(
    records: Sequence[BorrowLend],
    sort_key: str = "date_desc",
    group: bool = False,
) -> ProcessedRecords:
    """
    Sort records and optionally group them by person.

    Returns ``GroupedRecords`` when ``group`` is set, otherwise
    ``FlatRecords`` holding the sorted list unchanged.
    """
    sorted_records = sort_borrow_lend(records, sort_key)
    if group:
        return GroupedRecords(groups=group_by_person(sorted_records))
    return FlatRecords(records=sorted_records)


def sort_description(key: str) -> str:
    """Human-readable label for a sort key."""
    return _SORT_DESCRIPTIONS.get(key, _SORT_DESCRIPTIONS["date_desc"])
