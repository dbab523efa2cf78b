"""Record query package."""

from finance_manager.queries.records import (
    BORROW_LEND_SORT_KEYS,
    TRANSACTION_SORT_KEYS,
    filter_by_type,
    filter_by_wallet,
    filter_unsettled_by_type,
    group_by_person,
    process_borrow_lend,
    sort_borrow_lend,
    sort_description,
    sort_transactions,
)

__all__ = [
    "BORROW_LEND_SORT_KEYS",
    "TRANSACTION_SORT_KEYS",
    "filter_by_type",
    "filter_by_wallet",
    "filter_unsettled_by_type",
    "group_by_person",
    "process_borrow_lend",
    "sort_borrow_lend",
    "sort_description",
    "sort_transactions",
]
