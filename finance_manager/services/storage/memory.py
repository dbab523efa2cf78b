"""
In-Memory Storage Implementation

Keeps each user's records in dictionaries keyed by record id.
Used in tests and as the default backend; the JSON file backend builds
on it and persists after every write.

Writes are all-or-nothing: when ``_persist`` fails, the user's
collections are restored to their state before the write.
"""

from contextlib import contextmanager
from decimal import Decimal
from typing import Iterator
from uuid import UUID, uuid4

from finance_manager.models.records import BorrowLend, BorrowLendType, Transaction
from finance_manager.services.storage.interface import (
    FinanceStorageInterface,
    NotFoundError,
    StorageError,
)


class InMemoryFinanceStorage(FinanceStorageInterface):
    """
    Dictionary-backed storage.

    ``add_*`` assigns a fresh id and stamps the owning user id on the
    record, the way a document store assigns document ids.
    """

    def __init__(self):
        self._transactions: dict[str, dict[UUID, Transaction]] = {}
        self._borrow_lend: dict[str, dict[UUID, BorrowLend]] = {}

    def _user_transactions(self, user_id: str) -> dict[UUID, Transaction]:
        return self._transactions.setdefault(user_id, {})

    def _user_borrow_lend(self, user_id: str) -> dict[UUID, BorrowLend]:
        return self._borrow_lend.setdefault(user_id, {})

    def _persist(self) -> None:
        """Called after every write, before it is committed."""

    @contextmanager
    def _writing(self, user_id: str) -> Iterator[None]:
        """Apply a change to one user's collections, rolled back if persisting fails."""
        transactions = self._transactions.get(user_id)
        borrow_lend = self._borrow_lend.get(user_id)
        saved_transactions = dict(transactions) if transactions is not None else None
        saved_borrow_lend = dict(borrow_lend) if borrow_lend is not None else None

        yield

        try:
            self._persist()
        except StorageError:
            self._restore(self._transactions, user_id, saved_transactions)
            self._restore(self._borrow_lend, user_id, saved_borrow_lend)
            raise

    @staticmethod
    def _restore(collections: dict, user_id: str, saved) -> None:
        if saved is None:
            collections.pop(user_id, None)
        else:
            collections[user_id] = saved

    # -------------------------------------------------------------------------
    # Transactions
    # -------------------------------------------------------------------------

    def add_transaction(self, user_id: str, transaction: Transaction) -> UUID:
        stored = transaction.model_copy(update={"id": uuid4(), "user_id": user_id})
        with self._writing(user_id):
            self._user_transactions(user_id)[stored.id] = stored
        return stored.id

    def get_transactions(self, user_id: str) -> list[Transaction]:
        return sorted(
            self._transactions.get(user_id, {}).values(),
            key=lambda tx: tx.date,
        )

    def update_transaction(self, user_id: str, transaction: Transaction) -> None:
        if transaction.id not in self._transactions.get(user_id, {}):
            raise NotFoundError(f"Transaction not found: {transaction.id}")
        with self._writing(user_id):
            self._user_transactions(user_id)[transaction.id] = transaction.model_copy(
                update={"user_id": user_id}
            )

    def delete_transaction(self, user_id: str, transaction_id: UUID) -> None:
        if transaction_id not in self._transactions.get(user_id, {}):
            raise NotFoundError(f"Transaction not found: {transaction_id}")
        with self._writing(user_id):
            del self._user_transactions(user_id)[transaction_id]

    # -------------------------------------------------------------------------
    # Borrow / lend
    # -------------------------------------------------------------------------

    def add_borrow_lend(self, user_id: str, record: BorrowLend) -> UUID:
        stored = record.model_copy(update={"id": uuid4(), "user_id": user_id})
        with self._writing(user_id):
            self._user_borrow_lend(user_id)[stored.id] = stored
        return stored.id

    def get_borrow_lend_records(self, user_id: str) -> list[BorrowLend]:
        return sorted(
            self._borrow_lend.get(user_id, {}).values(),
            key=lambda r: r.date,
        )

    def update_borrow_lend(self, user_id: str, record: BorrowLend) -> None:
        if record.id not in self._borrow_lend.get(user_id, {}):
            raise NotFoundError(f"Borrow/lend record not found: {record.id}")
        with self._writing(user_id):
            self._user_borrow_lend(user_id)[record.id] = record.model_copy(
                update={"user_id": user_id}
            )

    def delete_borrow_lend(self, user_id: str, record_id: UUID) -> None:
        if record_id not in self._borrow_lend.get(user_id, {}):
            raise NotFoundError(f"Borrow/lend record not found: {record_id}")
        with self._writing(user_id):
            del self._user_borrow_lend(user_id)[record_id]

    # -------------------------------------------------------------------------
    # Aggregates
    # -------------------------------------------------------------------------

    def _unsettled_total(self, user_id: str, record_type: BorrowLendType) -> Decimal:
        return sum(
            (
                r.amount for r in self._borrow_lend.get(user_id, {}).values()
                if r.type == record_type and not r.is_settled
            ),
            Decimal("0"),
        )

    def get_total_receivable(self, user_id: str) -> Decimal:
        return self._unsettled_total(user_id, BorrowLendType.LENT)

    def get_total_repayable(self, user_id: str) -> Decimal:
        return self._unsettled_total(user_id, BorrowLendType.BORROWED)

    def clear_user(self, user_id: str) -> None:
        with self._writing(user_id):
            self._transactions.pop(user_id, None)
            self._borrow_lend.pop(user_id, None)
