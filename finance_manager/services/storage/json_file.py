"""
JSON File Storage Implementation

Persists every user's records to a single JSON document file, laid out
like the remote document store the mobile app used:

    {"users": {"<user id>": {"transactions": {"<id>": {...}},
                             "borrow_lend":  {"<id>": {...}}}}}

Record documents use camelCase keys, enum member names and dates as
epoch milliseconds. Missing optional dates are stored as "".
Sub-millisecond precision is dropped, so a reloaded date can differ
from the original by up to a millisecond.

TRADEOFFS:
- The whole file is rewritten after every write (fine for one user)
- No locking; a single process owns the file
- A write that cannot be saved is undone in memory as well
"""

import json
from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import Any, Optional, Union
from uuid import UUID

from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from finance_manager.models.records import (
    BorrowLend,
    BorrowLendType,
    Category,
    PaymentMethod,
    Transaction,
)
from finance_manager.services.storage.interface import ConnectionError, StorageError
from finance_manager.services.storage.memory import InMemoryFinanceStorage


TRANSACTIONS_COLLECTION = "transactions"
BORROW_LEND_COLLECTION = "borrow_lend"


# =============================================================================
# DOCUMENT CONVERSION
# =============================================================================

def _to_millis(value: Optional[datetime]) -> Union[int, str]:
    if value is None:
        return ""
    return int(value.timestamp() * 1000)


def _from_millis(value: Any) -> Optional[datetime]:
    if value in (None, ""):
        return None
    return datetime.fromtimestamp(int(value) / 1000)


def transaction_to_document(transaction: Transaction) -> dict:
    """Convert a Transaction to a stored document."""
    return {
        "id": str(transaction.id),
        "userId": transaction.user_id,
        "amount": str(transaction.amount),
        "category": transaction.category.name,
        "description": transaction.description,
        "date": _to_millis(transaction.date),
        "isExpense": transaction.is_expense,
        "paymentMethod": transaction.payment_method.name,
        "createdAt": _to_millis(transaction.created_at),
    }


def transaction_from_document(doc: dict) -> Transaction:
    """
    Convert a stored document to a Transaction.

    Missing fields fall back to the record defaults: OTHERS, CASH,
    expense, amount 0, epoch dates.
    """
    return Transaction(
        id=UUID(doc["id"]),
        user_id=doc.get("userId", ""),
        amount=Decimal(str(doc.get("amount", "0"))),
        category=Category[doc.get("category") or "OTHERS"],
        description=doc.get("description", ""),
        date=_from_millis(doc.get("date", 0)) or datetime.fromtimestamp(0),
        is_expense=doc.get("isExpense", True),
        payment_method=PaymentMethod[doc.get("paymentMethod") or "CASH"],
        created_at=_from_millis(doc.get("createdAt", 0)) or datetime.fromtimestamp(0),
    )


def borrow_lend_to_document(record: BorrowLend) -> dict:
    """Convert a BorrowLend record to a stored document."""
    return {
        "id": str(record.id),
        "userId": record.user_id,
        "personName": record.person_name,
        "amount": str(record.amount),
        "type": record.type.name,
        "description": record.description,
        "date": _to_millis(record.date),
        "dueDate": _to_millis(record.due_date),
        "isSettled": record.is_settled,
        "settledDate": _to_millis(record.settled_date),
        "createdAt": _to_millis(record.created_at),
    }


def borrow_lend_from_document(doc: dict) -> BorrowLend:
    """Convert a stored document to a BorrowLend record."""
    return BorrowLend(
        id=UUID(doc["id"]),
        user_id=doc.get("userId", ""),
        person_name=doc.get("personName", ""),
        amount=Decimal(str(doc.get("amount", "0"))),
        type=BorrowLendType[doc.get("type") or "LENT"],
        description=doc.get("description", ""),
        date=_from_millis(doc.get("date", 0)) or datetime.fromtimestamp(0),
        due_date=_from_millis(doc.get("dueDate")),
        is_settled=doc.get("isSettled", False),
        settled_date=_from_millis(doc.get("settledDate")),
        created_at=_from_millis(doc.get("createdAt", 0)) or datetime.fromtimestamp(0),
    )


# =============================================================================
# STORAGE
# =============================================================================

class JsonFileFinanceStorage(InMemoryFinanceStorage):
    """
    File-backed storage.

    Reads the whole file once at construction and rewrites it after
    every write. File access is retried on OSError.
    """

    def __init__(self, path: Union[str, Path]):
        super().__init__()
        self._path = Path(path)
        self._load()

    @property
    def path(self) -> Path:
        return self._path

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.1, max=2),
        retry=retry_if_exception_type(OSError),
        reraise=True,
    )
    def _read_text(self) -> str:
        return self._path.read_text(encoding="utf-8")

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.1, max=2),
        retry=retry_if_exception_type(OSError),
        reraise=True,
    )
    def _write_text(self, text: str) -> None:
        self._path.write_text(text, encoding="utf-8")

    def _load(self) -> None:
        if not self._path.exists():
            return

        try:
            data = json.loads(self._read_text() or "{}")
        except OSError as e:
            raise ConnectionError(f"Failed to read {self._path}: {e}")
        except json.JSONDecodeError as e:
            raise StorageError(f"Corrupt storage file {self._path}: {e}")

        if not isinstance(data, dict) or not isinstance(data.get("users", {}), dict):
            raise StorageError(f"Invalid document in {self._path}: expected a users object")

        try:
            for user_id, collections in data.get("users", {}).items():
                transactions = self._user_transactions(user_id)
                for doc in collections.get(TRANSACTIONS_COLLECTION, {}).values():
                    tx = transaction_from_document(doc)
                    transactions[tx.id] = tx

                records = self._user_borrow_lend(user_id)
                for doc in collections.get(BORROW_LEND_COLLECTION, {}).values():
                    record = borrow_lend_from_document(doc)
                    records[record.id] = record
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise StorageError(f"Invalid document in {self._path}: {e}")

    def _to_data(self) -> dict:
        users: dict[str, dict] = {}
        for user_id in set(self._transactions) | set(self._borrow_lend):
            users[user_id] = {
                TRANSACTIONS_COLLECTION: {
                    str(tx_id): transaction_to_document(tx)
                    for tx_id, tx in self._transactions.get(user_id, {}).items()
                },
                BORROW_LEND_COLLECTION: {
                    str(record_id): borrow_lend_to_document(record)
                    for record_id, record in self._borrow_lend.get(user_id, {}).items()
                },
            }
        return {"users": users}

    def _persist(self) -> None:
        try:
            self._write_text(json.dumps(self._to_data(), indent=2, sort_keys=True))
        except OSError as e:
            raise ConnectionError(f"Failed to write {self._path}: {e}")
