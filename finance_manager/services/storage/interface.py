"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for record storage.
This allows us to:
1. Swap the backing store (in-memory, JSON file, remote document store)
2. Use in-memory storage for testing
3. Keep the aggregation and report logic decoupled from storage

Records are kept per user in two collections, transactions and
borrow/lend records. Every call is synchronous and scoped to one
user id.
"""

from abc import ABC, abstractmethod
from decimal import Decimal
from uuid import UUID

from finance_manager.models.records import BorrowLend, Transaction


class FinanceStorageInterface(ABC):
    """
    Abstract interface for a user's finance records.

    Any storage implementation must implement these methods.
    List methods return records ordered by ``date`` ascending, but
    callers must not rely on that order.
    """

    # -------------------------------------------------------------------------
    # Transactions
    # -------------------------------------------------------------------------

    @abstractmethod
    def add_transaction(self, user_id: str, transaction: Transaction) -> UUID:
        """
        Store a new transaction.

        Args:
            user_id: Owner of the transaction
            transaction: The transaction to store

        Returns:
            The id the transaction was stored under

        Raises:
            StorageError: If the write fails
        """

    @abstractmethod
    def get_transactions(self, user_id: str) -> list[Transaction]:
        """All transactions of a user (empty list if none)."""

    @abstractmethod
    def update_transaction(self, user_id: str, transaction: Transaction) -> None:
        """
        Replace a stored transaction with the same id.

        Raises:
            NotFoundError: If no transaction has that id
        """

    @abstractmethod
    def delete_transaction(self, user_id: str, transaction_id: UUID) -> None:
        """
        Delete a transaction.

        Raises:
            NotFoundError: If no transaction has that id
        """

    # -------------------------------------------------------------------------
    # Borrow / lend
    # -------------------------------------------------------------------------

    @abstractmethod
    def add_borrow_lend(self, user_id: str, record: BorrowLend) -> UUID:
        """Store a new borrow/lend record and return its id."""

    @abstractmethod
    def get_borrow_lend_records(self, user_id: str) -> list[BorrowLend]:
        """All borrow/lend records of a user (empty list if none)."""

    @abstractmethod
    def update_borrow_lend(self, user_id: str, record: BorrowLend) -> None:
        """
        Replace a stored borrow/lend record with the same id.

        Raises:
            NotFoundError: If no record has that id
        """

    @abstractmethod
    def delete_borrow_lend(self, user_id: str, record_id: UUID) -> None:
        """
        Delete a borrow/lend record.

        Raises:
            NotFoundError: If no record has that id
        """

    # -------------------------------------------------------------------------
    # Aggregates
    # -------------------------------------------------------------------------

    @abstractmethod
    def get_total_receivable(self, user_id: str) -> Decimal:
        """Sum of unsettled LENT amounts, computed by the store."""

    @abstractmethod
    def get_total_repayable(self, user_id: str) -> Decimal:
        """Sum of unsettled BORROWED amounts, computed by the store."""

    @abstractmethod
    def clear_user(self, user_id: str) -> None:
        """Remove every record owned by a user."""


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class ConnectionError(StorageError):
    """Could not reach the storage backend."""
    pass
