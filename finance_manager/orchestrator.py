"""
Main Orchestrator for Finance Manager

FinanceService ties storage, aggregation, queries and reports together
for one signed-in user:
1. Load (storage → in-memory snapshot)
2. Write (add / update / delete / settle → storage, then re-fetch)
3. Report (snapshot → summary → insights → report)

DESIGN DECISION: After every write the affected collection and the
storage-side receivable/repayable totals are fetched again in full.
The snapshot is never patched locally.

All operations are synchronous. Presentation code reads the snapshot
properties and calls the report and query helpers; nothing here is
reactive.
"""

from decimal import Decimal
from typing import Callable, Optional, TypeVar
from uuid import UUID

from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from finance_manager.analytics import (
    build_summary,
    category_totals,
    top_categories,
    wallet_summary,
)
from finance_manager.audit import AuditLogger
from finance_manager.config import InsightSettings, get_settings
from finance_manager.models.audit import AuditEventBuilder
from finance_manager.models.records import (
    BorrowLend,
    BorrowLendType,
    Category,
    PaymentMethod,
    Transaction,
)
from finance_manager.models.report import (
    FinancialReport,
    FinancialSummary,
    ProcessedRecords,
    ReportPeriod,
    WalletSummary,
)
from finance_manager.queries import (
    filter_by_type,
    filter_by_wallet,
    filter_unsettled_by_type,
    process_borrow_lend,
    sort_transactions,
)
from finance_manager.reports import format_report_text, generate_report
from finance_manager.services.storage import (
    ConnectionError,
    FinanceStorageInterface,
    StorageError,
    create_storage,
)

T = TypeVar("T")


class FinanceService:
    """
    Holds the current user's record snapshot.

    Write operations are ignored (return None) while no user is set.
    Snapshot loads are retried on storage ConnectionError.
    """

    def __init__(
        self,
        storage: Optional[FinanceStorageInterface] = None,
        audit_logger: Optional[AuditLogger] = None,
        insight_settings: Optional[InsightSettings] = None,
        retry_attempts: Optional[int] = None,
        retry_wait: float = 0.5,
    ):
        settings = get_settings()
        self._storage = storage or create_storage(settings.storage)
        self._audit_logger = audit_logger or AuditLogger()
        self._insight_settings = insight_settings or settings.insights
        self._retry_attempts = retry_attempts or settings.storage.retry_attempts
        self._retry_wait = retry_wait

        self._user_id: Optional[str] = None
        self._transactions: tuple[Transaction, ...] = ()
        self._borrow_lend: tuple[BorrowLend, ...] = ()
        self._total_receivable = Decimal("0")
        self._total_repayable = Decimal("0")

    # -------------------------------------------------------------------------
    # Snapshot
    # -------------------------------------------------------------------------

    @property
    def current_user_id(self) -> Optional[str]:
        return self._user_id

    @property
    def transactions(self) -> tuple[Transaction, ...]:
        return self._transactions

    @property
    def borrow_lend_records(self) -> tuple[BorrowLend, ...]:
        return self._borrow_lend

    @property
    def total_receivable(self) -> Decimal:
        return self._total_receivable

    @property
    def total_repayable(self) -> Decimal:
        return self._total_repayable

    def set_user(self, user_id: str) -> None:
        """Switch to a user and load all of their data."""
        self._user_id = user_id
        self._load_transactions(user_id)
        self._load_borrow_lend(user_id)
        self._load_analytics(user_id)
        self._audit_logger.log(AuditEventBuilder.data_loaded(
            user_id=user_id,
            transaction_count=len(self._transactions),
            record_count=len(self._borrow_lend),
        ))

    def clear_user_data(self) -> None:
        """Drop the in-memory snapshot (e.g. on sign-out). Storage is untouched."""
        self._audit_logger.log(AuditEventBuilder.data_cleared(self._user_id))
        self._transactions = ()
        self._borrow_lend = ()

    def _fetch(self, operation: str, user_id: str, fetch: Callable[[], T]) -> T:
        retrying = Retrying(
            stop=stop_after_attempt(self._retry_attempts),
            wait=wait_exponential(multiplier=self._retry_wait, max=10),
            retry=retry_if_exception_type(ConnectionError),
            reraise=True,
        )
        try:
            return retrying(fetch)
        except StorageError as e:
            self._audit_logger.log_storage_error(operation, str(e), user_id)
            raise

    def _load_transactions(self, user_id: str) -> None:
        self._transactions = tuple(self._fetch(
            "get_transactions", user_id,
            lambda: self._storage.get_transactions(user_id),
        ))

    def _load_borrow_lend(self, user_id: str) -> None:
        self._borrow_lend = tuple(self._fetch(
            "get_borrow_lend_records", user_id,
            lambda: self._storage.get_borrow_lend_records(user_id),
        ))

    def _load_analytics(self, user_id: str) -> None:
        self._total_receivable = self._fetch(
            "get_total_receivable", user_id,
            lambda: self._storage.get_total_receivable(user_id),
        )
        self._total_repayable = self._fetch(
            "get_total_repayable", user_id,
            lambda: self._storage.get_total_repayable(user_id),
        )

    def _write(self, operation: str, user_id: str, write: Callable[[], T]) -> T:
        try:
            return write()
        except StorageError as e:
            self._audit_logger.log_storage_error(operation, str(e), user_id)
            raise

    # -------------------------------------------------------------------------
    # Transactions
    # -------------------------------------------------------------------------

    def add_transaction(self, transaction: Transaction) -> Optional[UUID]:
        """Store a new transaction and return its id."""
        user_id = self._user_id
        if user_id is None:
            return None

        transaction_id = self._write(
            "add_transaction", user_id,
            lambda: self._storage.add_transaction(user_id, transaction),
        )
        self._audit_logger.log(AuditEventBuilder.transaction_added(
            user_id=user_id,
            transaction_id=transaction_id,
            amount=str(transaction.amount),
            is_expense=transaction.is_expense,
        ))
        self._load_transactions(user_id)
        self._load_analytics(user_id)
        return transaction_id

    def update_transaction(self, transaction: Transaction) -> Optional[UUID]:
        """Replace a stored transaction (same id, new fields)."""
        user_id = self._user_id
        if user_id is None:
            return None

        self._write(
            "update_transaction", user_id,
            lambda: self._storage.update_transaction(user_id, transaction),
        )
        self._audit_logger.log(AuditEventBuilder.transaction_updated(user_id, transaction.id))
        self._load_transactions(user_id)
        self._load_analytics(user_id)
        return transaction.id

    def delete_transaction(self, transaction: Transaction) -> Optional[UUID]:
        user_id = self._user_id
        if user_id is None:
            return None

        self._write(
            "delete_transaction", user_id,
            lambda: self._storage.delete_transaction(user_id, transaction.id),
        )
        self._audit_logger.log(AuditEventBuilder.transaction_deleted(user_id, transaction.id))
        self._load_transactions(user_id)
        self._load_analytics(user_id)
        return transaction.id

    # -------------------------------------------------------------------------
    # Borrow / lend
    # -------------------------------------------------------------------------

    def add_borrow_lend(self, record: BorrowLend) -> Optional[UUID]:
        """Store a new borrow/lend record and return its id."""
        user_id = self._user_id
        if user_id is None:
            return None

        record_id = self._write(
            "add_borrow_lend", user_id,
            lambda: self._storage.add_borrow_lend(user_id, record),
        )
        self._audit_logger.log(AuditEventBuilder.borrow_lend_added(
            user_id=user_id,
            record_id=record_id,
            person_name=record.person_name,
            record_type=record.type.value,
            amount=str(record.amount),
        ))
        self._load_borrow_lend(user_id)
        self._load_analytics(user_id)
        return record_id

    def update_borrow_lend(self, record: BorrowLend) -> Optional[UUID]:
        user_id = self._user_id
        if user_id is None:
            return None

        self._write(
            "update_borrow_lend", user_id,
            lambda: self._storage.update_borrow_lend(user_id, record),
        )
        self._audit_logger.log(AuditEventBuilder.borrow_lend_updated(user_id, record.id))
        self._load_borrow_lend(user_id)
        self._load_analytics(user_id)
        return record.id

    def delete_borrow_lend(self, record: BorrowLend) -> Optional[UUID]:
        user_id = self._user_id
        if user_id is None:
            return None

        self._write(
            "delete_borrow_lend", user_id,
            lambda: self._storage.delete_borrow_lend(user_id, record.id),
        )
        self._audit_logger.log(AuditEventBuilder.borrow_lend_deleted(user_id, record.id))
        self._load_borrow_lend(user_id)
        self._load_analytics(user_id)
        return record.id

    def toggle_settlement(self, record: BorrowLend) -> Optional[BorrowLend]:
        """
        Flip a record between settled and unsettled.

        Returns the stored record with its new settlement state.
        """
        user_id = self._user_id
        if user_id is None:
            return None

        updated = record.toggle_settlement()
        self._write(
            "update_borrow_lend", user_id,
            lambda: self._storage.update_borrow_lend(user_id, updated),
        )
        self._audit_logger.log(AuditEventBuilder.settlement_toggled(
            user_id=user_id,
            record_id=updated.id,
            is_settled=updated.is_settled,
        ))
        self._load_borrow_lend(user_id)
        self._load_analytics(user_id)
        return updated

    # -------------------------------------------------------------------------
    # Views over the snapshot
    # -------------------------------------------------------------------------

    def summary(self) -> FinancialSummary:
        return build_summary(
            self._transactions,
            self._borrow_lend,
            self._total_receivable,
            self._total_repayable,
        )

    def wallet(self, method: PaymentMethod) -> WalletSummary:
        return wallet_summary(self._transactions, method)

    def wallet_transactions(
        self,
        method: PaymentMethod,
        sort_key: str = "date_desc",
    ) -> list[Transaction]:
        return sort_transactions(filter_by_wallet(self._transactions, method), sort_key)

    def filtered_transactions(
        self,
        transaction_type: str,
        sort_key: str = "date_desc",
    ) -> list[Transaction]:
        """Income or expense transactions in display order."""
        return sort_transactions(filter_by_type(self._transactions, transaction_type), sort_key)

    def spending_by_category(self, limit: int = 5) -> list[tuple[Category, Decimal]]:
        """Largest expense categories first."""
        return top_categories(category_totals(self._transactions), limit)

    def open_records(
        self,
        record_type: BorrowLendType,
        sort_key: str = "date_desc",
        group: bool = False,
    ) -> ProcessedRecords:
        """Unsettled receivables (LENT) or repayables (BORROWED) for display."""
        return process_borrow_lend(
            filter_unsettled_by_type(self._borrow_lend, record_type),
            sort_key,
            group,
        )

    # -------------------------------------------------------------------------
    # Reports
    # -------------------------------------------------------------------------

    def generate_report(self, period: ReportPeriod) -> FinancialReport:
        """
        Build a report from the current snapshot.

        If the storage-side receivable/repayable totals differ from the
        listed unsettled records, one WARNING audit event carrying both
        pairs of figures is logged. The totals are reported as stored.
        """
        report = generate_report(
            period,
            self._transactions,
            self._borrow_lend,
            self._total_receivable,
            self._total_repayable,
            settings=self._insight_settings,
        )

        if not report.aggregates_consistent:
            self._audit_logger.log(AuditEventBuilder.aggregate_divergence(
                user_id=self._user_id,
                stored_receivable=str(report.summary.total_receivable),
                listed_receivable=str(report.listed_receivable),
                stored_repayable=str(report.summary.total_repayable),
                listed_repayable=str(report.listed_repayable),
            ))

        self._audit_logger.log(AuditEventBuilder.report_generated(
            user_id=self._user_id,
            period=period.value,
            insight_count=len(report.insights),
        ))
        return report

    def export_report(self, period: ReportPeriod) -> str:
        """Generate a report and render it as shareable text."""
        app_settings = get_settings().app
        return format_report_text(
            self.generate_report(period),
            currency=app_settings.currency_code,
            max_insights=app_settings.report_max_insights,
        )


def create_finance_service(
    storage: Optional[FinanceStorageInterface] = None,
) -> FinanceService:
    """
    Factory function to create a FinanceService.

    Args:
        storage: Storage backend. When None, the backend named in
                 ``StorageSettings`` is built.
    """
    return FinanceService(storage=storage, audit_logger=AuditLogger())
