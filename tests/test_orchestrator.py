"""
Tests for FinanceService

Uses the in-memory storage and a list as the audit sink.
"""

import logging
import pytest
from datetime import datetime
from decimal import Decimal

from finance_manager.audit import AuditLogger
from finance_manager.config import InsightSettings
from finance_manager.models import (
    AuditEventType,
    BorrowLend,
    BorrowLendType,
    Category,
    FlatRecords,
    GroupedRecords,
    PaymentMethod,
    ReportPeriod,
    Transaction,
)
from finance_manager.orchestrator import FinanceService
from finance_manager.services.storage import (
    ConnectionError,
    InMemoryFinanceStorage,
    NotFoundError,
)


USER = "user-1"


class StaleTotalsStorage(InMemoryFinanceStorage):
    """Reports a receivable total that no longer matches the records."""

    def get_total_receivable(self, user_id: str) -> Decimal:
        return super().get_total_receivable(user_id) + Decimal("25")


class FlakyStorage(InMemoryFinanceStorage):
    """Fails the first few transaction loads."""

    def __init__(self, failures: int):
        super().__init__()
        self.failures = failures
        self.calls = 0

    def get_transactions(self, user_id: str) -> list[Transaction]:
        self.calls += 1
        if self.calls <= self.failures:
            raise ConnectionError("store unreachable")
        return super().get_transactions(user_id)


def make_service(storage=None, events=None) -> FinanceService:
    sink = events.append if events is not None else None
    return FinanceService(
        storage=storage or InMemoryFinanceStorage(),
        audit_logger=AuditLogger(sink=sink),
        insight_settings=InsightSettings(),
        retry_attempts=3,
        retry_wait=0,
    )


def event_types(events) -> list[AuditEventType]:
    return [event.event_type for event in events]


@pytest.fixture
def events() -> list:
    return []


@pytest.fixture
def service(events) -> FinanceService:
    service = make_service(events=events)
    service.set_user(USER)
    return service


class TestUserSession:
    """Tests for loading and clearing a user's snapshot."""

    def test_set_user_loads_existing_data(self, events):
        """Test the snapshot is loaded from storage."""
        storage = InMemoryFinanceStorage()
        storage.add_transaction(USER, Transaction(amount=Decimal("10")))
        storage.add_borrow_lend(USER, BorrowLend(person_name="Alice", amount=Decimal("40")))

        service = make_service(storage, events)
        service.set_user(USER)

        assert service.current_user_id == USER
        assert len(service.transactions) == 1
        assert len(service.borrow_lend_records) == 1
        assert service.total_receivable == Decimal("40")
        assert event_types(events) == [AuditEventType.DATA_LOADED]

    def test_writes_without_user_are_ignored(self, events):
        """Test no-ops before a user is set."""
        service = make_service(events=events)

        assert service.add_transaction(Transaction(amount=Decimal("1"))) is None
        assert service.add_borrow_lend(BorrowLend(person_name="A", amount=Decimal("1"))) is None
        assert service.transactions == ()
        assert events == []

    def test_clear_user_data(self, service, events):
        """Test the snapshot is emptied but storage is kept."""
        service.add_transaction(Transaction(amount=Decimal("10")))
        service.clear_user_data()

        assert service.transactions == ()
        assert service.borrow_lend_records == ()
        assert AuditEventType.DATA_CLEARED in event_types(events)

        service.set_user(USER)
        assert len(service.transactions) == 1


class TestTransactionWrites:
    """Tests for transaction writes and re-fetching."""

    def test_add_refreshes_snapshot(self, service, events):
        """Test the new transaction appears with its stored id."""
        tx_id = service.add_transaction(
            Transaction(amount=Decimal("500"), is_expense=False, category=Category.SALARY)
        )

        assert [tx.id for tx in service.transactions] == [tx_id]
        assert service.transactions[0].user_id == USER
        assert service.summary().total_income == Decimal("500")
        assert events[-1].event_type == AuditEventType.TRANSACTION_ADDED

    def test_update_and_delete(self, service, events):
        """Test editing then removing a transaction."""
        service.add_transaction(Transaction(amount=Decimal("10")))
        stored = service.transactions[0]

        service.update_transaction(stored.model_copy(update={"amount": Decimal("12")}))
        assert service.transactions[0].amount == Decimal("12")

        service.delete_transaction(service.transactions[0])
        assert service.transactions == ()
        assert event_types(events)[-2:] == [
            AuditEventType.TRANSACTION_UPDATED,
            AuditEventType.TRANSACTION_DELETED,
        ]

    def test_failed_write_is_logged_and_raised(self, service, events):
        """Test storage errors propagate after an audit event."""
        with pytest.raises(NotFoundError):
            service.delete_transaction(Transaction(amount=Decimal("1")))

        assert events[-1].event_type == AuditEventType.STORAGE_ERROR
        assert events[-1].details["operation"] == "delete_transaction"


class TestBorrowLendWrites:
    """Tests for borrow/lend writes."""

    def test_toggle_settlement_updates_totals(self, service, events):
        """Test settling a receivable clears it from the total."""
        service.add_borrow_lend(BorrowLend(person_name="Alice", amount=Decimal("100")))
        assert service.total_receivable == Decimal("100")

        updated = service.toggle_settlement(service.borrow_lend_records[0])

        assert updated.is_settled is True
        assert updated.settled_date is not None
        assert service.borrow_lend_records[0].is_settled is True
        assert service.total_receivable == Decimal("0")
        assert events[-1].event_type == AuditEventType.SETTLEMENT_TOGGLED

    def test_delete_borrow_lend(self, service):
        """Test deleting a record updates the repayable total."""
        service.add_borrow_lend(BorrowLend(
            person_name="Bob", amount=Decimal("70"), type=BorrowLendType.BORROWED,
        ))
        assert service.total_repayable == Decimal("70")

        service.delete_borrow_lend(service.borrow_lend_records[0])

        assert service.borrow_lend_records == ()
        assert service.total_repayable == Decimal("0")


class TestViews:
    """Tests for snapshot views."""

    @pytest.fixture
    def loaded(self, service) -> FinanceService:
        service.add_transaction(Transaction(
            amount=Decimal("1000"), is_expense=False, category=Category.SALARY,
            payment_method=PaymentMethod.ALIPAY, date=datetime(2024, 1, 1),
        ))
        service.add_transaction(Transaction(
            amount=Decimal("120"), category=Category.MEAL,
            payment_method=PaymentMethod.CASH, date=datetime(2024, 1, 2),
        ))
        service.add_transaction(Transaction(
            amount=Decimal("30"), category=Category.DRINKS,
            payment_method=PaymentMethod.CASH, date=datetime(2024, 1, 3),
        ))
        service.add_borrow_lend(BorrowLend(person_name="Alice", amount=Decimal("100")))
        service.add_borrow_lend(BorrowLend(person_name="Alice", amount=Decimal("50")))
        service.add_borrow_lend(BorrowLend(person_name="Bob", amount=Decimal("200")))
        return service

    def test_wallet_views(self, loaded):
        """Test wallet summary and wallet transactions."""
        assert loaded.wallet(PaymentMethod.CASH).balance == Decimal("-150")
        cash = loaded.wallet_transactions(PaymentMethod.CASH, "amount_asc")
        assert [tx.amount for tx in cash] == [Decimal("30"), Decimal("120")]

    def test_filtered_transactions(self, loaded):
        """Test the expense view, newest first."""
        expenses = loaded.filtered_transactions("expense")
        assert [tx.category for tx in expenses] == [Category.DRINKS, Category.MEAL]

    def test_spending_by_category(self, loaded):
        """Test the category ranking."""
        assert loaded.spending_by_category() == [
            (Category.MEAL, Decimal("120")),
            (Category.DRINKS, Decimal("30")),
        ]

    def test_open_records_grouped(self, loaded):
        """Test receivables grouped by person."""
        grouped = loaded.open_records(BorrowLendType.LENT, group=True)
        assert isinstance(grouped, GroupedRecords)
        assert [(g.person_name, g.total_amount) for g in grouped.groups] == [
            ("Bob", Decimal("200")),
            ("Alice", Decimal("150")),
        ]

    def test_open_records_flat(self, loaded):
        """Test repayables are empty when nothing was borrowed."""
        flat = loaded.open_records(BorrowLendType.BORROWED)
        assert isinstance(flat, FlatRecords)
        assert len(flat) == 0


class TestReports:
    """Tests for report generation through the service."""

    def test_generate_report(self, service, events):
        """Test a consistent report logs only the report event."""
        service.add_transaction(Transaction(amount=Decimal("1000"), is_expense=False))
        service.add_borrow_lend(BorrowLend(person_name="Alice", amount=Decimal("40")))

        report = service.generate_report(ReportPeriod.MONTHLY)

        assert report.aggregates_consistent is True
        assert report.summary.total_receivable == Decimal("40")
        assert events[-1].event_type == AuditEventType.REPORT_GENERATED
        assert AuditEventType.AGGREGATE_DIVERGENCE not in event_types(events)

    def test_divergent_totals_are_flagged(self, events):
        """Test stale storage totals are kept and reported."""
        service = make_service(StaleTotalsStorage(), events)
        service.set_user(USER)
        service.add_borrow_lend(BorrowLend(person_name="Alice", amount=Decimal("40")))

        report = service.generate_report(ReportPeriod.MONTHLY)

        assert report.summary.total_receivable == Decimal("65")
        assert report.listed_receivable == Decimal("40")
        assert event_types(events)[-2:] == [
            AuditEventType.AGGREGATE_DIVERGENCE,
            AuditEventType.REPORT_GENERATED,
        ]

    def test_divergence_logged_once_with_both_totals(self, events, caplog):
        """Test a single warning line carries receivable and repayable figures."""
        service = make_service(StaleTotalsStorage(), events)
        service.set_user(USER)
        service.add_borrow_lend(BorrowLend(
            person_name="Bob", amount=Decimal("30"), type=BorrowLendType.BORROWED,
        ))

        with caplog.at_level(logging.WARNING):
            service.generate_report(ReportPeriod.MONTHLY)

        divergence = [
            record.getMessage() for record in caplog.records
            if "aggregate_divergence" in record.getMessage()
        ]
        assert len(divergence) == 1
        assert "listed_repayable" in divergence[0]
        assert "stored_receivable" in divergence[0]

        event = next(e for e in events if e.event_type == AuditEventType.AGGREGATE_DIVERGENCE)
        assert event.details == {
            "stored_receivable": "25",
            "listed_receivable": "0",
            "stored_repayable": "30",
            "listed_repayable": "30",
        }

    def test_export_report(self, service):
        """Test the text export."""
        service.add_transaction(Transaction(amount=Decimal("1000"), is_expense=False))
        service.add_transaction(Transaction(amount=Decimal("250"), category=Category.MEAL))

        text = service.export_report(ReportPeriod.WEEKLY)

        assert text.startswith("📊 Weekly Financial Report")
        assert "• Net Balance: HK$750.00" in text
        assert "• Savings Rate: 75.0%" in text


class TestRetries:
    """Tests for retried snapshot loads."""

    def test_transient_failure_is_retried(self, events):
        """Test a load succeeds after connection failures."""
        storage = FlakyStorage(failures=2)
        service = make_service(storage, events)

        service.set_user(USER)

        assert storage.calls == 3
        assert AuditEventType.STORAGE_ERROR not in event_types(events)

    def test_persistent_failure_raises(self, events):
        """Test the error surfaces once attempts run out."""
        storage = FlakyStorage(failures=10)
        service = make_service(storage, events)

        with pytest.raises(ConnectionError):
            service.set_user(USER)

        assert storage.calls == 3
        assert events[-1].event_type == AuditEventType.STORAGE_ERROR
        assert events[-1].details["operation"] == "get_transactions"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
