"""Tests for the storage backends."""

import json
import pytest
from datetime import datetime
from decimal import Decimal
from uuid import uuid4

from finance_manager.config import StorageSettings
from finance_manager.models import BorrowLend, BorrowLendType, Category, PaymentMethod, Transaction
from finance_manager.services.storage import (
    ConnectionError,
    InMemoryFinanceStorage,
    JsonFileFinanceStorage,
    NotFoundError,
    StorageError,
    create_storage,
)
from finance_manager.services.storage.json_file import (
    borrow_lend_from_document,
    borrow_lend_to_document,
    transaction_from_document,
)


USER = "user-1"


def make_tx(amount: str = "10", day: int = 1) -> Transaction:
    return Transaction(
        amount=Decimal(amount),
        category=Category.MEAL,
        payment_method=PaymentMethod.OCTOPUS,
        description="lunch",
        date=datetime(2024, 4, day, 12, 30, 15),
        created_at=datetime(2024, 4, day, 12, 31, 0),
    )


def make_record(
    amount: str = "100",
    record_type: BorrowLendType = BorrowLendType.LENT,
    settled: bool = False,
) -> BorrowLend:
    return BorrowLend(
        person_name="Alice",
        amount=Decimal(amount),
        type=record_type,
        description="dinner",
        date=datetime(2024, 4, 2, 13, 0, 0),
        due_date=datetime(2024, 5, 2, 13, 0, 0),
        is_settled=settled,
        settled_date=datetime(2024, 4, 20, 13, 0, 0) if settled else None,
        created_at=datetime(2024, 4, 2, 13, 0, 5),
    )


@pytest.fixture
def storage() -> InMemoryFinanceStorage:
    return InMemoryFinanceStorage()


class TestInMemoryTransactions:
    """Tests for transaction CRUD."""

    def test_add_assigns_id_and_user(self, storage):
        """Test the stored copy gets a new id and the owner."""
        tx = make_tx()
        stored_id = storage.add_transaction(USER, tx)

        stored = storage.get_transactions(USER)
        assert len(stored) == 1
        assert stored[0].id == stored_id
        assert stored[0].id != tx.id
        assert stored[0].user_id == USER

    def test_transactions_ordered_by_date(self, storage):
        """Test listing order."""
        storage.add_transaction(USER, make_tx(day=3))
        storage.add_transaction(USER, make_tx(day=1))
        assert [tx.date.day for tx in storage.get_transactions(USER)] == [1, 3]

    def test_users_are_isolated(self, storage):
        """Test records belong to one user."""
        storage.add_transaction(USER, make_tx())
        assert storage.get_transactions("user-2") == []

    def test_update(self, storage):
        """Test replacing a stored transaction."""
        storage.add_transaction(USER, make_tx("10"))
        stored = storage.get_transactions(USER)[0]

        storage.update_transaction(USER, stored.model_copy(update={"amount": Decimal("25")}))

        assert storage.get_transactions(USER)[0].amount == Decimal("25")

    def test_update_unknown_raises(self, storage):
        """Test updating a missing transaction."""
        with pytest.raises(NotFoundError):
            storage.update_transaction(USER, make_tx())

    def test_delete(self, storage):
        """Test deleting a transaction."""
        stored_id = storage.add_transaction(USER, make_tx())
        storage.delete_transaction(USER, stored_id)
        assert storage.get_transactions(USER) == []

    def test_delete_unknown_raises(self, storage):
        """Test deleting a missing transaction."""
        with pytest.raises(NotFoundError):
            storage.delete_transaction(USER, uuid4())

    def test_not_found_is_storage_error(self):
        """Test the exception hierarchy."""
        assert issubclass(NotFoundError, StorageError)


class TestInMemoryBorrowLend:
    """Tests for borrow/lend CRUD and totals."""

    def test_totals_count_only_unsettled(self, storage):
        """Test receivable and repayable totals."""
        storage.add_borrow_lend(USER, make_record("100"))
        storage.add_borrow_lend(USER, make_record("40", settled=True))
        storage.add_borrow_lend(USER, make_record("70", record_type=BorrowLendType.BORROWED))

        assert storage.get_total_receivable(USER) == Decimal("100")
        assert storage.get_total_repayable(USER) == Decimal("70")

    def test_totals_for_unknown_user(self, storage):
        """Test totals default to zero."""
        assert storage.get_total_receivable("nobody") == Decimal("0")
        assert storage.get_total_repayable("nobody") == Decimal("0")

    def test_settling_updates_totals(self, storage):
        """Test totals follow settlement."""
        storage.add_borrow_lend(USER, make_record("100"))
        record = storage.get_borrow_lend_records(USER)[0]

        storage.update_borrow_lend(USER, record.toggle_settlement())

        assert storage.get_total_receivable(USER) == Decimal("0")

    def test_update_and_delete_unknown_raise(self, storage):
        """Test missing borrow/lend records."""
        with pytest.raises(NotFoundError):
            storage.update_borrow_lend(USER, make_record())
        with pytest.raises(NotFoundError):
            storage.delete_borrow_lend(USER, uuid4())

    def test_clear_user(self, storage):
        """Test clearing removes both collections."""
        storage.add_transaction(USER, make_tx())
        storage.add_borrow_lend(USER, make_record())

        storage.clear_user(USER)

        assert storage.get_transactions(USER) == []
        assert storage.get_borrow_lend_records(USER) == []


class TestDocuments:
    """Tests for the stored document format."""

    def test_borrow_lend_document_keys(self):
        """Test camelCase keys, enum names and millisecond dates."""
        record = make_record()
        doc = borrow_lend_to_document(record)

        assert doc["personName"] == "Alice"
        assert doc["type"] == "LENT"
        assert doc["isSettled"] is False
        assert doc["settledDate"] == ""
        assert doc["date"] == int(record.date.timestamp() * 1000)

    def test_missing_fields_use_defaults(self):
        """Test sparse documents."""
        tx = transaction_from_document({"id": str(uuid4())})
        assert tx.category == Category.OTHERS
        assert tx.payment_method == PaymentMethod.CASH
        assert tx.is_expense is True
        assert tx.amount == Decimal("0")

    def test_unsettled_document_has_no_settled_date(self):
        """Test an empty settled date loads as None."""
        doc = borrow_lend_to_document(make_record())
        assert borrow_lend_from_document(doc).settled_date is None


class TestJsonFileStorage:
    """Tests for the JSON file backend."""

    def test_records_survive_reload(self, tmp_path):
        """Test writing and reopening the file."""
        path = tmp_path / "finance.json"
        storage = JsonFileFinanceStorage(path)
        storage.add_transaction(USER, make_tx("12.34"))
        storage.add_borrow_lend(USER, make_record(settled=True))

        reopened = JsonFileFinanceStorage(path)
        tx = reopened.get_transactions(USER)[0]
        record = reopened.get_borrow_lend_records(USER)[0]

        assert tx == storage.get_transactions(USER)[0]
        assert tx.amount == Decimal("12.34")
        assert tx.payment_method == PaymentMethod.OCTOPUS
        assert record == storage.get_borrow_lend_records(USER)[0]
        assert record.settled_date == datetime(2024, 4, 20, 13, 0, 0)

    def test_file_layout(self, tmp_path):
        """Test the users/<id>/<collection> layout."""
        path = tmp_path / "finance.json"
        storage = JsonFileFinanceStorage(path)
        stored_id = storage.add_transaction(USER, make_tx())

        data = json.loads(path.read_text(encoding="utf-8"))
        doc = data["users"][USER]["transactions"][str(stored_id)]
        assert doc["category"] == "MEAL"
        assert doc["userId"] == USER
        assert data["users"][USER]["borrow_lend"] == {}

    def test_missing_file_is_empty(self, tmp_path):
        """Test a fresh path starts empty."""
        storage = JsonFileFinanceStorage(tmp_path / "missing.json")
        assert storage.get_transactions(USER) == []
        assert not storage.path.exists()

    def test_clear_user_is_persisted(self, tmp_path):
        """Test clearing is written to disk."""
        path = tmp_path / "finance.json"
        storage = JsonFileFinanceStorage(path)
        storage.add_transaction(USER, make_tx())
        storage.clear_user(USER)

        assert JsonFileFinanceStorage(path).get_transactions(USER) == []

    def test_corrupt_file_raises(self, tmp_path):
        """Test unreadable JSON."""
        path = tmp_path / "finance.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(StorageError):
            JsonFileFinanceStorage(path)

    @pytest.mark.parametrize("content", ["[1, 2]", '"text"', '{"users": []}'])
    def test_non_object_file_raises(self, tmp_path, content):
        """Test valid JSON with the wrong shape."""
        path = tmp_path / "finance.json"
        path.write_text(content, encoding="utf-8")
        with pytest.raises(StorageError, match="Invalid document"):
            JsonFileFinanceStorage(path)

    def test_failed_add_is_rolled_back(self, tmp_path, monkeypatch):
        """Test an unsaved transaction does not stay in memory."""
        path = tmp_path / "finance.json"
        storage = JsonFileFinanceStorage(path)
        storage.add_transaction(USER, make_tx("1"))

        def fail_write(text):
            raise OSError("disk full")

        monkeypatch.setattr(storage, "_write_text", fail_write)

        with pytest.raises(ConnectionError):
            storage.add_transaction(USER, make_tx("5"))

        assert [tx.amount for tx in storage.get_transactions(USER)] == [Decimal("1")]
        assert [tx.amount for tx in JsonFileFinanceStorage(path).get_transactions(USER)] == [
            Decimal("1")
        ]

    def test_failed_first_write_leaves_no_user(self, tmp_path, monkeypatch):
        """Test a new user is not created by a failed write."""
        storage = JsonFileFinanceStorage(tmp_path / "finance.json")

        def fail_write(text):
            raise OSError("read-only")

        monkeypatch.setattr(storage, "_write_text", fail_write)

        with pytest.raises(ConnectionError):
            storage.add_borrow_lend(USER, make_record())

        assert storage.get_borrow_lend_records(USER) == []
        assert storage.get_total_receivable(USER) == Decimal("0")

    def test_failed_update_and_clear_are_rolled_back(self, tmp_path, monkeypatch):
        """Test updates and clears are undone when the file write fails."""
        storage = JsonFileFinanceStorage(tmp_path / "finance.json")
        storage.add_borrow_lend(USER, make_record("100"))
        record = storage.get_borrow_lend_records(USER)[0]

        def fail_write(text):
            raise OSError("disk full")

        monkeypatch.setattr(storage, "_write_text", fail_write)

        with pytest.raises(ConnectionError):
            storage.update_borrow_lend(USER, record.toggle_settlement())
        with pytest.raises(ConnectionError):
            storage.clear_user(USER)

        assert storage.get_borrow_lend_records(USER) == [record]
        assert storage.get_total_receivable(USER) == Decimal("100")

    def test_invalid_document_raises(self, tmp_path):
        """Test a document with an unknown enum name."""
        path = tmp_path / "finance.json"
        doc = {"id": str(uuid4()), "category": "RENT"}
        path.write_text(
            json.dumps({"users": {USER: {"transactions": {doc["id"]: doc}}}}),
            encoding="utf-8",
        )
        with pytest.raises(StorageError, match="Invalid document"):
            JsonFileFinanceStorage(path)


class TestCreateStorage:
    """Tests for the storage factory."""

    def test_memory_backend(self):
        """Test the default backend."""
        assert isinstance(create_storage(StorageSettings()), InMemoryFinanceStorage)

    def test_json_backend(self, tmp_path):
        """Test selecting the JSON backend."""
        settings = StorageSettings(backend="json", data_path=str(tmp_path / "data.json"))
        storage = create_storage(settings)
        assert isinstance(storage, JsonFileFinanceStorage)
        assert storage.path == tmp_path / "data.json"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
