"""Services package."""

from finance_manager.services.storage import (
    ConnectionError,
    FinanceStorageInterface,
    InMemoryFinanceStorage,
    JsonFileFinanceStorage,
    NotFoundError,
    StorageError,
    create_storage,
)

__all__ = [
    "ConnectionError",
    "FinanceStorageInterface",
    "InMemoryFinanceStorage",
    "JsonFileFinanceStorage",
    "NotFoundError",
    "StorageError",
    "create_storage",
]
