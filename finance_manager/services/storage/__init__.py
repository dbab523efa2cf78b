"""
Storage Services Package

Provides the abstract storage interface and its implementations.
The backend is chosen by ``StorageSettings.backend``.
"""

from typing import Optional

from finance_manager.config import StorageSettings, get_settings
from finance_manager.services.storage.interface import (
    ConnectionError,
    FinanceStorageInterface,
    NotFoundError,
    StorageError,
)
from finance_manager.services.storage.memory import InMemoryFinanceStorage
from finance_manager.services.storage.json_file import JsonFileFinanceStorage


def create_storage(settings: Optional[StorageSettings] = None) -> FinanceStorageInterface:
    """Build the storage backend named in the settings."""
    settings = settings or get_settings().storage
    if settings.backend == "json":
        return JsonFileFinanceStorage(settings.data_path)
    return InMemoryFinanceStorage()


__all__ = [
    # Interface
    "FinanceStorageInterface",
    # Exceptions
    "ConnectionError",
    "NotFoundError",
    "StorageError",
    # Implementations
    "InMemoryFinanceStorage",
    "JsonFileFinanceStorage",
    "create_storage",
]
