"""
Storage Services Package

Provides the abstract key-value store interface and concrete
implementations. A JSON file is the default durable backend;
the in-memory store is used for tests.
"""

from finance_tracker.services.storage.interface import (
    BALANCE_KEY,
    CATEGORY_LIMITS_KEY,
    EXPENSE_KEY,
    EXPENSES_KEY,
    INCOME_KEY,
    LEDGER_KEYS,
    CorruptDataError,
    KeyValueStoreInterface,
    StorageError,
)
from finance_tracker.services.storage.json_file import JsonFileKeyValueStore
from finance_tracker.services.storage.memory import InMemoryKeyValueStore

__all__ = [
    # Interface
    "KeyValueStoreInterface",
    # Keys
    "BALANCE_KEY",
    "CATEGORY_LIMITS_KEY",
    "EXPENSE_KEY",
    "EXPENSES_KEY",
    "INCOME_KEY",
    "LEDGER_KEYS",
    # Exceptions
    "CorruptDataError",
    "StorageError",
    # Implementations
    "InMemoryKeyValueStore",
    "JsonFileKeyValueStore",
]
