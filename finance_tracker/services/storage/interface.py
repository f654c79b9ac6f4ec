"""
Abstract Storage Interface

DESIGN DECISION: The ledger persists through a plain string-keyed,
string-valued async key-value store. This allows us to:
1. Swap the JSON file for any other durable store later
2. Use in-memory storage for testing
3. Keep the ledger engine decoupled from where bytes end up

The interface is intentionally tiny: get, set, remove.
Serialization of ledger fields is the engine's job, not the store's.
"""

from abc import ABC, abstractmethod
from typing import Optional


# Keys the ledger writes. Names are part of the stored format.
BALANCE_KEY = "balance"
INCOME_KEY = "income"
EXPENSE_KEY = "expense"
EXPENSES_KEY = "expenses"
CATEGORY_LIMITS_KEY = "categoryLimits"

LEDGER_KEYS = (
    BALANCE_KEY,
    INCOME_KEY,
    EXPENSE_KEY,
    EXPENSES_KEY,
    CATEGORY_LIMITS_KEY,
)


class KeyValueStoreInterface(ABC):
    """
    Abstract interface for durable key-value storage.

    Any storage implementation must implement these methods and must
    raise StorageError (or a subclass) for every backend failure.
    """

    @abstractmethod
    async def get_item(self, key: str) -> Optional[str]:
        """
        Read a value.

        Args:
            key: The key to read

        Returns:
            The stored string, or None if the key is absent

        Raises:
            StorageError: If the backend cannot be read
        """
        pass

    @abstractmethod
    async def set_item(self, key: str, value: str) -> None:
        """
        Write a value, replacing any previous one.

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def remove_item(self, key: str) -> None:
        """
        Remove a key. Removing an absent key is not an error.

        Raises:
            StorageError: If the backend cannot be written
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class CorruptDataError(StorageError):
    """Backend content could not be decoded."""
    pass

