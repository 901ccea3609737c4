"""Abstract base class for namespaced key-value stores.

Defines the contract a generic caching front end consumes.  Keys are raw
strings; the store applies its own namespace prefix.  All TTLs are in
milliseconds.  The adapter pattern keeps the caching layer unaware of
which remote store sits behind it.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Iterable
from typing import Any

from upstash_kv.models.store import ClearReport, StoreEntry


# Concrete implementations: UpstashStoreProvider
# Located in: upstash_kv/providers/kv/
class IKeyValueStore(ABC):
    """Contract for key-value stores used behind a caching front end."""

    @abstractmethod
    async def get(self, key: str) -> Any | None:
        """Return the value stored under *key*, or ``None`` if absent."""

    @abstractmethod
    async def get_many(self, keys: list[str]) -> list[Any | None]:
        """Return one value (or ``None``) per key, preserving order and length."""

    @abstractmethod
    async def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        """Store *value* under *key*.

        Parameters
        ----------
        key:
            Raw key (without namespace prefix).
        value:
            Value passed through to the store untouched.
        ttl:
            Time-to-live in milliseconds.  ``None`` falls back to the store's
            default TTL; with no default the entry never expires.
        """

    @abstractmethod
    async def set_many(self, entries: Iterable[StoreEntry]) -> None:
        """Store every entry in one atomic unit; all or nothing."""

    @abstractmethod
    async def has(self, key: str) -> bool:
        """Return ``True`` if *key* exists."""

    @abstractmethod
    async def has_many(self, keys: list[str]) -> list[bool]:
        """Return existence flags for *keys* in the same order."""

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """Remove *key*; ``True`` if something was removed."""

    @abstractmethod
    async def delete_many(self, keys: list[str]) -> bool:
        """Remove *keys*; ``True`` if at least one was removed."""

    @abstractmethod
    async def clear(self) -> ClearReport:
        """Remove every key visible under the current namespace policy.

        Failures during bulk removal are reported in the returned
        :class:`ClearReport` rather than raised.
        """

    @abstractmethod
    def iterator(self, namespace: str | None = None) -> AsyncIterator[tuple[str, Any]]:
        """Lazily yield ``(key, value)`` pairs, one store page at a time."""

    @abstractmethod
    async def aclose(self) -> None:
        """Release resources owned by the store."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a short identifier for logs and errors."""
