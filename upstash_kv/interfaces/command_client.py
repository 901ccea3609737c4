"""Abstract base classes for the remote-store command client.

The store adapter never talks HTTP itself.  It issues Redis commands
through an :class:`ICommandClient`, which owns the connection,
authentication and wire encoding of values.  The store is expected to
provide per-key expiry, cursor-based ``SCAN`` enumeration and atomic
``MULTI/EXEC`` transactions natively.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


# Concrete implementations: UpstashRestTransaction
# Located in: upstash_kv/providers/command/
class ITransaction(ABC):
    """Queue of commands executed atomically by :meth:`exec`.

    Queueing methods return the transaction itself so calls can be chained.
    """

    @abstractmethod
    def set(self, key: str, value: Any, px: int | None = None) -> ITransaction:
        """Queue ``SET key value [PX px]``."""

    @abstractmethod
    def exists(self, key: str) -> ITransaction:
        """Queue ``EXISTS key``."""

    @abstractmethod
    async def exec(self) -> list[Any]:
        """Run all queued commands atomically.

        Returns
        -------
        list
            One result per queued command, in submission order.

        Raises
        ------
        upstash_kv.utils.errors.StoreCommandError
            If the store rejects the transaction or any command in it.
        """


# Concrete implementations: UpstashRestClient
# Located in: upstash_kv/providers/command/
class ICommandClient(ABC):
    """Contract for the Redis-compatible client a store adapter drives.

    Every method is a single round trip.  Implementations must not retry.
    """

    @abstractmethod
    async def set(self, key: str, value: Any, px: int | None = None) -> Any:
        """Store *value* under *key*, expiring after *px* milliseconds if given.

        A plain ``SET`` (``px=None``) clears any previous expiry.
        """

    @abstractmethod
    async def get(self, key: str) -> Any | None:
        """Return the stored value, or ``None`` when the key is absent."""

    @abstractmethod
    async def mget(self, keys: list[str]) -> list[Any | None]:
        """Return values for *keys* in the same order, ``None`` for absent keys."""

    @abstractmethod
    async def exists(self, *keys: str) -> int:
        """Return how many of *keys* exist."""

    @abstractmethod
    async def unlink(self, *keys: str) -> int:
        """Remove *keys* without blocking the server; return the count removed."""

    @abstractmethod
    async def delete(self, *keys: str) -> int:
        """Remove *keys* synchronously (``DEL``); return the count removed."""

    @abstractmethod
    async def scan(
        self,
        cursor: str,
        match: str | None = None,
        count: int | None = None,
        type: str | None = None,  # noqa: A002 -- mirrors the SCAN option name
    ) -> tuple[str, list[str]]:
        """Fetch one page of key names.

        Parameters
        ----------
        cursor:
            ``"0"`` to start a new cycle, otherwise the cursor returned by the
            previous call.
        match:
            Glob pattern keys must match.
        count:
            Hint for how many keys to examine per call.
        type:
            Only return keys holding this Redis type (e.g. ``"string"``).

        Returns
        -------
        tuple[str, list[str]]
            The next cursor and the page of key names.  A returned cursor of
            ``"0"`` means the cycle is complete.
        """

    @abstractmethod
    async def flushdb(self) -> None:
        """Remove every key in the database."""

    @abstractmethod
    def multi(self) -> ITransaction:
        """Start a new atomic transaction."""

    @abstractmethod
    async def aclose(self) -> None:
        """Release transport resources held by the client."""
