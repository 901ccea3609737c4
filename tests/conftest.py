"""Shared pytest fixtures for the upstash-kv test suite."""

from __future__ import annotations

import fnmatch
import logging
import time
from typing import Any

import pytest
import structlog

from upstash_kv.interfaces.command_client import ICommandClient, ITransaction
from upstash_kv.providers.kv.upstash_store_provider import UpstashStoreProvider
from upstash_kv.utils.errors import StoreCommandError


def pytest_configure(config: pytest.Config) -> None:
    """Keep log output off stdout and uncached so capture_logs() works."""
    structlog.configure(
        processors=[structlog.processors.add_log_level],
        wrapper_class=structlog.make_filtering_bound_logger(logging.DEBUG),
        logger_factory=structlog.ReturnLoggerFactory(),
        cache_logger_on_first_use=False,
    )
    logging.getLogger().handlers.clear()


# ---------------------------------------------------------------------------
# In-memory command client
# ---------------------------------------------------------------------------


class FakeTransaction(ITransaction):
    """Queues commands and applies them all at once on exec()."""

    def __init__(self, client: FakeCommandClient) -> None:
        self._client = client
        self._queued: list[tuple[str, tuple]] = []

    def set(self, key: str, value: Any, px: int | None = None) -> FakeTransaction:
        self._queued.append(("set", (key, value, px)))
        return self

    def exists(self, key: str) -> FakeTransaction:
        self._queued.append(("exists", (key,)))
        return self

    async def exec(self) -> list[Any]:
        self._client.calls.append(("exec", len(self._queued)))
        if "exec" in self._client.fail_on:
            raise StoreCommandError("EXECABORT Transaction discarded", command="EXEC")
        results: list[Any] = []
        for name, args in self._queued:
            if name == "set":
                self._client._write(*args)
                results.append("OK")
            else:
                results.append(1 if self._client._live(args[0]) else 0)
        return results


class FakeCommandClient(ICommandClient):
    """Redis-like ICommandClient kept in a dict.

    - expiry in milliseconds against ``time.monotonic``
    - SCAN walks keys in sorted order, examining ``count`` keys per call
      (default 10) and returning the matching subset, so pages can be empty
    - ``fail_on`` makes the named commands raise StoreCommandError
    - ``calls`` records every command name for round-trip assertions
    """

    def __init__(self, scan_count: int = 10) -> None:
        self.data: dict[str, tuple[Any, float | None]] = {}
        self.calls: list[tuple[str, Any]] = []
        self.fail_on: set[str] = set()
        self.scan_count = scan_count
        self.closed = False
        self._scan_snapshot: list[str] = []

    # -- helpers -----------------------------------------------------------

    def _check(self, name: str, arg: Any = None) -> None:
        self.calls.append((name, arg))
        if name in self.fail_on:
            raise StoreCommandError(f"ERR {name} failed", command=name.upper())

    def _write(self, key: str, value: Any, px: int | None) -> None:
        expires_at = time.monotonic() + px / 1000 if px is not None else None
        self.data[key] = (value, expires_at)

    def _live(self, key: str) -> bool:
        entry = self.data.get(key)
        if entry is None:
            return False
        _, expires_at = entry
        if expires_at is not None and time.monotonic() >= expires_at:
            del self.data[key]
            return False
        return True

    def _remove(self, keys: tuple[str, ...]) -> int:
        removed = 0
        for key in keys:
            if self._live(key):
                del self.data[key]
                removed += 1
        return removed

    def count(self, name: str) -> int:
        return sum(1 for call, _ in self.calls if call == name)

    # -- ICommandClient ----------------------------------------------------

    async def set(self, key: str, value: Any, px: int | None = None) -> Any:
        self._check("set", key)
        self._write(key, value, px)
        return "OK"

    async def get(self, key: str) -> Any | None:
        self._check("get", key)
        return self.data[key][0] if self._live(key) else None

    async def mget(self, keys: list[str]) -> list[Any | None]:
        self._check("mget", list(keys))
        return [self.data[k][0] if self._live(k) else None for k in keys]

    async def exists(self, *keys: str) -> int:
        self._check("exists", keys)
        return sum(1 for k in keys if self._live(k))

    async def unlink(self, *keys: str) -> int:
        self._check("unlink", keys)
        return self._remove(keys)

    async def delete(self, *keys: str) -> int:
        self._check("delete", keys)
        return self._remove(keys)

    async def scan(
        self,
        cursor: str,
        match: str | None = None,
        count: int | None = None,
        type: str | None = None,  # noqa: A002
    ) -> tuple[str, list[str]]:
        self._check("scan", {"cursor": cursor, "match": match, "count": count, "type": type})
        # Cursors index into the key set seen when the cycle started, so
        # removals made between pages never shift later keys out of reach.
        if cursor == "0":
            self._scan_snapshot = sorted(self.data)
        keys = self._scan_snapshot
        start = int(cursor)
        end = start + (count or self.scan_count)
        page = [
            k
            for k in keys[start:end]
            if self._live(k) and (match is None or fnmatch.fnmatchcase(k, match))
        ]
        next_cursor = str(end) if end < len(keys) else "0"
        return next_cursor, page

    async def flushdb(self) -> None:
        self._check("flushdb")
        self.data.clear()

    def multi(self) -> FakeTransaction:
        return FakeTransaction(self)

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
def fake_client() -> FakeCommandClient:
    return FakeCommandClient()


@pytest.fixture
def store(fake_client: FakeCommandClient) -> UpstashStoreProvider:
    return UpstashStoreProvider(client=fake_client)
