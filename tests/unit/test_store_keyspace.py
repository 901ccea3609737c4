"""Unit tests for UpstashStoreProvider.clear, iterator and the SCAN pager."""

from __future__ import annotations

import asyncio

import pytest
from structlog.testing import capture_logs

from tests.conftest import FakeCommandClient
from upstash_kv.providers.kv.keyspace_scanner import scan_pages
from upstash_kv.providers.kv.upstash_store_provider import UpstashStoreProvider
from upstash_kv.utils.errors import StoreCommandError


async def _seed(store: UpstashStoreProvider, namespace: str | None, items: dict) -> None:
    store.namespace = namespace
    await store.set_many(list(items.items()))
    store.namespace = None


async def _collect(store: UpstashStoreProvider, namespace: str | None = None) -> dict:
    return {key: value async for key, value in store.iterator(namespace)}


# ======================================================================
# scan_pages
# ======================================================================


class TestScanPages:
    @pytest.mark.asyncio
    async def test_walks_until_cursor_returns_to_zero(self) -> None:
        client = FakeCommandClient(scan_count=3)
        for i in range(8):
            await client.set(f"k{i}", str(i))

        pages = [page async for page in scan_pages(client, "*")]

        assert len(pages) == 3
        assert sorted(k for page in pages for k in page) == [f"k{i}" for i in range(8)]

    @pytest.mark.asyncio
    async def test_empty_keyspace_single_round_trip(self) -> None:
        client = FakeCommandClient()
        pages = [page async for page in scan_pages(client, "*")]
        assert pages == [[]]
        assert client.count("scan") == 1

    @pytest.mark.asyncio
    async def test_passes_match_count_and_type(self) -> None:
        client = FakeCommandClient()
        async for _ in scan_pages(client, "ns::*", count=50):
            pass
        assert client.calls[0] == (
            "scan",
            {"cursor": "0", "match": "ns::*", "count": 50, "type": "string"},
        )


# ======================================================================
# clear
# ======================================================================


class TestClear:
    @pytest.mark.asyncio
    async def test_clear_with_no_namespace(self, store: UpstashStoreProvider) -> None:
        await store.set("foo90", "bar")
        await store.set("foo902", "bar2")
        await store.set("foo903", "bar3")

        report = await store.clear()

        assert report.completed is True
        assert report.deleted == 3
        assert await store.get("foo90") is None

    @pytest.mark.asyncio
    async def test_clear_with_del(
        self, store: UpstashStoreProvider, fake_client: FakeCommandClient
    ) -> None:
        store.use_unlink = False
        await store.set("foo90", "bar")
        await store.clear()
        assert await store.get("foo90") is None
        assert fake_client.count("delete") == 1
        assert fake_client.count("unlink") == 0

    @pytest.mark.asyncio
    async def test_clear_without_namespace_keeps_namespaced_keys(
        self, store: UpstashStoreProvider
    ) -> None:
        await _seed(store, None, {"plain1": "p1", "plain2": "p2"})
        await _seed(store, "ns1", {"a": "1"})
        await _seed(store, "ns2", {"b": "2"})

        await store.clear()

        assert await store.get_many(["plain1", "plain2"]) == [None, None]
        store.namespace = "ns1"
        assert await store.get("a") == "1"
        store.namespace = "ns2"
        assert await store.get("b") == "2"

    @pytest.mark.asyncio
    async def test_clear_namespace_but_not_other_ones(self, store: UpstashStoreProvider) -> None:
        await _seed(store, "ns1", {"k1": "v1", "k2": "v2"})
        await _seed(store, "ns2", {"k1": "other"})
        await _seed(store, None, {"k1": "plain"})

        store.namespace = "ns1"
        await store.clear()

        assert await store.get("k1") is None
        assert await store.get("k2") is None
        store.namespace = "ns2"
        assert await store.get("k1") == "other"
        store.namespace = None
        assert await store.get("k1") == "plain"

    @pytest.mark.asyncio
    async def test_clear_pages_by_batch_size(
        self, store: UpstashStoreProvider, fake_client: FakeCommandClient
    ) -> None:
        store.namespace = "ns"
        await store.set_many([(f"k{i:02d}", str(i)) for i in range(25)])
        store.clear_batch_size = 10

        report = await store.clear()

        assert report.pages == 3
        assert report.deleted == 25
        assert fake_client.data == {}
        assert all(
            arg["count"] == 10 and arg["match"] == "ns::*"
            for name, arg in fake_client.calls
            if name == "scan"
        )

    @pytest.mark.asyncio
    async def test_empty_pages_are_skipped(self, fake_client: FakeCommandClient) -> None:
        store = UpstashStoreProvider(client=fake_client, clear_batch_size=2)
        await _seed(store, "other", {"a": "1", "b": "2", "c": "3", "d": "4"})
        await _seed(store, "target", {"z": "26"})

        store.namespace = "target"
        report = await store.clear()

        assert report.pages == 3
        assert report.deleted == 1
        assert fake_client.count("unlink") == 1

    @pytest.mark.asyncio
    async def test_clear_on_empty_store(self, store: UpstashStoreProvider) -> None:
        report = await store.clear()
        assert report.completed is True
        assert report.deleted == 0
        store.namespace = "ns1"
        report = await store.clear()
        assert report.deleted == 0

    @pytest.mark.asyncio
    async def test_no_namespace_affects_all_flushes(
        self, store: UpstashStoreProvider, fake_client: FakeCommandClient
    ) -> None:
        await _seed(store, "ns1", {"a": "1"})
        await store.set("plain", "p")
        store.no_namespace_affects_all = True

        report = await store.clear()

        assert report.flushed is True
        assert fake_client.count("flushdb") == 1
        assert fake_client.count("scan") == 0
        assert fake_client.data == {}

    @pytest.mark.asyncio
    async def test_affects_all_ignored_with_namespace(
        self, store: UpstashStoreProvider, fake_client: FakeCommandClient
    ) -> None:
        await _seed(store, "ns1", {"a": "1"})
        await store.set("plain", "p")
        store.namespace = "ns1"
        store.no_namespace_affects_all = True

        report = await store.clear()

        assert report.flushed is False
        assert fake_client.count("flushdb") == 0
        assert "plain" in fake_client.data

    @pytest.mark.asyncio
    async def test_flush_error_propagates(
        self, store: UpstashStoreProvider, fake_client: FakeCommandClient
    ) -> None:
        store.no_namespace_affects_all = True
        fake_client.fail_on = {"flushdb"}
        with pytest.raises(StoreCommandError):
            await store.clear()

    @pytest.mark.asyncio
    async def test_loop_error_is_reported_not_raised(
        self, store: UpstashStoreProvider, fake_client: FakeCommandClient
    ) -> None:
        received: list[Exception] = []
        store.register_error_listener(received.append)
        await store.set("a", "1")
        fake_client.fail_on = {"unlink"}

        report = await store.clear()

        assert report.completed is False
        assert len(report.errors) == 1
        assert "unlink" in report.errors[0]
        assert len(received) == 1
        assert isinstance(received[0], StoreCommandError)

    @pytest.mark.asyncio
    async def test_loop_error_is_logged(
        self, store: UpstashStoreProvider, fake_client: FakeCommandClient
    ) -> None:
        await store.set("a", "1")
        fake_client.fail_on = {"unlink"}

        with capture_logs() as logs:
            await store.clear()

        failures = [log for log in logs if log["event"] == "store_clear_failed"]
        assert len(failures) == 1
        assert failures[0]["log_level"] == "warning"

    @pytest.mark.asyncio
    async def test_scan_error_is_reported(self, fake_client: FakeCommandClient) -> None:
        received: list[Exception] = []

        async def on_error(error: Exception) -> None:
            received.append(error)

        store = UpstashStoreProvider(client=fake_client, on_error=on_error)
        fake_client.fail_on = {"scan"}

        report = await store.clear()

        assert report.completed is False
        assert report.pages == 0
        assert len(received) == 1

    @pytest.mark.asyncio
    async def test_failing_listener_does_not_break_clear(
        self, store: UpstashStoreProvider, fake_client: FakeCommandClient
    ) -> None:
        calls: list[Exception] = []

        def broken(error: Exception) -> None:
            raise RuntimeError("listener down")

        store.register_error_listener(broken)
        store.register_error_listener(calls.append)
        await store.set("a", "1")
        fake_client.fail_on = {"unlink"}

        report = await store.clear()

        assert report.completed is False
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_unregistered_listener_not_called(
        self, store: UpstashStoreProvider, fake_client: FakeCommandClient
    ) -> None:
        received: list[Exception] = []
        store.register_error_listener(received.append)
        store.unregister_error_listener(received.append)
        await store.set("a", "1")
        fake_client.fail_on = {"unlink"}

        await store.clear()

        assert received == []


# ======================================================================
# iterator
# ======================================================================


class TestIterator:
    @pytest.mark.asyncio
    async def test_iterates_namespace_unprefixed(self, store: UpstashStoreProvider) -> None:
        await _seed(store, "ns1", {"a": "1", "b": "2"})
        await _seed(store, "ns2", {"c": "3"})
        await store.set("plain", "p")

        assert await _collect(store, "ns1") == {"a": "1", "b": "2"}

    @pytest.mark.asyncio
    async def test_without_namespace_only_unprefixed(self, store: UpstashStoreProvider) -> None:
        await _seed(store, "ns1", {"a": "1"})
        await store.set("plain", "p")
        await store.set("other", "o")

        assert await _collect(store) == {"plain": "p", "other": "o"}

    @pytest.mark.asyncio
    async def test_affects_all_yields_every_key(self, store: UpstashStoreProvider) -> None:
        await _seed(store, "ns1", {"a": "1"})
        await store.set("plain", "p")
        store.no_namespace_affects_all = True

        assert await _collect(store) == {"ns1::a": "1", "plain": "p"}

    @pytest.mark.asyncio
    async def test_uses_argument_not_instance_namespace(
        self, store: UpstashStoreProvider
    ) -> None:
        await _seed(store, "ns1", {"a": "1"})
        await _seed(store, "ns2", {"b": "2"})
        store.namespace = "ns1"

        assert await _collect(store, "ns2") == {"b": "2"}

    @pytest.mark.asyncio
    async def test_skips_expired_keys(self, store: UpstashStoreProvider) -> None:
        store.namespace = "ns"
        await store.set("live", "1")
        await store.set("gone", "2", ttl=5)
        await asyncio.sleep(0.02)

        assert await _collect(store, "ns") == {"live": "1"}

    @pytest.mark.asyncio
    async def test_skips_null_values_between_scan_and_mget(
        self, store: UpstashStoreProvider, fake_client: FakeCommandClient
    ) -> None:
        await store.set("a", "1")
        await store.set("b", "2")
        original_mget = fake_client.mget

        async def racing_mget(keys: list[str]) -> list:
            fake_client.data.pop("b", None)
            return await original_mget(keys)

        fake_client.mget = racing_mget  # type: ignore[method-assign]

        assert await _collect(store) == {"a": "1"}

    @pytest.mark.asyncio
    async def test_early_stop_fetches_no_more_pages(self) -> None:
        client = FakeCommandClient(scan_count=2)
        store = UpstashStoreProvider(client=client)
        await store.set_many([(f"k{i}", str(i)) for i in range(10)])

        async for _key, _value in store.iterator():
            break

        assert client.count("scan") == 1
        assert client.count("mget") == 1

    @pytest.mark.asyncio
    async def test_page_fetch_is_one_mget(self) -> None:
        client = FakeCommandClient(scan_count=4)
        store = UpstashStoreProvider(client=client)
        await store.set_many([(f"k{i}", str(i)) for i in range(8)])

        result = await _collect(store)

        assert len(result) == 8
        assert client.count("scan") == 2
        assert client.count("mget") == 2

    @pytest.mark.asyncio
    async def test_fresh_scan_per_call(self, store: UpstashStoreProvider) -> None:
        await store.set("a", "1")
        assert await _collect(store) == {"a": "1"}
        assert await _collect(store) == {"a": "1"}

    @pytest.mark.asyncio
    async def test_errors_propagate(
        self, store: UpstashStoreProvider, fake_client: FakeCommandClient
    ) -> None:
        fake_client.fail_on = {"scan"}
        with pytest.raises(StoreCommandError):
            await _collect(store)
