"""Upstash Redis key-value store implementing IKeyValueStore.

Presents a Redis database reached over the Upstash REST API as a
namespaced key-value store for a generic caching front end.  Keys are
prefixed with ``namespace + separator``; TTLs are milliseconds and map to
``SET ... PX``; multi-key writes and existence checks run as one
``MULTI/EXEC`` transaction; ``clear`` and ``iterator`` walk the keyspace
with ``SCAN`` one page at a time.

# ─── NAMESPACE POLICY ─────────────────────────────────────────────────
#
#   namespace set            → operations touch "ns::*" only
#   no namespace             → clear/iterator touch keys WITHOUT a separator
#   no namespace + affects_all → clear is FLUSHDB, iterator sees every key
#
# A raw key that itself contains the separator collides with namespaced
# keys.  Nothing is escaped; see upstash_kv/utils/key_codec.py.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Callable, Iterable, Mapping
from typing import Any

import httpx
import structlog
from pydantic import ValidationError

from upstash_kv.interfaces.command_client import ICommandClient
from upstash_kv.interfaces.key_value_store import IKeyValueStore
from upstash_kv.models.store import ClearReport, StoreEntry, StoreOptions
from upstash_kv.providers.command.upstash_rest_client import UpstashRestClient
from upstash_kv.providers.kv.keyspace_scanner import scan_pages
from upstash_kv.utils.errors import ConfigurationError
from upstash_kv.utils.key_codec import (
    DEFAULT_SEPARATOR,
    decode_key,
    encode_key,
    match_pattern,
    unprefixed_only,
)

logger = structlog.get_logger(logger_name=__name__)

_PROVIDER_NAME = "upstash"

ErrorListener = Callable[[Exception], Any]


def _coerce_entry(entry: StoreEntry | Mapping[str, Any] | tuple) -> StoreEntry:
    """Accept ``StoreEntry``, ``{"key", "value", "ttl"}`` or ``(key, value[, ttl])``."""
    if isinstance(entry, StoreEntry):
        return entry
    if isinstance(entry, Mapping):
        return StoreEntry(**entry)
    if not isinstance(entry, (tuple, list)) or len(entry) not in (2, 3):
        raise ValueError(f"Expected (key, value[, ttl]), got {entry!r}")
    return StoreEntry(**dict(zip(("key", "value", "ttl"), entry)))


class UpstashStoreProvider(IKeyValueStore):
    """Namespaced key-value store backed by Upstash Redis.

    Construct with either a ready command client (``client=``, borrowed:
    :meth:`aclose` leaves it open) or with ``url`` and ``token`` (owned: an
    :class:`UpstashRestClient` is built and closed with the store).

    Every option is a read/write property and takes effect for the next
    operation.  Operations snapshot the options when they start; do not
    mutate options while a call is in flight on the same instance if you
    need to know which value that call used.

    Parameters
    ----------
    client:
        Existing command client.  Mutually exclusive with ``url``/``token``.
    url, token:
        Upstash REST credentials used to build an owned client.
    namespace:
        Logical partition; ``None`` means the unprefixed keyspace.
    key_prefix_separator:
        String joining namespace and key.  Defaults to ``"::"``.
    default_ttl:
        TTL in milliseconds applied when a call passes none.
    use_unlink:
        Remove keys with ``UNLINK`` (default) instead of ``DEL``.
    clear_batch_size:
        ``SCAN COUNT`` per page during :meth:`clear`.
    no_namespace_affects_all:
        With no namespace, :meth:`clear` flushes the database and
        :meth:`iterator` yields every key.
    on_error:
        Listener registered up front; see :meth:`register_error_listener`.
    http_client, timeout:
        Passed to the owned :class:`UpstashRestClient`.
    """

    def __init__(
        self,
        client: ICommandClient | None = None,
        *,
        url: str | None = None,
        token: str | None = None,
        namespace: str | None = None,
        key_prefix_separator: str = DEFAULT_SEPARATOR,
        default_ttl: int | None = None,
        use_unlink: bool = True,
        clear_batch_size: int = 1000,
        no_namespace_affects_all: bool = False,
        on_error: ErrorListener | None = None,
        http_client: httpx.AsyncClient | None = None,
        timeout: float | None = None,
    ) -> None:
        if client is not None and (url or token):
            raise ConfigurationError(
                message="Pass either a client or url/token, not both",
                provider_name=_PROVIDER_NAME,
            )

        try:
            self._options = StoreOptions(
                namespace=namespace,
                key_prefix_separator=key_prefix_separator,
                default_ttl=default_ttl,
                use_unlink=use_unlink,
                clear_batch_size=clear_batch_size,
                no_namespace_affects_all=no_namespace_affects_all,
            )
        except ValidationError as exc:
            raise ConfigurationError(
                message=f"Invalid store options: {exc}",
                provider_name=_PROVIDER_NAME,
            ) from exc

        self._initial_options: dict[str, Any] = {
            "url": url,
            "namespace": namespace,
            "key_prefix_separator": key_prefix_separator,
            "default_ttl": default_ttl,
            "use_unlink": use_unlink,
            "clear_batch_size": clear_batch_size,
            "no_namespace_affects_all": no_namespace_affects_all,
        }

        if client is not None:
            self._client = client
            self._owns_client = False
        else:
            rest_kwargs: dict[str, Any] = {"http_client": http_client}
            if timeout is not None:
                rest_kwargs["timeout"] = timeout
            self._client = UpstashRestClient(url or "", token or "", **rest_kwargs)
            self._owns_client = True

        self._error_listeners: list[ErrorListener] = []
        if on_error is not None:
            self.register_error_listener(on_error)

        logger.debug(
            "store_initialized",
            namespace=namespace,
            owns_client=self._owns_client,
        )

    async def __aenter__(self) -> UpstashStoreProvider:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    # ------------------------------------------------------------------
    # Client and options
    # ------------------------------------------------------------------

    @property
    def client(self) -> ICommandClient:
        return self._client

    @client.setter
    def client(self, client: ICommandClient) -> None:
        # Assigned clients are always borrowed.
        self._client = client
        self._owns_client = False

    def _set_option(self, name: str, value: Any) -> None:
        try:
            setattr(self._options, name, value)
        except ValidationError as exc:
            raise ConfigurationError(
                message=f"Invalid value for {name}: {exc}",
                provider_name=_PROVIDER_NAME,
            ) from exc

    @property
    def namespace(self) -> str | None:
        return self._options.namespace

    @namespace.setter
    def namespace(self, value: str | None) -> None:
        self._set_option("namespace", value)

    @property
    def key_prefix_separator(self) -> str:
        return self._options.key_prefix_separator

    @key_prefix_separator.setter
    def key_prefix_separator(self, value: str) -> None:
        self._set_option("key_prefix_separator", value)

    @property
    def default_ttl(self) -> int | None:
        return self._options.default_ttl

    @default_ttl.setter
    def default_ttl(self, value: int | None) -> None:
        self._set_option("default_ttl", value)

    @property
    def use_unlink(self) -> bool:
        return self._options.use_unlink

    @use_unlink.setter
    def use_unlink(self, value: bool) -> None:
        self._set_option("use_unlink", value)

    @property
    def clear_batch_size(self) -> int:
        return self._options.clear_batch_size

    @clear_batch_size.setter
    def clear_batch_size(self, value: int) -> None:
        self._set_option("clear_batch_size", value)

    @property
    def no_namespace_affects_all(self) -> bool:
        return self._options.no_namespace_affects_all

    @no_namespace_affects_all.setter
    def no_namespace_affects_all(self, value: bool) -> None:
        self._set_option("no_namespace_affects_all", value)

    @property
    def opts(self) -> dict[str, Any]:
        """Construction options overlaid with the current live values."""
        return {
            **self._initial_options,
            **self._options.model_dump(),
            # Front ends use the dialect to pick key-iteration behaviour.
            "dialect": "redis",
            "client": self._client,
        }

    def get_key_name(self, key: str) -> str:
        """Fully-qualified name of *key* under the current namespace."""
        return encode_key(key, self._options.namespace, self._options.key_prefix_separator)

    def get_provider_name(self) -> str:
        return _PROVIDER_NAME

    # ------------------------------------------------------------------
    # Error listeners
    # ------------------------------------------------------------------

    def register_error_listener(self, callback: ErrorListener) -> None:
        """Receive exceptions swallowed by :meth:`clear`.

        *callback* may be sync or async and is called with the exception.
        """
        if callback not in self._error_listeners:
            self._error_listeners.append(callback)

    def unregister_error_listener(self, callback: ErrorListener) -> None:
        if callback in self._error_listeners:
            self._error_listeners.remove(callback)

    async def _emit_error(self, error: Exception) -> None:
        for callback in list(self._error_listeners):
            try:
                result = callback(error)
                if asyncio.iscoroutine(result):
                    await result
            except Exception as exc:
                logger.warning(
                    "error_listener_failed",
                    error=str(exc),
                    callback=getattr(callback, "__name__", repr(callback)),
                )

    # ------------------------------------------------------------------
    # Single-key operations
    # ------------------------------------------------------------------

    async def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        opts = self._options.snapshot()
        key_name = encode_key(key, opts.namespace, opts.key_prefix_separator)
        final_ttl = opts.resolve_ttl(ttl)

        if final_ttl is not None:
            await self._client.set(key_name, value, px=final_ttl)
        else:
            await self._client.set(key_name, value)
        logger.debug("store_set", key=key_name, ttl=final_ttl)

    async def get(self, key: str) -> Any | None:
        key_name = self.get_key_name(key)
        value = await self._client.get(key_name)
        logger.debug("store_get", key=key_name, hit=value is not None)
        return value

    async def has(self, key: str) -> bool:
        exists = await self._client.exists(self.get_key_name(key))
        return exists == 1

    async def delete(self, key: str) -> bool:
        opts = self._options.snapshot()
        key_name = encode_key(key, opts.namespace, opts.key_prefix_separator)
        return await self._remove([key_name], opts.use_unlink) > 0

    # ------------------------------------------------------------------
    # Batch operations
    # ------------------------------------------------------------------

    async def set_many(
        self, entries: Iterable[StoreEntry | Mapping[str, Any] | tuple]
    ) -> None:
        """Store all *entries* in a single ``MULTI/EXEC`` transaction."""
        opts = self._options.snapshot()
        transaction = self._client.multi()
        queued = 0

        for raw in entries:
            entry = _coerce_entry(raw)
            key_name = encode_key(entry.key, opts.namespace, opts.key_prefix_separator)
            final_ttl = opts.resolve_ttl(entry.ttl)
            if final_ttl is not None:
                transaction.set(key_name, entry.value, px=final_ttl)
            else:
                transaction.set(key_name, entry.value)
            queued += 1

        if not queued:
            return
        await transaction.exec()
        logger.debug("store_set_many", count=queued, namespace=opts.namespace)

    async def has_many(self, keys: list[str]) -> list[bool]:
        """Check every key in a single ``MULTI/EXEC`` transaction."""
        if not keys:
            return []
        opts = self._options.snapshot()
        transaction = self._client.multi()
        for key in keys:
            transaction.exists(encode_key(key, opts.namespace, opts.key_prefix_separator))

        results = await transaction.exec()
        return [result == 1 for result in results]

    async def get_many(self, keys: list[str]) -> list[Any | None]:
        if not keys:
            return []
        opts = self._options.snapshot()
        key_names = [encode_key(k, opts.namespace, opts.key_prefix_separator) for k in keys]
        values = await self._client.mget(key_names)
        return list(values)

    async def delete_many(self, keys: list[str]) -> bool:
        if not keys:
            return False
        opts = self._options.snapshot()
        key_names = [encode_key(k, opts.namespace, opts.key_prefix_separator) for k in keys]
        return await self._remove(key_names, opts.use_unlink) > 0

    async def _remove(self, key_names: list[str], use_unlink: bool) -> int:
        if use_unlink:
            removed = await self._client.unlink(*key_names)
        else:
            removed = await self._client.delete(*key_names)
        logger.debug("store_delete", keys=len(key_names), removed=removed, unlink=use_unlink)
        return removed

    # ------------------------------------------------------------------
    # Keyspace operations
    # ------------------------------------------------------------------

    async def clear(self) -> ClearReport:
        """Remove every key visible under the current namespace policy.

        With no namespace and ``no_namespace_affects_all`` the database is
        flushed in one command, and a failure there is raised.  Otherwise
        keys are scanned ``clear_batch_size`` at a time and each page is
        removed with one bulk command.  A failure in that loop stops it,
        is logged, is passed to every error listener and is recorded in
        the returned report; it is never raised.

        Keys written between a page being scanned and being removed can be
        lost.  Use with caution on large databases.
        """
        opts = self._options.snapshot()
        report = ClearReport()

        if not opts.namespace and opts.no_namespace_affects_all:
            await self._client.flushdb()
            report.flushed = True
            logger.info("store_flushed")
            return report

        separator = opts.key_prefix_separator
        match = match_pattern(opts.namespace, separator)
        try:
            async for keys in scan_pages(self._client, match, count=opts.clear_batch_size):
                report.pages += 1
                if not keys:
                    continue
                if not opts.namespace:
                    keys = unprefixed_only(keys, separator)
                if keys:
                    report.deleted += await self._remove(keys, opts.use_unlink)
        except Exception as exc:
            report.errors.append(str(exc))
            logger.warning(
                "store_clear_failed",
                namespace=opts.namespace,
                pages=report.pages,
                deleted=report.deleted,
                error=str(exc),
            )
            await self._emit_error(exc)
        else:
            logger.info(
                "store_clear_completed",
                namespace=opts.namespace,
                pages=report.pages,
                deleted=report.deleted,
            )
        return report

    async def iterator(self, namespace: str | None = None) -> AsyncIterator[tuple[str, Any]]:
        """Yield ``(key, value)`` pairs page by page.

        Only keys of *namespace* are visited when it is given, and they are
        yielded without their prefix.  Without it, only unprefixed keys are
        visited unless ``no_namespace_affects_all`` is set.  Each page is
        fetched with one ``SCAN`` plus one ``MGET``; the next page is not
        requested until the current one has been consumed.  Keys whose
        value vanished between the two calls are skipped.
        """
        opts = self._options.snapshot()
        separator = opts.key_prefix_separator
        match = match_pattern(namespace, separator)
        filter_prefixed = not namespace and not opts.no_namespace_affects_all

        async for keys in scan_pages(self._client, match):
            if filter_prefixed:
                keys = unprefixed_only(keys, separator)
            if not keys:
                continue

            values = await self._client.mget(keys)
            for key_name, value in zip(keys, values):
                if value is None:
                    continue
                yield decode_key(key_name, namespace, separator), value

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def aclose(self) -> None:
        """Close the command client if this store created it."""
        if self._owns_client:
            await self._client.aclose()
            logger.debug("store_closed")
