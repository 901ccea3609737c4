"""Upstash REST command client implementing ICommandClient.

Upstash Redis exposes every Redis command over HTTPS: the command and its
arguments are POSTed as a JSON array, authenticated with a bearer token,
and the reply comes back as ``{"result": ...}`` or ``{"error": "..."}``.
Transactions are POSTed to ``/multi-exec`` as an array of command arrays
and answered with one result object per command.

Values are sent as strings and read back raw; nothing is deserialized on
the way out.  Nothing is retried: a failed request surfaces immediately
as an exception.
"""

from __future__ import annotations

import json
from typing import Any

import httpx
import structlog

from upstash_kv.interfaces.command_client import ICommandClient, ITransaction
from upstash_kv.utils.errors import (
    ConfigurationError,
    ProviderUnavailableError,
    StoreCommandError,
)

logger = structlog.get_logger(logger_name=__name__)

_PROVIDER_NAME = "upstash_rest"
_DEFAULT_TIMEOUT = 10.0
_MULTI_EXEC_PATH = "/multi-exec"


def _encode_arg(value: Any) -> str:
    """Convert a command argument to the string form sent on the wire.

    Command arrays travel as JSON text, so ``bytes`` must be valid UTF-8.
    """
    if isinstance(value, str):
        return value
    if isinstance(value, bytes):
        try:
            return value.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise StoreCommandError(
                f"Binary value is not valid UTF-8: {exc}",
                provider_name=_PROVIDER_NAME,
            ) from exc
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return json.dumps(value)


def _build_set(key: str, value: Any, px: int | None) -> list[str]:
    command = ["SET", key, _encode_arg(value)]
    if px is not None:
        command += ["PX", str(px)]
    return command


class UpstashRestTransaction(ITransaction):
    """Commands buffered locally and sent in one ``/multi-exec`` request."""

    def __init__(self, client: UpstashRestClient) -> None:
        self._client = client
        self._commands: list[list[str]] = []

    def __len__(self) -> int:
        return len(self._commands)

    def set(self, key: str, value: Any, px: int | None = None) -> UpstashRestTransaction:
        self._commands.append(_build_set(key, value, px))
        return self

    def exists(self, key: str) -> UpstashRestTransaction:
        self._commands.append(["EXISTS", key])
        return self

    async def exec(self) -> list[Any]:
        if not self._commands:
            return []

        payload = await self._client._post(_MULTI_EXEC_PATH, self._commands)
        if not isinstance(payload, list) or len(payload) != len(self._commands):
            raise ProviderUnavailableError(
                message="Unexpected transaction reply shape",
                provider_name=_PROVIDER_NAME,
            )

        results: list[Any] = []
        for command, item in zip(self._commands, payload):
            if isinstance(item, dict) and "error" in item:
                raise StoreCommandError(
                    message=str(item["error"]),
                    provider_name=_PROVIDER_NAME,
                    command=command[0],
                )
            results.append(item.get("result") if isinstance(item, dict) else item)

        logger.debug("upstash_transaction_executed", commands=len(self._commands))
        return results


class UpstashRestClient(ICommandClient):
    """Redis command client speaking the Upstash REST protocol via httpx.

    Parameters
    ----------
    url:
        The database's REST URL (``https://<id>.upstash.io``).
    token:
        The database's REST token.
    http_client:
        Optional shared ``httpx.AsyncClient``.  When omitted the client
        creates and owns one, and :meth:`aclose` closes it.
    timeout:
        Per-request timeout in seconds for an owned HTTP client.
    """

    def __init__(
        self,
        url: str,
        token: str,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = _DEFAULT_TIMEOUT,
    ) -> None:
        if not url or not token:
            raise ConfigurationError(
                message="Both a REST url and a token are required",
                provider_name=_PROVIDER_NAME,
            )
        self._url = url.rstrip("/")
        self._headers = {"Authorization": f"Bearer {token}"}
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=httpx.Timeout(timeout))

    @property
    def url(self) -> str:
        return self._url

    def get_provider_name(self) -> str:
        return _PROVIDER_NAME

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    async def _post(self, path: str, body: list[Any]) -> Any:
        """POST *body* to ``url + path`` and return the decoded JSON reply."""
        try:
            response = await self._client.post(
                f"{self._url}{path}", json=body, headers=self._headers
            )
        except httpx.HTTPError as exc:
            raise ProviderUnavailableError(
                message=f"Request to {self._url}{path} failed: {exc}",
                provider_name=_PROVIDER_NAME,
            ) from exc

        try:
            payload = response.json()
        except ValueError as exc:
            raise ProviderUnavailableError(
                message=f"HTTP {response.status_code} with a non-JSON body",
                provider_name=_PROVIDER_NAME,
            ) from exc

        if isinstance(payload, dict) and "error" in payload:
            command = body[0] if body and isinstance(body[0], str) else None
            raise StoreCommandError(
                message=str(payload["error"]),
                provider_name=_PROVIDER_NAME,
                command=command,
            )
        if response.status_code >= 400:
            raise ProviderUnavailableError(
                message=f"HTTP {response.status_code} from {self._url}{path}",
                provider_name=_PROVIDER_NAME,
            )
        return payload

    async def command(self, *args: Any) -> Any:
        """Run one raw Redis command and return its ``result``."""
        body = [_encode_arg(arg) for arg in args]
        payload = await self._post("", body)
        logger.debug("upstash_command", command=body[0])
        return payload.get("result") if isinstance(payload, dict) else payload

    # ------------------------------------------------------------------
    # ICommandClient implementation
    # ------------------------------------------------------------------

    async def set(self, key: str, value: Any, px: int | None = None) -> Any:
        body = _build_set(key, value, px)
        payload = await self._post("", body)
        logger.debug("upstash_command", command="SET")
        return payload.get("result")

    async def get(self, key: str) -> Any | None:
        return await self.command("GET", key)

    async def mget(self, keys: list[str]) -> list[Any | None]:
        if not keys:
            return []
        return await self.command("MGET", *keys)

    async def exists(self, *keys: str) -> int:
        return int(await self.command("EXISTS", *keys))

    async def unlink(self, *keys: str) -> int:
        if not keys:
            return 0
        return int(await self.command("UNLINK", *keys))

    async def delete(self, *keys: str) -> int:
        if not keys:
            return 0
        return int(await self.command("DEL", *keys))

    async def scan(
        self,
        cursor: str,
        match: str | None = None,
        count: int | None = None,
        type: str | None = None,  # noqa: A002
    ) -> tuple[str, list[str]]:
        args: list[Any] = ["SCAN", cursor]
        if match is not None:
            args += ["MATCH", match]
        if count is not None:
            args += ["COUNT", count]
        if type is not None:
            args += ["TYPE", type]

        next_cursor, keys = await self.command(*args)
        return str(next_cursor), list(keys)

    async def flushdb(self) -> None:
        await self.command("FLUSHDB")

    def multi(self) -> UpstashRestTransaction:
        return UpstashRestTransaction(self)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
