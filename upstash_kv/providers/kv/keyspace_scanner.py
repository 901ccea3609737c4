"""Cursor-driven keyspace enumeration.

``SCAN`` walks the keyspace a page at a time without blocking the server.
A cycle starts with cursor ``"0"`` and is complete when the server hands
``"0"`` back.  Pages may be empty mid-cycle and may repeat keys; callers
must tolerate both.

:func:`scan_pages` only requests the next page when the consumer asks for
it, so a consumer that stops early never pays for the rest of the scan.
"""

from __future__ import annotations

from collections.abc import AsyncIterator

import structlog

from upstash_kv.interfaces.command_client import ICommandClient

logger = structlog.get_logger(logger_name=__name__)

INITIAL_CURSOR = "0"
STRING_TYPE = "string"


async def scan_pages(
    client: ICommandClient,
    match: str,
    count: int | None = None,
    key_type: str | None = STRING_TYPE,
) -> AsyncIterator[list[str]]:
    """Yield one page of key names per ``SCAN`` round trip.

    Parameters
    ----------
    client:
        Command client to scan through.
    match:
        Glob pattern, e.g. ``"ns::*"``.
    count:
        ``COUNT`` hint per page; ``None`` leaves it to the server.
    key_type:
        Restrict to keys of this Redis type.  Defaults to string keys.

    Yields
    ------
    list[str]
        Key names of one page, possibly empty.
    """
    cursor = INITIAL_CURSOR
    pages = 0
    while True:
        cursor, keys = await client.scan(cursor, match=match, count=count, type=key_type)
        pages += 1
        yield keys
        if cursor == INITIAL_CURSOR:
            break

    logger.debug("keyspace_scan_completed", match=match, pages=pages)
