# =============================================================================
# upstash_kv/cli/admin.py: Store maintenance commands
# =============================================================================
#
# Subcommands:
#
#   keys    list key<TAB>value for a namespace (or the unprefixed keyspace)
#   get     print one value
#   clear   remove every key of a namespace; prints the clear report
#
# Connection settings come from UPSTASH_REDIS_REST_URL / _TOKEN (or .env).
#
# Usage examples:
#   python -m upstash_kv.cli keys --namespace sessions --limit 20
#   python -m upstash_kv.cli get user:42 --namespace sessions
#   python -m upstash_kv.cli clear --namespace sessions --yes
#   python -m upstash_kv.cli clear --all --yes        # FLUSHDB
# =============================================================================

"""Maintenance CLI for an upstash-kv store."""

from __future__ import annotations

import argparse
import asyncio
import sys

from upstash_kv.config.settings import Settings
from upstash_kv.main import create_store
from upstash_kv.providers.kv.upstash_store_provider import UpstashStoreProvider
from upstash_kv.utils.errors import UpstashKVError
from upstash_kv.utils.logging import configure_logging


async def _cmd_keys(store: UpstashStoreProvider, args: argparse.Namespace) -> int:
    shown = 0
    async for key, value in store.iterator(args.namespace):
        print(f"{key}\t{value}")
        shown += 1
        if args.limit and shown >= args.limit:
            break
    print(f"({shown} keys)", file=sys.stderr)
    return 0


async def _cmd_get(store: UpstashStoreProvider, args: argparse.Namespace) -> int:
    store.namespace = args.namespace
    value = await store.get(args.key)
    if value is None:
        print(f"{args.key}: not found", file=sys.stderr)
        return 1
    print(value)
    return 0


async def _cmd_clear(store: UpstashStoreProvider, args: argparse.Namespace) -> int:
    if not args.yes:
        print("Refusing to clear without --yes", file=sys.stderr)
        return 2

    store.namespace = args.namespace
    store.no_namespace_affects_all = args.all and not args.namespace
    report = await store.clear()

    if report.flushed:
        print("Database flushed")
    else:
        print(f"Deleted {report.deleted} keys across {report.pages} pages")
    for error in report.errors:
        print(f"error: {error}", file=sys.stderr)
    return 0 if report.completed else 1


_COMMANDS = {
    "keys": _cmd_keys,
    "get": _cmd_get,
    "clear": _cmd_clear,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="upstash-kv",
        description="Inspect and maintain an upstash-kv store.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    keys = sub.add_parser("keys", help="List keys and values")
    keys.add_argument("--namespace", default=None, help="Namespace to list")
    keys.add_argument("--limit", type=int, default=0, help="Stop after N keys (0 = all)")

    get = sub.add_parser("get", help="Print one value")
    get.add_argument("key")
    get.add_argument("--namespace", default=None)

    clear = sub.add_parser("clear", help="Remove every key of a namespace")
    clear.add_argument("--namespace", default=None)
    clear.add_argument(
        "--all",
        action="store_true",
        help="With no namespace, flush the whole database",
    )
    clear.add_argument("--yes", action="store_true", help="Confirm the deletion")

    return parser


async def _run(args: argparse.Namespace, settings: Settings) -> int:
    async with create_store(settings) as store:
        return await _COMMANDS[args.command](store, args)


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = Settings()
    configure_logging(settings.log_level, json_output=settings.app_env == "production")

    try:
        return asyncio.run(_run(args, settings))
    except UpstashKVError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
