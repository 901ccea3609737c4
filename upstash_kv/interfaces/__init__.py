"""Public interface definitions.

The store adapter is written against two abstract contracts:

    Interface        →  Concrete implementations
    ────────────────────────────────────────────────────────────
    IKeyValueStore   →  UpstashStoreProvider (upstash_kv/providers/kv/)
    ICommandClient   →  UpstashRestClient (upstash_kv/providers/command/)
    ITransaction     →  UpstashRestTransaction

Unit tests inject an in-memory ICommandClient instead of a real store.
"""

from upstash_kv.interfaces.command_client import ICommandClient, ITransaction
from upstash_kv.interfaces.key_value_store import IKeyValueStore

__all__ = [
    "ICommandClient",
    "IKeyValueStore",
    "ITransaction",
]
