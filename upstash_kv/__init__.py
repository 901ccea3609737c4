"""upstash-kv: namespaced key-value store over the Upstash Redis REST API."""

from upstash_kv.interfaces import ICommandClient, IKeyValueStore, ITransaction
from upstash_kv.models import ClearReport, StoreEntry, StoreOptions
from upstash_kv.providers.command import UpstashRestClient
from upstash_kv.providers.kv import UpstashStoreProvider
from upstash_kv.utils.errors import (
    ConfigurationError,
    ProviderUnavailableError,
    StoreCommandError,
    UpstashKVError,
)

__version__ = "0.1.0"

__all__ = [
    "ClearReport",
    "ConfigurationError",
    "ICommandClient",
    "IKeyValueStore",
    "ITransaction",
    "ProviderUnavailableError",
    "StoreCommandError",
    "StoreEntry",
    "StoreOptions",
    "UpstashKVError",
    "UpstashRestClient",
    "UpstashStoreProvider",
    "__version__",
]
