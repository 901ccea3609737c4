"""Key-value store providers.

UpstashStoreProvider is the namespaced store consumed by caching front
ends.  scan_pages is the SCAN pager it uses for clear and iteration.
"""

from upstash_kv.providers.kv.keyspace_scanner import scan_pages
from upstash_kv.providers.kv.upstash_store_provider import UpstashStoreProvider

__all__ = ["UpstashStoreProvider", "scan_pages"]
