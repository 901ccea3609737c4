"""Utility modules for upstash-kv.

- **errors** -- exception hierarchy rooted at UpstashKVError.
- **key_codec** -- namespace prefixing, match patterns, prefix filtering.
- **logging** -- console/JSON log setup for the command line.
"""

from upstash_kv.utils.errors import (
    ConfigurationError,
    ProviderUnavailableError,
    StoreCommandError,
    UpstashKVError,
)
from upstash_kv.utils.key_codec import (
    DEFAULT_SEPARATOR,
    decode_key,
    encode_key,
    is_unprefixed,
    match_pattern,
    unprefixed_only,
)
from upstash_kv.utils.logging import configure_logging

__all__ = [
    "DEFAULT_SEPARATOR",
    "ConfigurationError",
    "ProviderUnavailableError",
    "StoreCommandError",
    "UpstashKVError",
    "configure_logging",
    "decode_key",
    "encode_key",
    "is_unprefixed",
    "match_pattern",
    "unprefixed_only",
]
