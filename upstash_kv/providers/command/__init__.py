"""Remote-store command clients.

UpstashRestClient reaches Upstash Redis over its HTTPS REST API.  Any
other ICommandClient (e.g. a test double) can be handed to the store
provider instead.
"""

from upstash_kv.providers.command.upstash_rest_client import (
    UpstashRestClient,
    UpstashRestTransaction,
)

__all__ = ["UpstashRestClient", "UpstashRestTransaction"]
