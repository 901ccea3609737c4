"""Factory wiring configuration into a ready store.

    from upstash_kv.main import create_store

    async with create_store() as store:
        await store.set("greeting", "hello", ttl=60_000)

Connection details and store options come from ``load_config`` (YAML plus
environment).  Callers that already hold a command client should build
``UpstashStoreProvider(client=...)`` directly instead.
"""

from __future__ import annotations

import httpx
import structlog

from upstash_kv.config.loader import load_config
from upstash_kv.config.settings import Settings
from upstash_kv.models.store import StoreOptions
from upstash_kv.providers.kv.upstash_store_provider import UpstashStoreProvider
from upstash_kv.utils.errors import ConfigurationError

logger = structlog.get_logger(logger_name=__name__)


def create_store(
    settings: Settings | None = None,
    config_path: str = "config/config.yaml",
    http_client: httpx.AsyncClient | None = None,
) -> UpstashStoreProvider:
    """Build an :class:`UpstashStoreProvider` that owns its REST client.

    Raises
    ------
    ConfigurationError
        If no REST url or token is configured, or an option is invalid.
    """
    config = load_config(config_path, settings=settings)
    connection = config["connection"]
    store_options = {
        key: value for key, value in config["store"].items() if key in StoreOptions.model_fields
    }

    if not connection.get("url") or not connection.get("token"):
        raise ConfigurationError(
            message="UPSTASH_REDIS_REST_URL and UPSTASH_REDIS_REST_TOKEN must be set",
            provider_name="upstash",
        )

    store = UpstashStoreProvider(
        url=connection["url"],
        token=connection["token"],
        timeout=connection.get("timeout"),
        http_client=http_client,
        **store_options,
    )
    logger.info(
        "store_created",
        namespace=store.namespace,
        use_unlink=store.use_unlink,
        clear_batch_size=store.clear_batch_size,
    )
    return store
