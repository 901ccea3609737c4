"""Settings loaded from environment variables via pydantic-settings.

Sources in priority order:

  1. Environment variables, e.g. UPSTASH_REDIS_REST_URL=https://...
  2. A ``.env`` file in the working directory

Field ``upstash_redis_rest_url`` maps to env var ``UPSTASH_REDIS_REST_URL``;
the names match the variables shown in the Upstash console so they can be
pasted as-is.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """upstash-kv settings.  Environment variables override defaults."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # === Connection ===
    upstash_redis_rest_url: str = ""
    upstash_redis_rest_token: str = ""
    http_timeout: float = 10.0  # seconds

    # === Store options ===
    kv_namespace: str = ""  # empty = unprefixed keyspace
    kv_key_prefix_separator: str = "::"
    kv_default_ttl: int | None = Field(default=None, ge=0)  # milliseconds
    kv_use_unlink: bool = True
    kv_clear_batch_size: int = Field(default=1000, gt=0)
    kv_no_namespace_affects_all: bool = False

    # === App ===
    app_env: str = "development"
    log_level: str = "INFO"

    def has_credentials(self) -> bool:
        return bool(self.upstash_redis_rest_url and self.upstash_redis_rest_token)
