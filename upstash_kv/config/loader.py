"""YAML configuration loader with environment variable overrides.

Layers (later wins):

  1. config/config.yaml  static defaults, optional
  2. .env file           local overrides
  3. Environment vars    deploy-time overrides

Only settings that differ from their defaults override the YAML, so a
YAML ``store.namespace`` survives when no env var sets one.
"""

from pathlib import Path

import yaml

from upstash_kv.config.settings import Settings


def load_config(path: str = "config/config.yaml", settings: Settings | None = None) -> dict:
    """Load YAML config and merge the env-based Settings over it.

    Args:
        path: Path to the YAML configuration file.  Missing files are fine.
        settings: Settings to merge; read from the environment when omitted.

    Returns:
        Resolved configuration with ``connection``, ``store`` and
        ``logging`` sections.
    """
    config_path = Path(path)
    if config_path.exists():
        with open(config_path) as f:
            yaml_config = yaml.safe_load(f) or {}
    else:
        yaml_config = {}

    overrides = _sections(settings or Settings())
    # model_construct skips env/.env reading, leaving pure field defaults.
    defaults = _sections(Settings.model_construct())

    for section, values in overrides.items():
        base = yaml_config.setdefault(section, {})
        for key, value in values.items():
            if key not in base or value != defaults[section][key]:
                base[key] = value
    return yaml_config


def _sections(settings: Settings) -> dict:
    return {
        "connection": {
            "url": settings.upstash_redis_rest_url,
            "token": settings.upstash_redis_rest_token,
            "timeout": settings.http_timeout,
        },
        "store": {
            "namespace": settings.kv_namespace or None,
            "key_prefix_separator": settings.kv_key_prefix_separator,
            "default_ttl": settings.kv_default_ttl,
            "use_unlink": settings.kv_use_unlink,
            "clear_batch_size": settings.kv_clear_batch_size,
            "no_namespace_affects_all": settings.kv_no_namespace_affects_all,
        },
        "logging": {
            "level": settings.log_level,
        },
    }
