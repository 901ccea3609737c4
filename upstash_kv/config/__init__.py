"""Configuration module: exports Settings and load_config."""

from upstash_kv.config.loader import load_config
from upstash_kv.config.settings import Settings

__all__ = ["Settings", "load_config"]
