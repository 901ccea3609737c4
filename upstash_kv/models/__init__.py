"""upstash-kv models: re-exports all public model classes."""

from __future__ import annotations

from upstash_kv.models.store import ClearReport, StoreEntry, StoreOptions

__all__ = [
    "ClearReport",
    "StoreEntry",
    "StoreOptions",
]
