"""Data models for the key-value store adapter.

Defines the mutable runtime options of a store instance, the input shape
of batch writes, and the result of a ``clear`` run.  All are Pydantic v2
models; ``StoreOptions`` re-validates on every assignment so a bad value
never reaches a command.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from upstash_kv.utils.key_codec import DEFAULT_SEPARATOR


class StoreOptions(BaseModel):
    """Live options of a store instance.

    Operations copy these once when they start (:meth:`snapshot`), so an
    assignment made while a call is in flight only affects calls started
    afterwards.  Mutating options concurrently with in-flight calls on the
    same instance is still unsupported: which value a racing call observes
    is not specified.
    """

    model_config = ConfigDict(validate_assignment=True)

    namespace: str | None = None
    key_prefix_separator: str = Field(default=DEFAULT_SEPARATOR, min_length=1)
    default_ttl: int | None = Field(default=None, ge=0)  # milliseconds
    use_unlink: bool = True
    clear_batch_size: int = Field(default=1000, gt=0)
    no_namespace_affects_all: bool = False

    def snapshot(self) -> StoreOptions:
        return self.model_copy()

    def resolve_ttl(self, ttl: int | None) -> int | None:
        """Per-call TTL, falling back to ``default_ttl``."""
        return ttl if ttl is not None else self.default_ttl


class StoreEntry(BaseModel):
    """One key/value pair for ``set_many``.  ``ttl`` is in milliseconds."""

    model_config = ConfigDict(frozen=True)

    key: str
    value: Any
    ttl: int | None = Field(default=None, ge=0)


class ClearReport(BaseModel):
    """Outcome of a ``clear`` call.

    ``clear`` never raises for failures inside its scan-and-delete loop;
    they end the loop and are collected in ``errors`` instead.
    """

    flushed: bool = False
    pages: int = 0
    deleted: int = 0
    errors: list[str] = Field(default_factory=list)

    @property
    def completed(self) -> bool:
        return not self.errors
