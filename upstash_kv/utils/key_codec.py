"""Namespace-prefixed key names.

A namespace is nothing more than a key-name prefix: ``ns::key``.  These
helpers build and strip that prefix and derive the ``SCAN`` match pattern
for a namespace.

Separator occurrences inside raw keys are NOT escaped.  A raw key such as
``"a::b"`` stored without a namespace is indistinguishable from key ``"b"``
in namespace ``"a"``, and :func:`decode_key` may strip part of a raw key
that itself contains ``namespace + separator``.  This is a known limitation
of the key format.
"""

from __future__ import annotations

DEFAULT_SEPARATOR = "::"


def encode_key(raw_key: str, namespace: str | None, separator: str = DEFAULT_SEPARATOR) -> str:
    """Return the fully-qualified key name for *raw_key*.

    An empty namespace counts as "no namespace".
    """
    if namespace:
        return f"{namespace}{separator}{raw_key}"
    return raw_key


def decode_key(key_name: str, namespace: str | None, separator: str = DEFAULT_SEPARATOR) -> str:
    """Strip the first ``namespace + separator`` occurrence from *key_name*."""
    if not namespace:
        return key_name
    return key_name.replace(f"{namespace}{separator}", "", 1)


def match_pattern(namespace: str | None, separator: str = DEFAULT_SEPARATOR) -> str:
    """Glob pattern matching every key of *namespace* (or every key)."""
    if namespace:
        return f"{namespace}{separator}*"
    return "*"


def is_unprefixed(key_name: str, separator: str = DEFAULT_SEPARATOR) -> bool:
    """True when *key_name* carries no namespace prefix."""
    return separator not in key_name


def unprefixed_only(key_names: list[str], separator: str = DEFAULT_SEPARATOR) -> list[str]:
    """Filter a ``SCAN`` page down to keys that belong to no namespace."""
    return [key for key in key_names if is_unprefixed(key, separator)]
