"""Custom exception hierarchy for upstash-kv.

All library exceptions inherit from :class:`UpstashKVError`, which carries
an optional ``provider_name`` so error handlers can identify which backend
(e.g. "upstash_rest") caused the failure.

    UpstashKVError  (base -- catch-all for any upstash-kv error)
    +-- ConfigurationError       (invalid options / missing connection details)
    +-- StoreCommandError        (command rejected or not encodable)
    +-- ProviderUnavailableError (transport failure / unreadable reply)

Operations never retry.  Callers decide whether a
``ProviderUnavailableError`` is worth another attempt.
"""


class UpstashKVError(Exception):
    """Base exception for all upstash-kv errors.

    Every subclass carries a human-readable ``message`` and an optional
    ``provider_name``.  The ``__str__`` method prefixes the provider name in
    brackets, e.g. ``[upstash_rest] ERR syntax error``.
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


class ConfigurationError(UpstashKVError):
    """Raised when store options or connection settings are invalid."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class StoreCommandError(UpstashKVError):
    """Raised when the store rejects a command or it cannot be encoded.

    For transactions, ``command`` names the first failing command.
    """

    def __init__(
        self,
        message: str = "Store command failed",
        provider_name: str | None = None,
        command: str | None = None,
    ) -> None:
        self._command = command
        super().__init__(message=message, provider_name=provider_name)

    @property
    def command(self) -> str | None:
        return self._command


class ProviderUnavailableError(UpstashKVError):
    """Raised when the remote store is unreachable or replies with garbage."""

    def __init__(
        self,
        message: str = "Remote store is unavailable",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
