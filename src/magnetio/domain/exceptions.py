"""Error taxonomy for stream resolution and playback."""

from __future__ import annotations


class MagnetioError(Exception):
    """Base class for all application errors."""


class ProviderError(MagnetioError):
    """A debrid provider could not serve a request."""

    def __init__(self, provider: str, message: str) -> None:
        super().__init__(f"{provider}: {message}")
        self.provider = provider


class TransientProviderError(ProviderError):
    """Network failure or timeout talking to a provider."""


class InvalidCredentialError(ProviderError):
    """The provider rejected the configured API key."""


class QuotaExceededError(ProviderError):
    """Account limits reached (premium required, torrent too big, ...)."""


class NoVideoFoundError(ProviderError):
    """The torrent resolved but contains no playable video file."""


class LockTimeoutError(MagnetioError):
    """A partition transaction could not be started within the bounded wait."""

    def __init__(self, partition: int, timeout: float) -> None:
        super().__init__(f"lock timeout for partition {partition} after {timeout}s")
        self.partition = partition
        self.timeout = timeout


class NotFoundError(MagnetioError):
    """Metadata or indexer returned nothing for an id."""


class AllProvidersFailedError(MagnetioError):
    """Every configured provider failed to produce a playback URL."""

    def __init__(self, errors: list[Exception] | None = None) -> None:
        self.errors = list(errors or [])
        if self.errors:
            detail = "; ".join(str(e) for e in self.errors)
            super().__init__(f"All debrid services failed: {detail}")
        else:
            super().__init__("No valid debrid service configured")
