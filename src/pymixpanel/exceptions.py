"""Custom exception hierarchy for pymixpanel."""

from __future__ import annotations


class MixpanelError(Exception):
    """Base exception for all pymixpanel errors."""


class MixpanelConfigError(MixpanelError):
    """Invalid or missing configuration."""


class MixpanelTransportError(MixpanelError):
    """HTTP-level failure (network error, non-2xx status)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)


class MixpanelStorageError(MixpanelError):
    """Persistent property storage could not be read or written.

    Raised by storage backends. The client treats it as non-fatal: a
    failed read leaves super properties empty and a failed write leaves
    the in-memory value authoritative for the rest of the process.
    """

    def __init__(self, message: str, *, key: str = "") -> None:
        self.key = key
        super().__init__(message)
