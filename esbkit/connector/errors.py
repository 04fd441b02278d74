from __future__ import annotations

from typing import Optional


class EsbError(RuntimeError):
    """Base error for the ESB connector."""


class EsbConfigurationError(EsbError):
    """Helper lacks the credentials or URLs needed for a live ESB call."""


class EsbTransportError(EsbError):
    """ESB endpoint answered with a non-success HTTP status or was unreachable."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class EsbSignatureError(EsbError):
    """ESB response was not a validly signed envelope."""


class UnsupportedFormatError(EsbError, ValueError):
    """Requested data format is not supported by this connector."""
