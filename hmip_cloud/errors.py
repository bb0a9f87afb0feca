"""
Exception taxonomy for the HomematicIP cloud client.

Every error raised by this package derives from HmipError so callers can
catch the whole family with one clause.
"""
from __future__ import annotations


class HmipError(Exception):
    """Base class for all hmip_cloud errors."""


class DecodeError(HmipError):
    """Raised when a payload is malformed or a field has the wrong JSON type."""

    def __init__(self, collection: str, reason: str) -> None:
        self.collection = collection
        self.reason = reason
        super().__init__(f"Failed to decode {collection}: {reason}")


class TransportError(HmipError):
    """Raised when an HTTP request or the websocket connection fails."""


class ApiResponseError(TransportError):
    """Exception raised when the API answers with a non-200 status."""

    def __init__(self, status: int, url: str, body: str = "") -> None:
        self.status = status
        self.url = url
        self.body = body
        super().__init__(f"HTTP {status} from {url}: {body[:200]}")


class ResolutionError(HmipError):
    """Raised when the REST/websocket endpoints cannot be looked up."""


class AlreadyRunningError(HmipError):
    """Raised when an event stream is started while it is already running."""


class ConfigError(HmipError):
    """Raised when the client configuration fails validation."""


class RegistrationError(HmipError):
    """Raised when registering a new client against the access point fails."""
