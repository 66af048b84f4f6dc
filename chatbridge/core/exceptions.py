"""Core exceptions for the gateway."""

from typing import Optional


class BridgeError(Exception):
    """Base exception for gateway errors."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidRequestError(BridgeError):
    """Raised when an incoming request is invalid."""

    def __init__(self, message: str, code: str = "invalid_request") -> None:
        super().__init__(message)
        self.code = code


class UnsupportedProtocolError(InvalidRequestError):
    """Raised when a protocol tag is not one of the supported wire formats."""

    def __init__(self, tag: object) -> None:
        super().__init__(f"Unsupported API platform: {tag!r}", code="unsupported_protocol")
        self.tag = tag


class TranslationError(BridgeError):
    """Raised when a complete request or response cannot be converted."""
    pass


class ConfigurationError(BridgeError):
    """Raised when there's an issue with the configuration."""
    pass


class UpstreamError(BridgeError):
    """Raised when the target vendor answers with a non-2xx status."""

    def __init__(self, message: str, status_code: int, body: Optional[str] = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body
