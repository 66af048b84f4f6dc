"""Core module initialization."""

from .exceptions import (
    BridgeError,
    ConfigurationError,
    InvalidRequestError,
    TranslationError,
    UnsupportedProtocolError,
    UpstreamError,
)
from .protocols import Protocol, ProtocolTag, WireShape, detect_protocol

__all__ = [
    "BridgeError",
    "ConfigurationError",
    "InvalidRequestError",
    "Protocol",
    "ProtocolTag",
    "TranslationError",
    "UnsupportedProtocolError",
    "UpstreamError",
    "WireShape",
    "detect_protocol",
]
