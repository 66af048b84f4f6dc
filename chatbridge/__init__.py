"""chatbridge - a stateless gateway between chat-completion vendor APIs.

Accepts a request in one vendor's format (OpenAI, OpenRouter, Groq, Anthropic
Claude or Google Gemini), forwards it to another vendor in that vendor's
format, and converts the answer back, including Server-Sent Event streams.

Example:
    >>> from chatbridge import translate_request
    >>> translate_request({"model": "gpt-4", "messages": []}, "openai", "claude")

    >>> from chatbridge.main import app
    >>> import uvicorn
    >>> uvicorn.run(app, host="127.0.0.1", port=8787)
"""

from .config_loader import load_config
from .core import (
    BridgeError,
    ConfigurationError,
    InvalidRequestError,
    Protocol,
    TranslationError,
    UnsupportedProtocolError,
    UpstreamError,
    WireShape,
    detect_protocol,
)
from .logging import setup_logging
from .platforms import GatewayConfig, PlatformSettings
from .translation import Translator, translate_request, translate_response, translate_stream

__all__ = [
    "BridgeError",
    "ConfigurationError",
    "GatewayConfig",
    "InvalidRequestError",
    "PlatformSettings",
    "Protocol",
    "TranslationError",
    "Translator",
    "UnsupportedProtocolError",
    "UpstreamError",
    "WireShape",
    "detect_protocol",
    "load_config",
    "setup_logging",
    "translate_request",
    "translate_response",
    "translate_stream",
]
