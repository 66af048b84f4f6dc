"""Supported wire protocols and source-format detection.

Each protocol tag names one vendor endpoint. Several vendors share a wire
shape (OpenRouter and Groq speak the OpenAI Chat Completions schema), so
adapters are keyed by protocol while identity fast paths compare shapes.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Mapping, Union

from .exceptions import UnsupportedProtocolError

logger = logging.getLogger("chatbridge")


class WireShape(str, Enum):
    """JSON schema family a protocol speaks."""

    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    GEMINI = "gemini"


class Protocol(str, Enum):
    """Closed set of supported protocol tags."""

    OPENAI = "openai"
    OPENROUTER = "openrouter"
    GROQ = "groq"
    CLAUDE = "claude"
    GEMINI = "gemini"

    @property
    def shape(self) -> WireShape:
        return _SHAPES[self]

    @classmethod
    def from_tag(cls, tag: Union["Protocol", str]) -> "Protocol":
        """Resolve a protocol tag (case-insensitive) or raise UnsupportedProtocolError."""
        if isinstance(tag, Protocol):
            return tag
        if isinstance(tag, str):
            normalized = tag.strip().lower()
            normalized = _ALIASES.get(normalized, normalized)
            try:
                return cls(normalized)
            except ValueError:
                pass
        raise UnsupportedProtocolError(tag)


_SHAPES: dict[Protocol, WireShape] = {
    Protocol.OPENAI: WireShape.OPENAI,
    Protocol.OPENROUTER: WireShape.OPENAI,
    Protocol.GROQ: WireShape.OPENAI,
    Protocol.CLAUDE: WireShape.ANTHROPIC,
    Protocol.GEMINI: WireShape.GEMINI,
}

_ALIASES = {"anthropic": "claude"}

ProtocolTag = Union[Protocol, str]


def detect_protocol(body: Mapping[str, Any], hint: Protocol) -> Protocol:
    """Guess the protocol of a request body, preferring the hint.

    Detection only overrides the hint when the body is clearly a different
    wire shape; OpenAI, OpenRouter and Groq bodies are indistinguishable so
    the hint wins among them.

    Args:
        body: Parsed request body.
        hint: Protocol named by the caller (usually the URL path).

    Returns:
        The protocol whose adapter should parse the body.
    """
    detected: WireShape | None = None
    messages = body.get("messages")
    if isinstance(body.get("contents"), list):
        detected = WireShape.GEMINI
    elif body.get("system") or (messages is not None and not body.get("model")):
        detected = WireShape.ANTHROPIC
    elif messages is not None and body.get("model"):
        detected = WireShape.OPENAI

    if detected is None or detected == hint.shape:
        return hint

    resolved = {
        WireShape.OPENAI: Protocol.OPENAI,
        WireShape.ANTHROPIC: Protocol.CLAUDE,
        WireShape.GEMINI: Protocol.GEMINI,
    }[detected]
    logger.info(f"Request body looks like {detected.value}, overriding source '{hint.value}'")
    return resolved
