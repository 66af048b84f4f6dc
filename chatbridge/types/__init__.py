"""Type definitions for the gateway."""

from .ir import (
    DEFAULT_MAX_TOKENS,
    DEFAULT_TEMPERATURE,
    ROLES,
    ChatMessage,
    ChatRequest,
    ChatResponse,
    Choice,
    ChunkChoice,
    ContentPart,
    Delta,
    StreamChunk,
    Usage,
    content_text,
)

__all__ = [
    "DEFAULT_MAX_TOKENS",
    "DEFAULT_TEMPERATURE",
    "ROLES",
    "ChatMessage",
    "ChatRequest",
    "ChatResponse",
    "Choice",
    "ChunkChoice",
    "ContentPart",
    "Delta",
    "StreamChunk",
    "Usage",
    "content_text",
]
