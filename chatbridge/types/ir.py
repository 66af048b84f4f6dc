"""Vendor-neutral intermediate representation for chat traffic.

Every adapter converts its vendor's JSON into these shapes and back. The
records are frozen: adapters build new values (``dataclasses.replace``)
instead of editing the ones they were given, so a request object can be
shared between translation steps without copies.

Content is either plain text or an ordered tuple of ``ContentPart``. Text
parts carry ``text``; any other part keeps its vendor fields in ``fields``
(images use the OpenAI ``image_url`` part as the reference encoding).
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Union

from ..core.exceptions import TranslationError

ROLES = ("system", "user", "assistant")

DEFAULT_MAX_TOKENS = 2048
DEFAULT_TEMPERATURE = 0.7


@dataclass(frozen=True)
class ContentPart:
    """One element of a multi-part message content.

    Attributes:
        type: Part tag, e.g. "text" or "image_url".
        text: Text for "text" parts.
        fields: Remaining vendor-specific fields of the part.
        cache_control: Prompt-caching directive attached to the part, if any.
    """

    type: str
    text: Optional[str] = None
    fields: Mapping[str, Any] = field(default_factory=dict)
    cache_control: Optional[Mapping[str, Any]] = None

    @classmethod
    def of_text(cls, text: str) -> "ContentPart":
        return cls(type="text", text=text)

    @property
    def is_text(self) -> bool:
        return self.type == "text"


Content = Union[str, tuple[ContentPart, ...]]


def content_text(content: Content) -> str:
    """Concatenate the text of a content value (no separator)."""
    if isinstance(content, str):
        return content
    return "".join(part.text or "" for part in content if part.is_text)


@dataclass(frozen=True)
class ChatMessage:
    role: str
    content: Content = ""

    def __post_init__(self) -> None:
        if self.role not in ROLES:
            raise TranslationError(f"Unsupported message role: {self.role!r}")
        if self.content is None:
            raise TranslationError("Message content must not be absent")

    @property
    def text(self) -> str:
        return content_text(self.content)


@dataclass(frozen=True)
class ChatRequest:
    model: str
    messages: tuple[ChatMessage, ...] = ()
    max_tokens: int = DEFAULT_MAX_TOKENS
    temperature: float = DEFAULT_TEMPERATURE
    stream: bool = False
    system: Optional[str] = None

    def __post_init__(self) -> None:
        if isinstance(self.max_tokens, bool) or not isinstance(self.max_tokens, int) or self.max_tokens <= 0:
            raise TranslationError(f"max_tokens must be a positive integer, got {self.max_tokens!r}")


@dataclass(frozen=True)
class Usage:
    """Token counts. All zero when the vendor does not report usage."""

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0

    @classmethod
    def from_counts(cls, prompt_tokens: int, completion_tokens: int) -> "Usage":
        return cls(prompt_tokens, completion_tokens, prompt_tokens + completion_tokens)


@dataclass(frozen=True)
class Choice:
    index: int
    message: ChatMessage
    finish_reason: Optional[str] = None


@dataclass(frozen=True)
class ChatResponse:
    id: str
    model: str
    choices: tuple[Choice, ...] = ()
    usage: Usage = field(default_factory=Usage)
    created: int = field(default_factory=lambda: int(time.time()))


@dataclass(frozen=True)
class Delta:
    """Partial message fields carried by one stream event."""

    role: Optional[str] = None
    content: Optional[str] = None


@dataclass(frozen=True)
class ChunkChoice:
    index: int = 0
    delta: Delta = field(default_factory=Delta)
    finish_reason: Optional[str] = None


@dataclass(frozen=True)
class StreamChunk:
    """One streamed event. ``choices`` is empty for heartbeat-like events."""

    id: str = ""
    model: str = ""
    choices: tuple[ChunkChoice, ...] = ()
    created: int = 0
