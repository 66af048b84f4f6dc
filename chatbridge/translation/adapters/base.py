"""Adapter interface shared by every protocol.

An adapter converts one vendor's JSON to and from the IR at three
granularities: a request body, a completed response body, and the payload of
one stream event. The translator composes a source adapter's ``*_to_ir`` with
a target adapter's ``*_from_ir``.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Mapping, Optional

from ...core.exceptions import TranslationError
from ...core.protocols import Protocol, WireShape
from ...types.ir import (
    ChatMessage,
    ChatRequest,
    ChatResponse,
    Content,
    ContentPart,
    StreamChunk,
)
from ..context import AdapterContext

logger = logging.getLogger("chatbridge")


class ProtocolAdapter(ABC):
    """Converts one protocol's wire shapes to and from the IR."""

    protocol: Protocol
    # Whether cache_control directives are stripped (and maybe reinserted)
    # when emitting requests for this protocol.
    manages_cache_control: bool = False

    @property
    def shape(self) -> WireShape:
        return self.protocol.shape

    # -- requests -----------------------------------------------------------

    @abstractmethod
    def request_to_ir(self, body: Mapping[str, Any]) -> ChatRequest:
        ...

    @abstractmethod
    def request_from_ir(self, request: ChatRequest, context: AdapterContext) -> dict[str, Any]:
        ...

    # -- responses ----------------------------------------------------------

    @abstractmethod
    def response_to_ir(self, body: Mapping[str, Any]) -> ChatResponse:
        ...

    @abstractmethod
    def response_from_ir(self, response: ChatResponse) -> dict[str, Any]:
        ...

    # -- stream events ------------------------------------------------------

    @abstractmethod
    def chunk_to_ir(self, payload: Mapping[str, Any]) -> StreamChunk:
        ...

    @abstractmethod
    def chunk_from_ir(self, chunk: StreamChunk) -> list[dict[str, Any]]:
        """Return the vendor payloads for one IR chunk (possibly none)."""

    @abstractmethod
    def error_payload(self, message: str) -> dict[str, Any]:
        """Build the in-band error event payload for a failed stream."""

    def event_name(self, payload: Mapping[str, Any]) -> Optional[str]:
        """SSE ``event:`` name to emit before a payload, if the protocol uses one."""
        return None

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.protocol.value})"


# =============================================================================
# Helpers shared by the concrete adapters
# =============================================================================


def require_mapping(value: Any, what: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise TranslationError(f"{what} must be a JSON object, got {type(value).__name__}")
    return value


def require_list(value: Any, what: str) -> list[Any]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise TranslationError(f"{what} must be a JSON array, got {type(value).__name__}")
    return value


def pick_int(body: Mapping[str, Any], *keys: str, default: int) -> int:
    """Return the first present integer field among ``keys``."""
    for key in keys:
        value = body.get(key)
        if value is None:
            continue
        if isinstance(value, bool) or not isinstance(value, (int, float)) or int(value) != value:
            raise TranslationError(f"{key} must be an integer, got {value!r}")
        return int(value)
    return default


def pick_float(body: Mapping[str, Any], *keys: str, default: float) -> float:
    for key in keys:
        value = body.get(key)
        if value is None:
            continue
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise TranslationError(f"{key} must be a number, got {value!r}")
        return value
    return default


def clamp_max_tokens(max_tokens: int, context: AdapterContext) -> int:
    ceiling = context.max_tokens_ceiling
    if ceiling is not None and max_tokens > ceiling:
        logger.debug(f"Clamping max_tokens {max_tokens} to platform ceiling {ceiling}")
        return ceiling
    return max_tokens


def extract_system(request: ChatRequest) -> tuple[Optional[str], tuple[ChatMessage, ...]]:
    """Resolve the top-level system text for shapes that carry it separately.

    The IR ``system`` field wins. Otherwise the first role=system message is
    promoted and removed from the message sequence; later ones are kept.
    """
    if request.system is not None:
        return request.system, request.messages
    for index, message in enumerate(request.messages):
        if message.role == "system":
            messages = request.messages[:index] + request.messages[index + 1:]
            return message.text, messages
    return None, request.messages


def parse_part(raw: Any) -> ContentPart:
    """Parse an OpenAI-style content part (text parts share Anthropic's form)."""
    part = require_mapping(raw, "content part")
    fields = {k: v for k, v in part.items() if k not in ("type", "text", "cache_control")}
    part_type = part.get("type") or "text"
    text = part.get("text")
    if part_type == "text" and text is None:
        text = ""
    return ContentPart(
        type=part_type,
        text=text,
        fields=fields,
        cache_control=part.get("cache_control"),
    )


def parse_content(raw: Any) -> Content:
    if raw is None:
        return ""
    if isinstance(raw, str):
        return raw
    if isinstance(raw, list):
        return tuple(parse_part(item) for item in raw)
    raise TranslationError(f"Message content must be a string or array, got {type(raw).__name__}")


def render_part(part: ContentPart) -> dict[str, Any]:
    rendered: dict[str, Any] = {"type": part.type}
    if part.text is not None:
        rendered["text"] = part.text
    rendered.update(part.fields)
    if part.cache_control is not None:
        rendered["cache_control"] = dict(part.cache_control)
    return rendered


def render_content(content: Content) -> str | list[dict[str, Any]]:
    if isinstance(content, str):
        return content
    return [render_part(part) for part in content]
