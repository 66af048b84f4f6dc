"""Anthropic Messages adapter.

Key mappings:
- Anthropic system (top-level) <-> IR system; on emission a role=system
  message is promoted when the IR has no system text (extract-and-strip)
- Anthropic image blocks <-> IR image_url parts
- Response stop_reason -> IR finish_reason (default "stop"), and back
  (default "end_turn")
- Stream: content_block_delta <-> content delta, message_stop <-> finish

Reference:
- Anthropic Messages API: https://docs.anthropic.com/en/api/messages
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from ...core.protocols import Protocol
from ...types.ir import (
    DEFAULT_MAX_TOKENS,
    DEFAULT_TEMPERATURE,
    ChatMessage,
    ChatRequest,
    ChatResponse,
    Choice,
    ChunkChoice,
    Content,
    ContentPart,
    Delta,
    StreamChunk,
    Usage,
)
from ...types.wire import (
    AnthropicContentBlock,
    AnthropicMessage,
    AnthropicRequest,
    AnthropicResponse,
)
from ..cache_control import apply_cache_policy
from ..context import AdapterContext
from .base import (
    ProtocolAdapter,
    clamp_max_tokens,
    extract_system,
    parse_part,
    pick_float,
    pick_int,
    render_part,
    require_list,
    require_mapping,
)

logger = logging.getLogger("chatbridge")

FINISH_REASON_DEFAULT_IN = "stop"
STOP_REASON_DEFAULT_OUT = "end_turn"


def _image_block_to_part(block: Mapping[str, Any]) -> ContentPart:
    """Convert an Anthropic image block to an IR image_url part.

    Anthropic format:
        {"type": "image", "source": {"type": "base64", "media_type": "image/png", "data": "..."}}
        {"type": "image", "source": {"type": "url", "url": "https://..."}}
    """
    source = block.get("source") or {}
    if source.get("type") == "base64":
        media_type = source.get("media_type", "image/png")
        url = f"data:{media_type};base64,{source.get('data', '')}"
    else:
        url = source.get("url", source.get("data", ""))
    return ContentPart(
        type="image_url",
        fields={"image_url": {"url": url}},
        cache_control=block.get("cache_control"),
    )


def _part_to_image_block(part: ContentPart) -> AnthropicContentBlock:
    image_url = part.fields.get("image_url") or {}
    url = image_url.get("url", "") if isinstance(image_url, Mapping) else str(image_url)
    if url.startswith("data:") and ";base64," in url:
        header, data = url[len("data:"):].split(";base64,", 1)
        source = {"type": "base64", "media_type": header or "image/png", "data": data}
    else:
        source = {"type": "url", "url": url}
    block: AnthropicContentBlock = {"type": "image", "source": source}
    if part.cache_control is not None:
        block["cache_control"] = dict(part.cache_control)
    return block


def _content_to_ir(raw: Any) -> Content:
    if raw is None:
        return ""
    if isinstance(raw, str):
        return raw
    parts = []
    for block in require_list(raw, "content"):
        block = require_mapping(block, "content block")
        if block.get("type") == "image":
            parts.append(_image_block_to_part(block))
        else:
            parts.append(parse_part(block))
    return tuple(parts)


def _content_from_ir(content: Content) -> str | list[AnthropicContentBlock]:
    if isinstance(content, str):
        return content
    blocks: list[AnthropicContentBlock] = []
    for part in content:
        if part.type == "image_url":
            blocks.append(_part_to_image_block(part))
        else:
            blocks.append(render_part(part))
    return blocks


def _system_to_ir(system: Any) -> Optional[str]:
    """Anthropic allows system as a string or an array of text blocks."""
    if system is None or isinstance(system, str):
        return system
    text_parts: list[str] = []
    for block in require_list(system, "system"):
        if isinstance(block, Mapping) and block.get("type") == "text":
            text_parts.append(block.get("text", ""))
        else:
            logger.warning(f"Dropping non-text block in system parameter: {block!r:.80}")
    return "\n".join(text_parts)


def _first_text(blocks: Any) -> str:
    for block in blocks or []:
        if isinstance(block, Mapping) and block.get("type", "text") == "text":
            return block.get("text") or ""
    return ""


class AnthropicAdapter(ProtocolAdapter):
    protocol = Protocol.CLAUDE
    manages_cache_control = True

    def request_to_ir(self, body: Mapping[str, Any]) -> ChatRequest:
        body = require_mapping(body, "request body")
        messages = []
        for raw in require_list(body.get("messages"), "messages"):
            message = require_mapping(raw, "message")
            messages.append(
                ChatMessage(role=message.get("role") or "user", content=_content_to_ir(message.get("content")))
            )
        return ChatRequest(
            model=body.get("model") or "",
            messages=tuple(messages),
            max_tokens=pick_int(body, "max_tokens", default=DEFAULT_MAX_TOKENS),
            temperature=pick_float(body, "temperature", default=DEFAULT_TEMPERATURE),
            stream=bool(body.get("stream", False)),
            system=_system_to_ir(body.get("system")),
        )

    def request_from_ir(self, request: ChatRequest, context: AdapterContext) -> AnthropicRequest:
        system, messages = extract_system(request)
        messages = apply_cache_policy(messages, request.model, context.prompt_caching)
        converted: list[AnthropicMessage] = [
            {"role": message.role, "content": _content_from_ir(message.content)} for message in messages
        ]
        result: AnthropicRequest = {
            "model": request.model,
            "messages": converted,
            "max_tokens": clamp_max_tokens(request.max_tokens, context),
            "temperature": request.temperature,
            "stream": request.stream,
        }
        if system is not None:
            result["system"] = system
        return result

    def response_to_ir(self, body: Mapping[str, Any]) -> ChatResponse:
        body = require_mapping(body, "response body")
        usage = body.get("usage")
        if not isinstance(usage, Mapping):
            usage = {}
        return ChatResponse(
            id=body.get("id") or "",
            model=body.get("model") or "",
            choices=(
                Choice(
                    index=0,
                    message=ChatMessage(role="assistant", content=_first_text(body.get("content"))),
                    finish_reason=body.get("stop_reason") or FINISH_REASON_DEFAULT_IN,
                ),
            ),
            usage=Usage.from_counts(
                int(usage.get("input_tokens") or 0),
                int(usage.get("output_tokens") or 0),
            ),
        )

    def response_from_ir(self, response: ChatResponse) -> AnthropicResponse:
        choice = response.choices[0] if response.choices else None
        return {
            "id": response.id,
            "type": "message",
            "role": "assistant",
            "content": [{"type": "text", "text": choice.message.text if choice else ""}],
            "model": response.model,
            "stop_reason": (choice.finish_reason if choice else None) or STOP_REASON_DEFAULT_OUT,
            "usage": {
                "input_tokens": response.usage.prompt_tokens,
                "output_tokens": response.usage.completion_tokens,
            },
        }

    def chunk_to_ir(self, payload: Mapping[str, Any]) -> StreamChunk:
        payload = require_mapping(payload, "stream event")
        event_type = payload.get("type")

        if event_type == "content_block_delta":
            delta = payload.get("delta") or {}
            text = delta.get("text")
            if isinstance(text, str):
                return StreamChunk(choices=(ChunkChoice(index=0, delta=Delta(content=text)),))
            # input_json_delta and other non-text deltas carry nothing for the IR
            return StreamChunk()

        if event_type == "message_stop":
            return StreamChunk(choices=(ChunkChoice(index=0, finish_reason="stop"),))

        if event_type == "message_start":
            message = payload.get("message") or {}
            return StreamChunk(id=message.get("id") or "", model=message.get("model") or "")

        return StreamChunk()

    def chunk_from_ir(self, chunk: StreamChunk) -> list[dict[str, Any]]:
        if not chunk.choices:
            return []
        choice = chunk.choices[0]
        events: list[dict[str, Any]] = []
        if choice.delta.content:
            events.append({
                "type": "content_block_delta",
                "index": 0,
                "delta": {"type": "text_delta", "text": choice.delta.content},
            })
        if choice.finish_reason:
            events.append({"type": "message_stop"})
        return events

    def error_payload(self, message: str) -> dict[str, Any]:
        return {"type": "error", "error": {"type": "api_error", "message": message}}

    def event_name(self, payload: Mapping[str, Any]) -> Optional[str]:
        return payload.get("type")
