"""OpenAI Chat Completions adapter (also OpenRouter and Groq).

The IR mirrors this wire shape, so conversions are field-for-field. The
only request-side post-processing is the platform max_tokens ceiling and,
for OpenRouter, cache_control handling.
"""

from __future__ import annotations

import time
from typing import Any, Mapping

from ...core.protocols import Protocol
from ...types.ir import (
    DEFAULT_MAX_TOKENS,
    DEFAULT_TEMPERATURE,
    ChatMessage,
    ChatRequest,
    ChatResponse,
    Choice,
    ChunkChoice,
    Delta,
    StreamChunk,
    Usage,
)
from ...types.wire import OpenAIMessage, OpenAIRequest, OpenAIResponse
from ..cache_control import apply_cache_policy
from ..context import AdapterContext
from .base import (
    ProtocolAdapter,
    clamp_max_tokens,
    parse_content,
    pick_float,
    pick_int,
    render_content,
    require_list,
    require_mapping,
)


def _message_to_ir(raw: Any, default_role: str = "user") -> ChatMessage:
    message = require_mapping(raw, "message")
    return ChatMessage(
        role=message.get("role") or default_role,
        content=parse_content(message.get("content")),
    )


def _message_from_ir(message: ChatMessage) -> OpenAIMessage:
    return {"role": message.role, "content": render_content(message.content)}


def _usage_to_ir(raw: Any) -> Usage:
    if not isinstance(raw, Mapping):
        return Usage()
    prompt = int(raw.get("prompt_tokens") or 0)
    completion = int(raw.get("completion_tokens") or 0)
    total = raw.get("total_tokens")
    if total is None:
        return Usage.from_counts(prompt, completion)
    return Usage(prompt, completion, int(total))


class OpenAIAdapter(ProtocolAdapter):
    protocol = Protocol.OPENAI

    def request_to_ir(self, body: Mapping[str, Any]) -> ChatRequest:
        body = require_mapping(body, "request body")
        messages = require_list(body.get("messages"), "messages")
        return ChatRequest(
            model=body.get("model") or "",
            messages=tuple(_message_to_ir(message) for message in messages),
            max_tokens=pick_int(body, "max_tokens", "max_completion_tokens", default=DEFAULT_MAX_TOKENS),
            temperature=pick_float(body, "temperature", default=DEFAULT_TEMPERATURE),
            stream=bool(body.get("stream", False)),
        )

    def request_from_ir(self, request: ChatRequest, context: AdapterContext) -> OpenAIRequest:
        messages = request.messages
        if request.system is not None and not any(m.role == "system" for m in messages):
            messages = (ChatMessage(role="system", content=request.system),) + messages
        if self.manages_cache_control:
            messages = apply_cache_policy(messages, request.model, context.prompt_caching)
        return {
            "model": request.model,
            "messages": [_message_from_ir(message) for message in messages],
            "max_tokens": clamp_max_tokens(request.max_tokens, context),
            "temperature": request.temperature,
            "stream": request.stream,
        }

    def response_to_ir(self, body: Mapping[str, Any]) -> ChatResponse:
        body = require_mapping(body, "response body")
        choices = []
        for position, raw in enumerate(require_list(body.get("choices"), "choices")):
            choice = require_mapping(raw, "choice")
            choices.append(
                Choice(
                    index=choice.get("index", position),
                    message=_message_to_ir(choice.get("message") or {}, default_role="assistant"),
                    finish_reason=choice.get("finish_reason"),
                )
            )
        return ChatResponse(
            id=body.get("id") or "",
            model=body.get("model") or "",
            choices=tuple(choices),
            usage=_usage_to_ir(body.get("usage")),
            created=body.get("created") or int(time.time()),
        )

    def response_from_ir(self, response: ChatResponse) -> OpenAIResponse:
        return {
            "id": response.id,
            "object": "chat.completion",
            "created": response.created,
            "model": response.model,
            "choices": [
                {
                    "index": choice.index,
                    "message": _message_from_ir(choice.message),
                    "finish_reason": choice.finish_reason,
                }
                for choice in response.choices
            ],
            "usage": {
                "prompt_tokens": response.usage.prompt_tokens,
                "completion_tokens": response.usage.completion_tokens,
                "total_tokens": response.usage.total_tokens,
            },
        }

    def chunk_to_ir(self, payload: Mapping[str, Any]) -> StreamChunk:
        payload = require_mapping(payload, "stream event")
        choices = []
        for position, raw in enumerate(require_list(payload.get("choices"), "choices")):
            choice = require_mapping(raw, "choice")
            delta = choice.get("delta") or {}
            content = delta.get("content")
            choices.append(
                ChunkChoice(
                    index=choice.get("index", position),
                    delta=Delta(role=delta.get("role"), content=content if isinstance(content, str) else None),
                    finish_reason=choice.get("finish_reason"),
                )
            )
        return StreamChunk(
            id=payload.get("id") or "",
            model=payload.get("model") or "",
            choices=tuple(choices),
            created=payload.get("created") or 0,
        )

    def chunk_from_ir(self, chunk: StreamChunk) -> list[dict[str, Any]]:
        if not chunk.choices:
            return []
        choices = []
        for choice in chunk.choices:
            delta: dict[str, Any] = {}
            if choice.delta.role is not None:
                delta["role"] = choice.delta.role
            if choice.delta.content is not None:
                delta["content"] = choice.delta.content
            choices.append({"index": choice.index, "delta": delta, "finish_reason": choice.finish_reason})
        return [
            {
                "id": chunk.id,
                "object": "chat.completion.chunk",
                "created": chunk.created,
                "model": chunk.model,
                "choices": choices,
            }
        ]

    def error_payload(self, message: str) -> dict[str, Any]:
        return {"error": {"message": message, "type": "stream_error"}}


class OpenRouterAdapter(OpenAIAdapter):
    protocol = Protocol.OPENROUTER
    manages_cache_control = True


class GroqAdapter(OpenAIAdapter):
    protocol = Protocol.GROQ
