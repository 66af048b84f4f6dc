"""Google Gemini generateContent adapter.

Gemini bodies carry no model identifier, no response id and no usage the
gateway reports, so those IR fields are filled with fixed defaults. Finish
reasons are upper-case on the wire and lower-case in the IR.
"""

from __future__ import annotations

import logging
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
    Content,
    Delta,
    StreamChunk,
    Usage,
)
from ...types.wire import GeminiCandidate, GeminiContent, GeminiPart, GeminiRequest, GeminiResponse
from ..context import AdapterContext
from .base import (
    ProtocolAdapter,
    clamp_max_tokens,
    extract_system,
    pick_float,
    pick_int,
    require_list,
    require_mapping,
)

logger = logging.getLogger("chatbridge")

DEFAULT_MODEL = "gemini-pro"
RESPONSE_MODEL = "gemini"
RESPONSE_ID_PREFIX = "gemini-"


def _join_parts(content: Any) -> str:
    if not isinstance(content, Mapping):
        return ""
    texts = (part.get("text") for part in require_list(content.get("parts"), "parts") if isinstance(part, Mapping))
    return "".join(text for text in texts if isinstance(text, str))


def _parts_from_ir(content: Content) -> list[GeminiPart]:
    if isinstance(content, str):
        return [{"text": content}]
    parts: list[GeminiPart] = []
    for part in content:
        if part.is_text:
            parts.append({"text": part.text or ""})
        else:
            logger.debug(f"Dropping {part.type} part, Gemini requests carry text only")
    return parts or [{"text": ""}]


def _finish_to_ir(value: Any) -> str | None:
    return value.lower() if isinstance(value, str) and value else None


class GeminiAdapter(ProtocolAdapter):
    protocol = Protocol.GEMINI

    def request_to_ir(self, body: Mapping[str, Any]) -> ChatRequest:
        body = require_mapping(body, "request body")
        messages = []
        for raw in require_list(body.get("contents"), "contents"):
            content = require_mapping(raw, "content")
            role = "user" if content.get("role", "user") == "user" else "assistant"
            messages.append(ChatMessage(role=role, content=_join_parts(content)))

        system_instruction = body.get("systemInstruction", body.get("system_instruction"))
        generation = body.get("generationConfig", body.get("generation_config")) or {}
        generation = require_mapping(generation, "generationConfig")
        return ChatRequest(
            model=body.get("model") or DEFAULT_MODEL,
            messages=tuple(messages),
            max_tokens=pick_int(generation, "maxOutputTokens", "max_output_tokens", default=DEFAULT_MAX_TOKENS),
            temperature=pick_float(generation, "temperature", default=DEFAULT_TEMPERATURE),
            system=_join_parts(system_instruction) if system_instruction is not None else None,
        )

    def request_from_ir(self, request: ChatRequest, context: AdapterContext) -> GeminiRequest:
        system, messages = extract_system(request)
        contents: list[GeminiContent] = [
            {"role": "user" if message.role == "user" else "model", "parts": _parts_from_ir(message.content)}
            for message in messages
        ]
        result: GeminiRequest = {
            "contents": contents,
            "generationConfig": {
                "maxOutputTokens": clamp_max_tokens(request.max_tokens, context),
                "temperature": request.temperature,
            },
        }
        if system is not None:
            result["systemInstruction"] = {"parts": [{"text": system}]}
        return result

    def response_to_ir(self, body: Mapping[str, Any]) -> ChatResponse:
        body = require_mapping(body, "response body")
        candidates = require_list(body.get("candidates"), "candidates")
        choices: tuple[Choice, ...] = ()
        if candidates:
            candidate = require_mapping(candidates[0], "candidate")
            choices = (
                Choice(
                    index=0,
                    message=ChatMessage(role="assistant", content=_join_parts(candidate.get("content"))),
                    finish_reason=_finish_to_ir(candidate.get("finishReason")) or "stop",
                ),
            )
        # Gemini responses carry no id; nanoseconds keep successive ids distinct.
        return ChatResponse(
            id=f"{RESPONSE_ID_PREFIX}{time.time_ns()}",
            model=body.get("modelVersion") or RESPONSE_MODEL,
            choices=choices,
            usage=Usage(),
        )

    def response_from_ir(self, response: ChatResponse) -> GeminiResponse:
        choice = response.choices[0] if response.choices else None
        candidate: GeminiCandidate = {
            "content": {"parts": [{"text": choice.message.text if choice else ""}], "role": "model"},
            "finishReason": (choice.finish_reason.upper() if choice and choice.finish_reason else "STOP"),
            "index": 0,
        }
        return {"candidates": [candidate]}

    def chunk_to_ir(self, payload: Mapping[str, Any]) -> StreamChunk:
        payload = require_mapping(payload, "stream event")
        candidates = require_list(payload.get("candidates"), "candidates")
        if not candidates:
            return StreamChunk(model=payload.get("modelVersion") or "")
        candidate = require_mapping(candidates[0], "candidate")
        content = candidate.get("content")
        text = _join_parts(content) if isinstance(content, Mapping) and content.get("parts") else None
        return StreamChunk(
            model=payload.get("modelVersion") or "",
            choices=(
                ChunkChoice(
                    index=0,
                    delta=Delta(content=text),
                    finish_reason=_finish_to_ir(candidate.get("finishReason")),
                ),
            ),
        )

    def chunk_from_ir(self, chunk: StreamChunk) -> list[dict[str, Any]]:
        if not chunk.choices:
            return []
        choice = chunk.choices[0]
        if choice.delta.content is None and not choice.finish_reason:
            return []
        parts: list[GeminiPart] = [] if choice.delta.content is None else [{"text": choice.delta.content}]
        candidate: GeminiCandidate = {"content": {"parts": parts, "role": "model"}, "index": 0}
        if choice.finish_reason:
            candidate["finishReason"] = choice.finish_reason.upper()
        payload: dict[str, Any] = {"candidates": [candidate]}
        if chunk.model:
            payload["modelVersion"] = chunk.model
        return [payload]

    def error_payload(self, message: str) -> dict[str, Any]:
        return {"error": {"code": 500, "message": message, "status": "INTERNAL"}}
