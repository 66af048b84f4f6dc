"""Pytest configuration and fixtures for testing."""

from __future__ import annotations

import json
from typing import Any, AsyncIterator, Callable, Iterable, Optional

import httpx
import pytest


class FakeUpstream:
    """Async byte source standing in for an upstream SSE body.

    Yields ``chunks`` in order, then raises ``error`` if one is given.
    Records whether ``aclose`` was awaited.
    """

    def __init__(self, chunks: Iterable[bytes], error: Optional[BaseException] = None) -> None:
        self.chunks = list(chunks)
        self.error = error
        self.closed = False
        self.reads = 0

    def __aiter__(self) -> AsyncIterator[bytes]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[bytes]:
        for chunk in self.chunks:
            self.reads += 1
            yield chunk
        if self.error is not None:
            raise self.error

    async def aclose(self) -> None:
        self.closed = True


async def collect(stream: AsyncIterator[bytes]) -> bytes:
    return b"".join([piece async for piece in stream])


def data_payloads(raw: bytes) -> list[Any]:
    """Parse every JSON ``data:`` line of an SSE body, skipping [DONE]."""
    payloads = []
    for line in raw.decode("utf-8").split("\n"):
        if not line.startswith("data:"):
            continue
        body = line[len("data:"):].strip()
        if body and body != "[DONE]":
            payloads.append(json.loads(body))
    return payloads


def sse(*payloads: Any, event: bool = False) -> bytes:
    """Encode payloads as an SSE body, optionally with ``event:`` lines."""
    out = []
    for payload in payloads:
        if isinstance(payload, str):
            out.append(f"data: {payload}\n\n")
            continue
        prefix = f"event: {payload['type']}\n" if event else ""
        out.append(f"{prefix}data: {json.dumps(payload)}\n\n")
    return "".join(out).encode("utf-8")


class RecordingHandler:
    """httpx.MockTransport handler that records requests and replays responses."""

    def __init__(self, responder: Callable[[httpx.Request], httpx.Response]) -> None:
        self.responder = responder
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.responder(request)

    @property
    def last_request(self) -> httpx.Request:
        return self.requests[-1]

    @property
    def last_json(self) -> Any:
        return json.loads(self.last_request.content)


# =============================================================================
# Sample wire bodies
# =============================================================================


@pytest.fixture
def openai_request() -> dict[str, Any]:
    return {
        "model": "gpt-4",
        "messages": [
            {"role": "system", "content": "You are terse."},
            {"role": "user", "content": "Hello"},
        ],
        "max_tokens": 1000,
        "temperature": 0.2,
    }


@pytest.fixture
def anthropic_request() -> dict[str, Any]:
    return {
        "model": "claude-3-haiku-20240307",
        "system": "You are terse.",
        "messages": [{"role": "user", "content": "Hello"}],
        "max_tokens": 512,
    }


@pytest.fixture
def gemini_request() -> dict[str, Any]:
    return {
        "contents": [
            {"role": "user", "parts": [{"text": "Hel"}, {"text": "lo"}]},
            {"role": "model", "parts": [{"text": "Hi there"}]},
            {"role": "user", "parts": [{"text": "Again"}]},
        ],
        "systemInstruction": {"parts": [{"text": "You are terse."}]},
        "generationConfig": {"maxOutputTokens": 256, "temperature": 0.4},
    }


@pytest.fixture
def openai_response() -> dict[str, Any]:
    return {
        "id": "chatcmpl-1",
        "object": "chat.completion",
        "created": 1700000000,
        "model": "gpt-4",
        "choices": [
            {"index": 0, "message": {"role": "assistant", "content": "Hi"}, "finish_reason": "stop"}
        ],
        "usage": {"prompt_tokens": 10, "completion_tokens": 5, "total_tokens": 15},
    }


@pytest.fixture
def anthropic_response() -> dict[str, Any]:
    return {
        "id": "msg_1",
        "type": "message",
        "role": "assistant",
        "model": "claude-3-haiku-20240307",
        "content": [{"type": "text", "text": "Hi"}],
        "stop_reason": "end_turn",
        "usage": {"input_tokens": 10, "output_tokens": 5},
    }


@pytest.fixture
def gemini_response() -> dict[str, Any]:
    return {
        "candidates": [
            {
                "content": {"parts": [{"text": "Hi"}, {"text": " there"}], "role": "model"},
                "finishReason": "STOP",
                "index": 0,
            }
        ]
    }
