"""Gateway endpoints: ``POST /{source}/{target}`` and the service index."""

import json
import logging
import time
import uuid
from dataclasses import replace
from typing import Any, Optional

import httpx
from fastapi import Request, Response
from fastapi.responses import JSONResponse, StreamingResponse
from starlette.background import BackgroundTask

from ..core.exceptions import InvalidRequestError, TranslationError, UpstreamError
from ..core.protocols import Protocol, WireShape, detect_protocol
from ..core.upstream import UpstreamClient
from ..translation import AdapterContext, Translator

logger = logging.getLogger("chatbridge")

SERVICE_INFO = {
    "name": "chatbridge",
    "description": "Translates chat-completion requests between AI vendor API formats",
    "version": "1.0.0",
    "supported_platforms": [protocol.value for protocol in Protocol],
    "usage": {
        "endpoint": "/{source_platform}/{target_platform}",
        "method": "POST",
        "description": "Accepts a request in the source platform's format and calls the target platform",
        "example": "/openai/claude - send an OpenAI-format request to Claude",
    },
    "features": [
        "Source format auto-detection",
        "Request, response and streaming translation",
        "Model name mapping (OpenRouter)",
        "Prompt caching directives for Claude models",
        "CORS support",
    ],
    "authentication": {
        "methods": ["Authorization Bearer", "x-api-key", "x-goog-api-key", "URL parameter key"],
        "note": "The caller's credential is forwarded using the target platform's header",
    },
}

_TRUTHY = {"1", "true", "yes", "on"}


def extract_auth_token(request: Request) -> Optional[str]:
    """Return the caller's credential from the usual header/query locations."""
    auth_header = request.headers.get("authorization")
    if auth_header:
        if auth_header.lower().startswith("bearer "):
            return auth_header[len("bearer "):].strip() or None
        return auth_header.strip() or None
    for header in ("x-api-key", "x-goog-api-key"):
        value = request.headers.get(header)
        if value:
            return value
    return request.query_params.get("key") or None


def prompt_caching_requested(request: Request, header_name: str) -> bool:
    """Whether the caller opted in to prompt caching."""
    value = request.headers.get(header_name, "")
    if value.strip().lower() in _TRUTHY:
        return True
    return "prompt-caching" in request.headers.get("anthropic-beta", "").lower()


def _error_response(
    message: str,
    status_code: int,
    *,
    protocol: Optional[Protocol] = None,
    error_type: str = "invalid_request_error",
    code: Optional[str] = None,
) -> JSONResponse:
    """Build an error body in the caller's protocol (OpenAI form by default)."""
    shape = protocol.shape if protocol is not None else WireShape.OPENAI
    if shape is WireShape.ANTHROPIC:
        payload: dict[str, Any] = {"type": "error", "error": {"type": error_type, "message": message}}
    elif shape is WireShape.GEMINI:
        payload = {"error": {"code": status_code, "message": message, "status": error_type.upper()}}
    else:
        error: dict[str, Any] = {"message": message, "type": error_type}
        if code:
            error["code"] = code
        payload = {"error": error}
    return JSONResponse(payload, status_code=status_code)


async def service_info() -> JSONResponse:
    """GET / - describe the service."""
    return JSONResponse(SERVICE_INFO)


async def gateway_endpoint(source: str, target: str, request: Request) -> Response:
    """POST /{source}/{target} - translate, forward, and translate back."""
    req_id = uuid.uuid4().hex[:8]
    start_time = time.perf_counter()
    translator: Translator = request.app.state.translator
    upstream: UpstreamClient = request.app.state.upstream

    try:
        source_protocol = Protocol.from_tag(source)
        target_protocol = Protocol.from_tag(target)
    except InvalidRequestError as exc:
        logger.info(f"[{req_id}] Rejected: {exc.message}")
        return _error_response(exc.message, 400, code=exc.code)

    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return _error_response("Request body must be valid JSON", 400, protocol=source_protocol)
    if not isinstance(body, dict):
        return _error_response("Request body must be a JSON object", 400, protocol=source_protocol)

    caller_protocol = detect_protocol(body, source_protocol)

    token = extract_auth_token(request)
    if not token:
        return _error_response(
            "Missing authentication token", 401, protocol=caller_protocol, error_type="authentication_error"
        )

    platform = translator.config.platform(target_protocol)
    context = AdapterContext(
        max_tokens_ceiling=platform.max_tokens_ceiling,
        prompt_caching=prompt_caching_requested(request, translator.config.prompt_caching_header),
    )

    try:
        chat_request = translator.request_to_ir(body, caller_protocol)
        if caller_protocol is Protocol.GEMINI and request.query_params.get("alt") == "sse":
            chat_request = replace(chat_request, stream=True)
        upstream_body = translator.request_from_ir(chat_request, target_protocol, context)
    except InvalidRequestError as exc:
        return _error_response(exc.message, 400, protocol=caller_protocol, code=exc.code)
    except TranslationError as exc:
        return _error_response(exc.message, 422, protocol=caller_protocol)

    model = translator.map_model(chat_request.model, target_protocol)
    logger.info(
        f"[{req_id}] {caller_protocol.value} -> {target_protocol.value} "
        f"model={model} stream={chat_request.stream}"
    )

    try:
        if chat_request.stream:
            byte_stream = await upstream.open_stream(target_protocol, model, token, upstream_body)
            logger.info(f"[{req_id}] Upstream stream opened in {time.perf_counter() - start_time:.3f}s")
            return StreamingResponse(
                translator.translate_stream(byte_stream, target_protocol, caller_protocol),
                media_type="text/event-stream",
                headers={"Cache-Control": "no-cache"},
                background=BackgroundTask(byte_stream.aclose),
            )

        data = await upstream.post_json(target_protocol, model, token, upstream_body)
        converted = translator.translate_response(data, target_protocol, caller_protocol)
    except UpstreamError as exc:
        return _error_response(
            f"Target API Error: {exc.body or exc.message}",
            exc.status_code,
            protocol=caller_protocol,
            error_type="upstream_error",
        )
    except TranslationError as exc:
        logger.warning(f"[{req_id}] Could not convert upstream response: {exc.message}")
        return _error_response(exc.message, 502, protocol=caller_protocol, error_type="upstream_error")
    except httpx.HTTPError as exc:
        logger.error(f"[{req_id}] Upstream request failed: {exc} (type: {exc.__class__.__name__})")
        return _error_response(
            f"Upstream request failed: {exc}", 502, protocol=caller_protocol, error_type="upstream_error"
        )

    logger.info(f"[{req_id}] Completed in {time.perf_counter() - start_time:.3f}s")
    return JSONResponse(converted)
