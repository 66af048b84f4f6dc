"""Translation orchestrator: composes adapters through the IR.

This is the only entry point the HTTP layer uses. It holds nothing but the
read-only ``GatewayConfig`` it was built with, so one instance serves any
number of concurrent requests.
"""

from __future__ import annotations

import copy
import logging
from contextlib import contextmanager
from typing import Any, AsyncIterable, Iterator, Mapping, Optional

from ..core.exceptions import TranslationError
from ..core.protocols import Protocol, ProtocolTag
from ..platforms import GatewayConfig
from ..types.ir import ChatRequest
from .adapters import get_adapter
from .adapters.base import require_mapping
from .context import AdapterContext
from .reframer import EventStreamReframer, ReframedStream

logger = logging.getLogger("chatbridge")


@contextmanager
def _conversion_errors(what: str) -> Iterator[None]:
    """Report malformed vendor bodies as TranslationError."""
    try:
        yield
    except (AttributeError, KeyError, TypeError, ValueError) as exc:
        logger.debug(f"Could not convert {what}: {exc!r}")
        raise TranslationError(f"Could not convert {what}: {exc}") from exc


class Translator:
    """Converts requests, responses and streams between protocols."""

    def __init__(self, config: Optional[GatewayConfig] = None) -> None:
        self.config = config or GatewayConfig()

    def default_context(self, target: ProtocolTag) -> AdapterContext:
        """Context carrying the configured ceiling and no caching opt-in."""
        platform = self.config.platform(Protocol.from_tag(target))
        return AdapterContext(max_tokens_ceiling=platform.max_tokens_ceiling)

    def map_model(self, model: str, target: ProtocolTag) -> str:
        return self.config.map_model(model, Protocol.from_tag(target))

    def request_to_ir(self, body: Mapping[str, Any], source: ProtocolTag) -> ChatRequest:
        adapter = get_adapter(source)
        with _conversion_errors("request body"):
            return adapter.request_to_ir(body)

    def request_from_ir(
        self,
        request: ChatRequest,
        target: ProtocolTag,
        context: Optional[AdapterContext] = None,
    ) -> dict[str, Any]:
        target = Protocol.from_tag(target)
        adapter = get_adapter(target)
        with _conversion_errors("request"):
            body = dict(adapter.request_from_ir(request, context or self.default_context(target)))
        if "model" in body:
            body["model"] = self.config.map_model(body["model"], target)
        return body

    def translate_request(
        self,
        body: Mapping[str, Any],
        source: ProtocolTag,
        target: ProtocolTag,
        context: Optional[AdapterContext] = None,
    ) -> dict[str, Any]:
        """Convert a request body from the source protocol to the target protocol.

        Both tags are validated before any conversion starts. A body the
        adapters cannot read raises TranslationError.
        """
        get_adapter(source)
        target = Protocol.from_tag(target)
        request = self.request_to_ir(body, source)
        return self.request_from_ir(request, target, context)

    def translate_response(
        self,
        body: Mapping[str, Any],
        source: ProtocolTag,
        target: ProtocolTag,
    ) -> dict[str, Any]:
        """Convert a completed (non-streaming) response body.

        Raises:
            TranslationError: The body does not have the source vendor's shape.
        """
        source_adapter = get_adapter(source)
        target_adapter = get_adapter(target)
        if source_adapter.shape == target_adapter.shape:
            logger.debug(f"Response shapes match ({source_adapter.shape.value}), passing body through")
            return copy.deepcopy(dict(require_mapping(body, "response body")))
        with _conversion_errors(f"{source_adapter.shape.value} response"):
            response = source_adapter.response_to_ir(body)
            return dict(target_adapter.response_from_ir(response))

    def translate_stream(
        self,
        stream: AsyncIterable[bytes],
        source: ProtocolTag,
        target: ProtocolTag,
    ) -> ReframedStream:
        """Wrap an upstream SSE byte stream; conversion runs as bytes arrive.

        Returns immediately. Nothing is read from ``stream`` until the
        returned stream is consumed. Closing the returned stream closes
        ``stream`` too.
        """
        reframer = EventStreamReframer(get_adapter(source), get_adapter(target))
        return ReframedStream(stream, reframer)


_default_translator = Translator()


def translate_request(
    body: Mapping[str, Any],
    source: ProtocolTag,
    target: ProtocolTag,
    context: Optional[AdapterContext] = None,
) -> dict[str, Any]:
    """Module-level ``Translator.translate_request`` with built-in platform defaults."""
    return _default_translator.translate_request(body, source, target, context)


def translate_response(body: Mapping[str, Any], source: ProtocolTag, target: ProtocolTag) -> dict[str, Any]:
    return _default_translator.translate_response(body, source, target)


def translate_stream(
    stream: AsyncIterable[bytes],
    source: ProtocolTag,
    target: ProtocolTag,
) -> ReframedStream:
    return _default_translator.translate_stream(stream, source, target)
