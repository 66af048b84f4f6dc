"""Incremental re-framing of Server-Sent Event streams between protocols.

The reframer keeps exactly one piece of state across reads: the trailing
fragment of text that has not yet seen its newline. Each read is decoded,
appended to that fragment and split on newlines; every complete line is
handled immediately and in order, and the new trailing fragment is held back.

Line handling:
    blank line            -> re-emitted as a blank line (event separator)
    data: [DONE] / data:  -> passed through, followed by a blank line
    data: <json>          -> source chunk -> IR -> target payload(s), each
                             emitted as ``data: <payload>`` + blank line
    data: <not json>      -> passed through unchanged
    any other line        -> passed through unchanged (event:, id:, retry:)

When both ends speak the same wire shape the adapter step is skipped and
only the framing is normalized.
"""

from __future__ import annotations

import codecs
import json
import logging
from enum import Enum
from typing import AsyncIterable, AsyncIterator

from ..core.exceptions import TranslationError
from ..core.sse import DONE_SENTINEL, EVENT_SEPARATOR, format_data, split_data_line
from .adapters.base import ProtocolAdapter

logger = logging.getLogger("chatbridge")


class ReframerState(str, Enum):
    AWAITING_BYTES = "awaiting-bytes"
    BUFFERING = "buffering"
    EMITTING = "emitting"
    DRAINING = "draining"
    CLOSED = "closed"


class EventStreamReframer:
    """Line-buffering SSE translator for one stream.

    ``feed`` is called with each raw read and returns the output pieces that
    became complete; ``finish`` flushes the residual fragment at end of data;
    ``fail`` closes the stream with a synthetic error event.
    """

    def __init__(self, source: ProtocolAdapter, target: ProtocolAdapter) -> None:
        self.source = source
        self.target = target
        self.translates = source.shape != target.shape
        self.state = ReframerState.AWAITING_BYTES
        self._buffer = ""
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")

    def feed(self, chunk: bytes) -> list[bytes]:
        if self.state is ReframerState.CLOSED:
            raise RuntimeError("Cannot feed a closed reframer")
        if not chunk:
            return []

        self.state = ReframerState.BUFFERING
        self._buffer += self._decoder.decode(chunk)
        *lines, self._buffer = self._buffer.split("\n")

        output: list[bytes] = []
        if lines:
            self.state = ReframerState.EMITTING
            for line in lines:
                output.extend(self._process_line(line))
        self.state = ReframerState.AWAITING_BYTES
        return output

    def finish(self) -> list[bytes]:
        if self.state is ReframerState.CLOSED:
            return []
        self.state = ReframerState.DRAINING
        residual = self._buffer + self._decoder.decode(b"", final=True)
        self._buffer = ""
        output = self._process_line(residual) if residual else []
        self.state = ReframerState.CLOSED
        return output

    def fail(self, error: BaseException) -> list[bytes]:
        if self.state is ReframerState.CLOSED:
            return []
        if self._buffer:
            logger.debug(f"Discarding incomplete line after stream failure: {self._buffer[:100]!r}")
        self._buffer = ""
        self.state = ReframerState.CLOSED
        description = str(error) or error.__class__.__name__
        payload = self.target.error_payload(f"Upstream stream terminated: {description}")
        return [format_data(payload, self.target.event_name(payload)).encode("utf-8")]

    def _process_line(self, line: str) -> list[bytes]:
        line = line.rstrip("\r")
        if not line.strip():
            return [EVENT_SEPARATOR.encode("utf-8")]

        payload = split_data_line(line)
        if payload is None:
            return [f"{line}\n".encode("utf-8")]
        if not payload or payload == DONE_SENTINEL:
            return [f"{line}\n\n".encode("utf-8")]

        try:
            document = json.loads(payload)
        except json.JSONDecodeError:
            logger.debug(f"Reframer: passing through unparseable event: {payload[:100]}")
            return [f"{line}\n".encode("utf-8")]

        if not self.translates:
            return [f"data: {payload}\n\n".encode("utf-8")]

        try:
            chunk = self.source.chunk_to_ir(document)
            events = self.target.chunk_from_ir(chunk)
        except (TranslationError, AttributeError, TypeError, ValueError) as exc:
            logger.debug(f"Reframer: passing through event {self.source!r} could not convert: {exc}")
            return [f"{line}\n".encode("utf-8")]

        return [format_data(event, self.target.event_name(event)).encode("utf-8") for event in events]


async def reframe_stream(
    source: AsyncIterable[bytes],
    reframer: EventStreamReframer,
) -> AsyncIterator[bytes]:
    """Drive a reframer over an upstream byte stream.

    Upstream is read only when the consumer asks for more output, so a slow
    consumer slows the upstream reads. The upstream iterator is closed when
    the stream ends, fails, or the consumer goes away.
    """
    try:
        try:
            async for chunk in source:
                for piece in reframer.feed(chunk):
                    yield piece
        except Exception as exc:
            logger.warning(f"Upstream stream failed: {exc} (type: {exc.__class__.__name__})")
            for piece in reframer.fail(exc):
                yield piece
            return
        for piece in reframer.finish():
            yield piece
    finally:
        aclose = getattr(source, "aclose", None)
        if aclose is not None:
            await aclose()


class ReframedStream:
    """Reframed output of one upstream stream.

    ``aclose`` always releases the upstream, including when the consumer goes
    away before the first piece was requested.
    """

    def __init__(self, source: AsyncIterable[bytes], reframer: EventStreamReframer) -> None:
        self.source = source
        self.reframer = reframer
        self._pieces = reframe_stream(source, reframer)

    def __aiter__(self) -> "ReframedStream":
        return self

    async def __anext__(self) -> bytes:
        return await self._pieces.__anext__()

    async def aclose(self) -> None:
        await self._pieces.aclose()
        aclose = getattr(self.source, "aclose", None)
        if aclose is not None:
            await aclose()
