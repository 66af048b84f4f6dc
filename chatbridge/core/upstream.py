"""Outbound calls to the target vendor over httpx.

One ``AsyncClient`` is opened per call and closed when the call (or, for
streams, the last byte) is done. No retries happen here.
"""

from __future__ import annotations

import logging
from typing import Any, AsyncIterator, Optional
from urllib.parse import quote

import httpx

from ..platforms import GatewayConfig
from .exceptions import UpstreamError
from .protocols import Protocol, WireShape

logger = logging.getLogger("chatbridge")

DEFAULT_TIMEOUT = 300.0


def _gemini_model_path(model: str) -> str:
    # "google/gemini-pro" -> "gemini-pro"
    actual = model.split("/", 1)[1] if "/" in model else model
    return quote(actual, safe="-._~")


class UpstreamClient:
    """Sends translated requests to the vendor APIs named in the config."""

    def __init__(
        self,
        config: GatewayConfig,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.config = config
        self.timeout = timeout
        self.transport = transport

    def build_url(self, protocol: Protocol, model: str, stream: bool = False) -> str:
        platform = self.config.platform(protocol)
        endpoint = platform.endpoint
        if stream and platform.stream_endpoint:
            endpoint = platform.stream_endpoint
        if "{model}" in endpoint:
            endpoint = endpoint.replace("{model}", _gemini_model_path(model or "gemini-pro"))
        return f"{platform.base_url}{endpoint}"

    def build_headers(self, protocol: Protocol, token: str, stream: bool = False) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if stream:
            headers["Accept"] = "text/event-stream"
        if protocol.shape is WireShape.ANTHROPIC:
            headers["x-api-key"] = token
            headers["anthropic-version"] = self.config.platform(protocol).anthropic_version or "2023-06-01"
        elif protocol.shape is WireShape.GEMINI:
            headers["x-goog-api-key"] = token
        else:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    async def post_json(self, protocol: Protocol, model: str, token: str, body: dict[str, Any]) -> Any:
        """Send a non-streaming request and return the parsed JSON body.

        Raises:
            UpstreamError: On a non-2xx status or a body that is not JSON.
            httpx.HTTPError: On transport failures.
        """
        url = self.build_url(protocol, model)
        logger.debug(f"POST {url} (model={model})")
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            resp = await client.post(url, headers=self.build_headers(protocol, token), json=body)

        if resp.status_code >= 400:
            logger.warning(f"Upstream {protocol.value} returned status {resp.status_code}")
            raise UpstreamError(
                f"upstream returned status {resp.status_code}", status_code=resp.status_code, body=resp.text
            )
        try:
            return resp.json()
        except ValueError as exc:
            raise UpstreamError("upstream returned a non-JSON body", status_code=502, body=resp.text) from exc

    async def open_stream(
        self,
        protocol: Protocol,
        model: str,
        token: str,
        body: dict[str, Any],
    ) -> "UpstreamStream":
        """Start a streaming request and return its raw byte stream.

        The status is checked before returning, so an error status surfaces as
        UpstreamError instead of an in-band event.
        """
        url = self.build_url(protocol, model, stream=True)
        stream_timeout = httpx.Timeout(
            connect=self.timeout, read=None, write=self.timeout, pool=self.timeout
        )
        client = httpx.AsyncClient(timeout=stream_timeout, transport=self.transport)
        try:
            request = client.build_request(
                "POST", url, headers=self.build_headers(protocol, token, stream=True), json=body
            )
            logger.debug(f"Sending streaming request to {url}")
            resp = await client.send(request, stream=True)
        except Exception as exc:
            logger.error(f"Failed to send streaming request to {url}: {exc} (type: {exc.__class__.__name__})")
            await client.aclose()
            raise

        if resp.status_code >= 400:
            data = await resp.aread()
            await resp.aclose()
            await client.aclose()
            logger.warning(f"Streaming request to {url} returned status {resp.status_code}")
            raise UpstreamError(
                f"stream request returned status {resp.status_code}",
                status_code=resp.status_code,
                body=data.decode("utf-8", errors="replace"),
            )

        return UpstreamStream(resp, client)


class UpstreamStream:
    """Body of an open streaming response.

    Iterating yields raw bytes and releases the response and its client once
    the body ends. ``aclose`` releases them as well, whether or not iteration
    ever started, and may be called any number of times.
    """

    def __init__(self, response: httpx.Response, client: httpx.AsyncClient) -> None:
        self.response = response
        self.client = client
        self.closed = False

    def __aiter__(self) -> AsyncIterator[bytes]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[bytes]:
        try:
            async for chunk in self.response.aiter_bytes():
                yield chunk
        finally:
            await self.aclose()

    async def aclose(self) -> None:
        if self.closed:
            return
        self.closed = True
        logger.debug(f"Closing upstream stream {self.response.request.url}")
        await self.response.aclose()
        await self.client.aclose()
