"""FastAPI application for the chatbridge gateway."""

import logging
import os
from typing import Any, Mapping, Optional

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api.routes import gateway_endpoint, service_info
from .config_loader import load_config
from .core.exceptions import ConfigurationError
from .core.upstream import DEFAULT_TIMEOUT, UpstreamClient
from .logging import setup_logging
from .platforms import GatewayConfig
from .translation import Translator

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8787

# Initialize logging
logger = setup_logging()


def _load_default_config() -> dict:
    try:
        return load_config()
    except ConfigurationError:
        if os.getenv("CHATBRIDGE_CONFIG"):
            raise
        logger.warning("Default config file is missing, using built-in platform settings")
        return {}


def resolve_server_address(config: Mapping[str, Any]) -> tuple[str, int]:
    """Host and port to bind; CHATBRIDGE_HOST/CHATBRIDGE_PORT win over the config."""
    server_cfg = config.get("server") or {}

    host = os.getenv("CHATBRIDGE_HOST")
    if host is None:
        host = str(server_cfg.get("host", DEFAULT_HOST))

    port_str = os.getenv("CHATBRIDGE_PORT")
    if port_str is None:
        port_str = server_cfg.get("port", DEFAULT_PORT)
    try:
        port = int(port_str)
    except (TypeError, ValueError):
        logger.warning(f"Invalid port {port_str!r}, falling back to {DEFAULT_PORT}")
        port = DEFAULT_PORT
    return host, port


def create_app(
    config: Optional[Mapping[str, Any]] = None,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    """Build a gateway application.

    Args:
        config: Parsed configuration; loaded from disk when omitted.
        transport: httpx transport for upstream calls (tests pass a MockTransport).
    """
    if config is None:
        config = _load_default_config()

    gateway_config = GatewayConfig.from_mapping(config)
    try:
        timeout = float(config.get("upstream_timeout", DEFAULT_TIMEOUT))
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"upstream_timeout must be a number, got {config.get('upstream_timeout')!r}") from exc

    app = FastAPI(title="chatbridge")
    app.state.config = gateway_config
    app.state.translator = Translator(gateway_config)
    app.state.upstream = UpstreamClient(gateway_config, timeout=timeout, transport=transport)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )

    app.get("/")(service_info)
    app.post("/{source}/{target}")(gateway_endpoint)

    logger.info(f"chatbridge application created ({len(gateway_config.platforms)} platforms)")
    return app


config = _load_default_config()
SERVER_HOST, SERVER_PORT = resolve_server_address(config)
app = create_app(config)

__all__ = ["app", "create_app", "config", "resolve_server_address", "SERVER_HOST", "SERVER_PORT"]
