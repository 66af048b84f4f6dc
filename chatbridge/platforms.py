"""Read-only platform tables: endpoints, token ceilings and model remapping.

Built once from the loaded configuration and handed to the translator and
upstream client at construction. Nothing here is mutated afterwards.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping, Optional

from .core.exceptions import ConfigurationError, UnsupportedProtocolError
from .core.protocols import Protocol

logger = logging.getLogger("chatbridge")

DEFAULT_PROMPT_CACHING_HEADER = "x-prompt-caching"
DEFAULT_ANTHROPIC_VERSION = "2023-06-01"


@dataclass(frozen=True)
class PlatformSettings:
    """Static settings for one target platform.

    Attributes:
        base_url: Scheme and host of the vendor API.
        endpoint: Path for non-streaming calls. ``{model}`` is substituted.
        stream_endpoint: Path for streaming calls; defaults to ``endpoint``.
        max_tokens_ceiling: Largest max_tokens the platform accepts.
        model_mappings: Exact-match model identifier rewrites.
        anthropic_version: Value of the ``anthropic-version`` header.
    """

    base_url: str
    endpoint: str
    stream_endpoint: Optional[str] = None
    max_tokens_ceiling: Optional[int] = None
    model_mappings: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    anthropic_version: Optional[str] = None


DEFAULT_PLATFORMS: Mapping[Protocol, PlatformSettings] = MappingProxyType({
    Protocol.OPENAI: PlatformSettings(
        base_url="https://api.openai.com",
        endpoint="/v1/chat/completions",
    ),
    Protocol.CLAUDE: PlatformSettings(
        base_url="https://api.anthropic.com",
        endpoint="/v1/messages",
        anthropic_version=DEFAULT_ANTHROPIC_VERSION,
    ),
    Protocol.GEMINI: PlatformSettings(
        base_url="https://generativelanguage.googleapis.com",
        endpoint="/v1beta/models/{model}:generateContent",
        stream_endpoint="/v1beta/models/{model}:streamGenerateContent?alt=sse",
    ),
    Protocol.OPENROUTER: PlatformSettings(
        base_url="https://openrouter.ai/api",
        endpoint="/v1/chat/completions",
    ),
    Protocol.GROQ: PlatformSettings(
        base_url="https://api.groq.com/openai",
        endpoint="/v1/chat/completions",
        max_tokens_ceiling=32768,
    ),
})


@dataclass(frozen=True)
class GatewayConfig:
    """Immutable configuration shared by every request."""

    platforms: Mapping[Protocol, PlatformSettings] = field(default_factory=lambda: DEFAULT_PLATFORMS)
    prompt_caching_header: str = DEFAULT_PROMPT_CACHING_HEADER

    def platform(self, protocol: Protocol) -> PlatformSettings:
        return self.platforms.get(protocol) or DEFAULT_PLATFORMS[protocol]

    def map_model(self, model: str, protocol: Protocol) -> str:
        """Apply the platform's remap table; unknown identifiers pass through."""
        return self.platform(protocol).model_mappings.get(model, model)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> "GatewayConfig":
        """Build a config from the parsed YAML document.

        Raises:
            ConfigurationError: If a platform entry is malformed.
        """
        data = data or {}
        raw_platforms = data.get("platforms") or {}
        if not isinstance(raw_platforms, Mapping):
            raise ConfigurationError("'platforms' must be a mapping")

        platforms = dict(DEFAULT_PLATFORMS)
        for tag, raw in raw_platforms.items():
            try:
                protocol = Protocol.from_tag(tag)
            except UnsupportedProtocolError as exc:
                raise ConfigurationError(f"Unknown platform in config: {tag!r}") from exc
            platforms[protocol] = _platform_from_mapping(protocol, raw or {})

        header = data.get("prompt_caching_header") or DEFAULT_PROMPT_CACHING_HEADER
        return cls(platforms=MappingProxyType(platforms), prompt_caching_header=str(header).lower())


def _platform_from_mapping(protocol: Protocol, raw: Any) -> PlatformSettings:
    if not isinstance(raw, Mapping):
        raise ConfigurationError(f"Platform '{protocol.value}' must be a mapping")
    defaults = DEFAULT_PLATFORMS[protocol]

    ceiling = raw.get("max_tokens_ceiling", defaults.max_tokens_ceiling)
    if ceiling is not None:
        try:
            ceiling = int(ceiling)
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(
                f"Platform '{protocol.value}': max_tokens_ceiling must be an integer, got {ceiling!r}"
            ) from exc
        if ceiling <= 0:
            raise ConfigurationError(f"Platform '{protocol.value}': max_tokens_ceiling must be positive")

    mappings = raw.get("model_mappings") or {}
    if not isinstance(mappings, Mapping):
        raise ConfigurationError(f"Platform '{protocol.value}': model_mappings must be a mapping")

    settings = PlatformSettings(
        base_url=str(raw.get("base_url") or defaults.base_url).rstrip("/"),
        endpoint=str(raw.get("endpoint") or defaults.endpoint),
        stream_endpoint=raw.get("stream_endpoint") or defaults.stream_endpoint,
        max_tokens_ceiling=ceiling,
        model_mappings=MappingProxyType({str(k): str(v) for k, v in mappings.items()}),
        anthropic_version=raw.get("anthropic_version") or defaults.anthropic_version,
    )
    logger.debug(
        f"Platform {protocol.value}: {settings.base_url} "
        f"(ceiling={settings.max_tokens_ceiling}, {len(settings.model_mappings)} model mappings)"
    )
    return settings
