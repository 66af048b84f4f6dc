"""Protocol adapters, one per supported protocol tag."""

from types import MappingProxyType
from typing import Mapping

from ...core.protocols import Protocol, ProtocolTag
from .anthropic import AnthropicAdapter
from .base import ProtocolAdapter
from .gemini import GeminiAdapter
from .openai import GroqAdapter, OpenAIAdapter, OpenRouterAdapter

ADAPTERS: Mapping[Protocol, ProtocolAdapter] = MappingProxyType({
    Protocol.OPENAI: OpenAIAdapter(),
    Protocol.OPENROUTER: OpenRouterAdapter(),
    Protocol.GROQ: GroqAdapter(),
    Protocol.CLAUDE: AnthropicAdapter(),
    Protocol.GEMINI: GeminiAdapter(),
})

_missing = set(Protocol) - set(ADAPTERS)
if _missing:
    raise RuntimeError(f"No adapter registered for protocols: {sorted(p.value for p in _missing)}")


def get_adapter(protocol: ProtocolTag) -> ProtocolAdapter:
    """Return the adapter for a protocol tag, raising UnsupportedProtocolError if unknown."""
    return ADAPTERS[Protocol.from_tag(protocol)]


__all__ = [
    "ADAPTERS",
    "AnthropicAdapter",
    "GeminiAdapter",
    "GroqAdapter",
    "OpenAIAdapter",
    "OpenRouterAdapter",
    "ProtocolAdapter",
    "get_adapter",
]
