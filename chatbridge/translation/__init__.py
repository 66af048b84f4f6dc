"""Cross-protocol translation of chat requests, responses and streams.

Provides conversion between the OpenAI Chat Completions (also OpenRouter and
Groq), Anthropic Messages and Gemini generateContent formats through a
vendor-neutral intermediate representation.
"""

from .adapters import ADAPTERS, ProtocolAdapter, get_adapter
from .cache_control import apply_cache_policy, insert_cache_control, is_claude_model, strip_cache_control
from .context import AdapterContext
from .reframer import EventStreamReframer, ReframedStream, ReframerState, reframe_stream
from .translator import Translator, translate_request, translate_response, translate_stream

__all__ = [
    "ADAPTERS",
    "AdapterContext",
    "EventStreamReframer",
    "ProtocolAdapter",
    "ReframedStream",
    "ReframerState",
    "Translator",
    "apply_cache_policy",
    "get_adapter",
    "insert_cache_control",
    "is_claude_model",
    "reframe_stream",
    "strip_cache_control",
    "translate_request",
    "translate_response",
    "translate_stream",
]
