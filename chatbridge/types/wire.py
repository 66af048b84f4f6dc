"""Wire shapes of the supported vendors.

These TypedDicts document the JSON bodies adapters read and write. Only the
fields the gateway touches are listed; unknown fields are tolerated on input.
"""

from typing import Any

from typing_extensions import TypedDict


# =============================================================================
# OpenAI-Compatible Types (OpenAI, OpenRouter, Groq)
# =============================================================================


class OpenAIContentPart(TypedDict, total=False):
    type: str
    text: str
    image_url: dict[str, Any]
    cache_control: dict[str, Any]


class OpenAIMessage(TypedDict, total=False):
    role: str
    content: str | list[OpenAIContentPart] | None


class OpenAIRequest(TypedDict, total=False):
    model: str
    messages: list[OpenAIMessage]
    max_tokens: int
    max_completion_tokens: int
    temperature: float
    stream: bool


class OpenAIUsage(TypedDict, total=False):
    prompt_tokens: int
    completion_tokens: int
    total_tokens: int


class OpenAIChoice(TypedDict, total=False):
    """A choice of a completion (``message``) or of a chunk (``delta``)."""
    index: int
    message: OpenAIMessage
    delta: OpenAIMessage
    finish_reason: str | None


class OpenAIResponse(TypedDict, total=False):
    """Chat completion body; chunks use the same envelope."""
    id: str
    object: str
    created: int
    model: str
    choices: list[OpenAIChoice]
    usage: OpenAIUsage | None


# =============================================================================
# Anthropic Types (v1/messages)
# =============================================================================


class AnthropicContentBlock(TypedDict, total=False):
    """A content block: "text", "image" or anything the gateway passes through."""
    type: str
    text: str
    source: dict[str, Any]
    cache_control: dict[str, Any]


class AnthropicMessage(TypedDict, total=False):
    role: str
    content: str | list[AnthropicContentBlock]


class AnthropicRequest(TypedDict, total=False):
    model: str
    messages: list[AnthropicMessage]
    system: str | list[AnthropicContentBlock]
    max_tokens: int
    temperature: float
    stream: bool


class AnthropicUsage(TypedDict, total=False):
    input_tokens: int
    output_tokens: int


class AnthropicResponse(TypedDict, total=False):
    id: str
    type: str
    role: str
    content: list[AnthropicContentBlock]
    model: str
    stop_reason: str | None
    usage: AnthropicUsage


class AnthropicStreamEvent(TypedDict, total=False):
    """A streaming event.

    Attributes:
        type: "message_start", "content_block_start", "content_block_delta",
            "content_block_stop", "message_delta", "message_stop", "ping"
            or "error".
        index: Content block index for block events.
        delta: {"type": "text_delta", "text": ...} for text deltas.
        message: Message envelope for "message_start".
    """
    type: str
    index: int
    delta: dict[str, Any]
    message: AnthropicResponse


# =============================================================================
# Gemini Types (generateContent / streamGenerateContent)
# =============================================================================


class GeminiPart(TypedDict, total=False):
    text: str


class GeminiContent(TypedDict, total=False):
    role: str
    parts: list[GeminiPart]


class GeminiGenerationConfig(TypedDict, total=False):
    maxOutputTokens: int
    temperature: float


class GeminiRequest(TypedDict, total=False):
    contents: list[GeminiContent]
    systemInstruction: GeminiContent
    generationConfig: GeminiGenerationConfig


class GeminiCandidate(TypedDict, total=False):
    content: GeminiContent
    finishReason: str
    index: int


class GeminiResponse(TypedDict, total=False):
    """A generateContent body; every streamed event has the same shape."""
    candidates: list[GeminiCandidate]
    modelVersion: str
