"""Prompt-caching directive handling for Claude-capable targets.

Directives are always stripped before emission, since many models reject the
field. One ``{"type": "ephemeral"}`` marker is put back on the final text part
of the last user message when the caller opted in and the target model
belongs to the Claude family.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Iterable

from ..types.ir import ChatMessage, ContentPart

logger = logging.getLogger("chatbridge")

EPHEMERAL = {"type": "ephemeral"}
CLAUDE_MODEL_MARKERS = ("claude", "anthropic")


def is_claude_model(model: str | None) -> bool:
    """Case-insensitive check for Anthropic/Claude model identifiers."""
    if not model:
        return False
    lowered = model.lower()
    return any(marker in lowered for marker in CLAUDE_MODEL_MARKERS)


def strip_cache_control(messages: Iterable[ChatMessage]) -> tuple[ChatMessage, ...]:
    """Remove cache_control from every content part of every message."""
    stripped: list[ChatMessage] = []
    for message in messages:
        if isinstance(message.content, str) or not any(
            part.cache_control is not None for part in message.content
        ):
            stripped.append(message)
            continue
        parts = tuple(replace(part, cache_control=None) for part in message.content)
        stripped.append(replace(message, content=parts))
    return tuple(stripped)


def insert_cache_control(messages: Iterable[ChatMessage]) -> tuple[ChatMessage, ...]:
    """Mark the final text part of the last user message as cacheable."""
    result = list(messages)
    for position in range(len(result) - 1, -1, -1):
        message = result[position]
        if message.role != "user":
            continue
        if isinstance(message.content, str):
            parts = (replace(ContentPart.of_text(message.content), cache_control=EPHEMERAL),)
        else:
            parts = _mark_last_text_part(message.content)
            if parts is None:
                logger.debug("Last user message has no text part, skipping cache_control")
                break
        result[position] = replace(message, content=parts)
        break
    return tuple(result)


def _mark_last_text_part(parts: tuple[ContentPart, ...]) -> tuple[ContentPart, ...] | None:
    for index in range(len(parts) - 1, -1, -1):
        if parts[index].is_text:
            marked = replace(parts[index], cache_control=EPHEMERAL)
            return parts[:index] + (marked,) + parts[index + 1:]
    return None


def apply_cache_policy(
    messages: Iterable[ChatMessage],
    model: str,
    prompt_caching: bool,
) -> tuple[ChatMessage, ...]:
    """Strip all directives, then reinsert one if caching applies."""
    stripped = strip_cache_control(messages)
    if prompt_caching and is_claude_model(model):
        return insert_cache_control(stripped)
    return stripped
