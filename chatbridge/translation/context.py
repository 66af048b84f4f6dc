"""Per-call inputs adapters need beyond the IR itself."""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class AdapterContext:
    """Options supplied by the routing layer for one request.

    Attributes:
        max_tokens_ceiling: Largest max_tokens the target platform accepts.
            Requests above it are clamped. None means no ceiling.
        prompt_caching: Whether the caller opted in to prompt caching.
    """

    max_tokens_ceiling: Optional[int] = None
    prompt_caching: bool = False
