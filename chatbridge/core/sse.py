"""SSE (Server-Sent Events) framing helpers."""

import json
from typing import Any, Optional


DATA_PREFIX = "data:"
DONE_SENTINEL = "[DONE]"
EVENT_SEPARATOR = "\n"


def split_data_line(line: str) -> Optional[str]:
    """Return the payload of a ``data:`` line, or None for other lines."""
    if not line.startswith(DATA_PREFIX):
        return None
    return line[len(DATA_PREFIX):].strip()


def format_data(payload: Any, event: Optional[str] = None) -> str:
    """Serialize a payload as one complete SSE event.

    Args:
        payload: JSON-serializable event payload.
        event: Optional event name emitted as an ``event:`` line first.

    Returns:
        The event text including its terminating blank line.
    """
    json_str = json.dumps(payload, ensure_ascii=False, separators=(",", ":"))
    prefix = f"event: {event}\n" if event else ""
    return f"{prefix}data: {json_str}\n\n"
