from __future__ import annotations

import json
from typing import Any


def format_event(event: str, data: Any) -> str:
    """Frame one event-stream message. `data` is JSON-encoded unless already a str."""
    payload = data if isinstance(data, str) else json.dumps(data, ensure_ascii=False, separators=(",", ":"))
    return f"event: {event}\ndata: {payload}\n\n"


def format_comment(text: str) -> str:
    # Comment lines start with ':' and are ignored by event-stream parsers.
    return f": {text}\n\n"
