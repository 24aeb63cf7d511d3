from __future__ import annotations

import json
from dataclasses import asdict, is_dataclass
from pathlib import Path
from typing import Any

from ..jsonrpc.outcome import ToolFailure
from .resources.registry import MARKDOWN_MIME


TOOL_ERROR_CODE = "TOOL_ERROR"


def _to_jsonable(obj: Any) -> Any:
    if is_dataclass(obj) and not isinstance(obj, type):
        return asdict(obj)
    if isinstance(obj, Path):
        return str(obj)
    raise TypeError(f"tool returned non-serializable value: {type(obj).__name__}")


def _text_item(payload: Any) -> dict[str, Any]:
    text = json.dumps(payload, indent=2, ensure_ascii=False, default=_to_jsonable)
    return {"type": "text", "text": text}


def build_tool_result(output: Any) -> dict[str, Any]:
    """Wrap a tool's return value as a tools/call result.

    The value is always serialized to JSON text in `content[0]`.
    """
    return {"content": [_text_item(output)]}


def build_tool_failure(failure: ToolFailure) -> dict[str, Any]:
    """Render a tool-level failure as a *successful* tools/call result.

    Callers distinguish it from a protocol error via `isError`.
    """
    payload = {"error": True, "code": TOOL_ERROR_CODE, "message": failure.message}
    return {"content": [_text_item(payload)], "isError": True}


def build_resource_contents(uri: str, text: str) -> dict[str, Any]:
    return {"contents": [{"uri": uri, "mimeType": MARKDOWN_MIME, "text": text}]}
