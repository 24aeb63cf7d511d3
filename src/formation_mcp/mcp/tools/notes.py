from __future__ import annotations

from typing import Any

from ...errors import ToolError
from .base import FunctionTool, ToolSpec
from ..session import McpSession


_STATE_KEY = "notes"


def _handler(session: McpSession, args: dict[str, Any]) -> dict[str, Any]:
    notes: list[str] = session.state.setdefault(_STATE_KEY, [])
    action = args.get("action", "list")

    if action == "add":
        text = args.get("text")
        if not isinstance(text, str) or not text.strip():
            raise ToolError("text is required for action=add")
        notes.append(text.strip())
    elif action == "clear":
        notes.clear()

    return {"session_id": session.session_id, "count": len(notes), "notes": list(notes)}


tool = FunctionTool(
    spec=ToolSpec(
        name="session.note",
        description="Keep short notes in the caller's session (add/list/clear).",
        input_schema={
            "type": "object",
            "properties": {
                "action": {"type": "string", "enum": ["add", "list", "clear"]},
                "text": {"type": "string"},
            },
            "additionalProperties": False,
        },
    ),
    fn=_handler,
)
