from __future__ import annotations

from typing import Any

from .base import FunctionTool, ToolSpec
from ..session import McpSession


def _handler(session: McpSession, args: dict[str, Any]) -> dict[str, Any]:
    msg = args.get("message")
    if not isinstance(msg, str):
        msg = "pong"
    return {"message": msg, "session_id": session.session_id}


tool = FunctionTool(
    spec=ToolSpec(
        name="library.ping",
        description="Health check / smoke tool for the MCP transports.",
        input_schema={
            "type": "object",
            "properties": {"message": {"type": "string"}},
            "additionalProperties": False,
        },
    ),
    fn=_handler,
)
