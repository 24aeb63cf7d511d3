from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ...errors import ToolError
from ..schema import SchemaValidationError, validate_tool_args
from ..session import McpSession
from .base import Tool


@dataclass
class ToolRegistry:
    """Static tool table. Populated at startup, read-only afterwards."""

    _tools: dict[str, Tool] = field(default_factory=dict)

    def register(self, tool: Tool) -> None:
        name = getattr(tool, "spec").name
        if not isinstance(name, str) or not name:
            raise ValueError("tool name must be non-empty string")
        if name in self._tools:
            raise ValueError(f"duplicate tool name: {name}")
        self._tools[name] = tool

    def get(self, name: str) -> Tool | None:
        return self._tools.get(name)

    def list_tools(self) -> list[dict[str, Any]]:
        out = [tool.spec.to_descriptor() for tool in self._tools.values()]
        out.sort(key=lambda x: x["name"])
        return out

    def call_tool(self, name: str, args: dict[str, Any], session: McpSession) -> Any:
        tool = self._tools.get(name)
        if tool is None:
            raise ToolError(f"Unknown tool: {name}")
        try:
            args = validate_tool_args(tool.spec.input_schema, args)
        except SchemaValidationError as e:
            raise ToolError(f"Invalid arguments for {name}: {e}") from e
        return tool.call(session, args)

    def __len__(self) -> int:
        return len(self._tools)
