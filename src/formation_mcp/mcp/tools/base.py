from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Protocol

from ..session import McpSession


ToolHandler = Callable[[McpSession, dict[str, Any]], Any]


@dataclass(frozen=True)
class ToolSpec:
    name: str
    description: str
    input_schema: dict[str, Any]

    def to_descriptor(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_schema,
        }


class Tool(Protocol):
    spec: ToolSpec

    def call(self, session: McpSession, args: dict[str, Any]) -> Any:
        ...


@dataclass
class FunctionTool:
    spec: ToolSpec
    fn: ToolHandler

    def call(self, session: McpSession, args: dict[str, Any]) -> Any:
        return self.fn(session, args)
