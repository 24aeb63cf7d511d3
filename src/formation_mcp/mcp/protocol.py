from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from ..errors import map_exception_to_jsonrpc
from ..jsonrpc.codec import INVALID_PARAMS
from ..jsonrpc.dispatcher import Dispatcher, JsonRpcAppError
from ..jsonrpc.models import JsonRpcRequest
from ..jsonrpc.outcome import Ok, Outcome, ToolFailure
from .envelope import build_resource_contents, build_tool_failure, build_tool_result
from .resources.registry import ResourceRegistry
from .session import resolve_session
from .tools.registry import ToolRegistry


PROTOCOL_VERSION = "2024-11-05"


@dataclass
class McpProtocol:
    """MCP semantic layer.

    This layer does not care about transport (stream/unary). It exposes
    handlers for the closed MCP method set, and delegates tool execution to
    ToolRegistry and content lookup to ResourceRegistry.
    """

    tools: ToolRegistry
    resources: ResourceRegistry
    server_name: str = "lovie-formation"
    server_version: str = "1.0.0"
    protocol_version: str = PROTOCOL_VERSION

    def handle_initialize(self, params: Any | None = None) -> dict[str, Any]:
        _ = params
        return {
            "protocolVersion": self.protocol_version,
            "serverInfo": {"name": self.server_name, "version": self.server_version},
            "capabilities": {"tools": {}, "resources": {}},
        }

    def handle_tools_list(self) -> dict[str, Any]:
        return {"tools": self.tools.list_tools()}

    def handle_tools_call(self, session: Any, params: Any | None) -> Outcome:
        p = _require_mapping(params)
        name = p.get("name")
        if not isinstance(name, str) or not name:
            raise JsonRpcAppError(INVALID_PARAMS, "params.name must be a non-empty string")
        args = p.get("arguments")
        if args is None:
            args = {}
        if not isinstance(args, Mapping):
            raise JsonRpcAppError(INVALID_PARAMS, "params.arguments must be an object")

        try:
            out = self.tools.call_tool(name, dict(args), resolve_session(session))
        except Exception as e:
            return ToolFailure(str(e) or "Unknown error")
        return Ok(build_tool_result(out))

    def handle_resources_list(self) -> dict[str, Any]:
        return {"resources": self.resources.list_resources()}

    def handle_resources_read(self, params: Any | None) -> dict[str, Any]:
        p = _require_mapping(params)
        uri = p.get("uri")
        if not isinstance(uri, str) or not uri:
            raise JsonRpcAppError(INVALID_PARAMS, "params.uri must be a non-empty string")

        text = self.resources.read(uri)
        if text is None:
            raise JsonRpcAppError(INVALID_PARAMS, f"Resource not found: {uri}")
        return build_resource_contents(uri, text)


def _require_mapping(params: Any | None) -> Mapping[str, Any]:
    if params is None:
        return {}
    if not isinstance(params, Mapping):
        raise JsonRpcAppError(INVALID_PARAMS, "params must be an object")
    return params


def build_dispatcher(proto: McpProtocol) -> Dispatcher:
    """Wire the closed MCP method table onto a Dispatcher."""
    disp = Dispatcher()
    disp.error_mapper = map_exception_to_jsonrpc
    disp.failure_renderer = build_tool_failure

    def initialize(req: JsonRpcRequest, session: Any) -> dict[str, Any]:
        return proto.handle_initialize(req.params)

    def tools_list(req: JsonRpcRequest, session: Any) -> dict[str, Any]:
        return proto.handle_tools_list()

    def tools_call(req: JsonRpcRequest, session: Any) -> Outcome:
        return proto.handle_tools_call(session, req.params)

    def resources_list(req: JsonRpcRequest, session: Any) -> dict[str, Any]:
        return proto.handle_resources_list()

    def resources_read(req: JsonRpcRequest, session: Any) -> dict[str, Any]:
        return proto.handle_resources_read(req.params)

    def ack(req: JsonRpcRequest, session: Any) -> dict[str, Any]:
        return {}

    disp.register("initialize", initialize)
    disp.register("tools/list", tools_list)
    disp.register("tools/call", tools_call)
    disp.register("resources/list", resources_list)
    disp.register("resources/read", resources_read)
    disp.register("notifications/initialized", ack)
    disp.register("ping", ack)
    return disp
