from __future__ import annotations

from dataclasses import dataclass

from ..core.config.models import Settings
from ..observability.obs import api as obs
from ..observability.sinks.jsonl import JsonlSink
from .jsonrpc.dispatcher import Dispatcher
from .mcp.protocol import McpProtocol, build_dispatcher
from .mcp.resources.registry import ResourceRegistry
from .mcp.session import SessionStore, get_session_store
from .mcp.tools.notes import tool as notes_tool
from .mcp.tools.ping import tool as ping_tool
from .mcp.tools.registry import ToolRegistry
from .transport.unary import UnaryTransport


@dataclass
class Runtime:
    """Process-wide wiring shared by both transports."""

    settings: Settings
    protocol: McpProtocol
    dispatcher: Dispatcher
    sessions: SessionStore
    unary: UnaryTransport


def default_tools() -> ToolRegistry:
    tools = ToolRegistry()
    tools.register(ping_tool)
    tools.register(notes_tool)
    return tools


def build_runtime(
    settings: Settings,
    *,
    tools: ToolRegistry | None = None,
    resources: ResourceRegistry | None = None,
    sessions: SessionStore | None = None,
) -> Runtime:
    """Build registries, dispatcher and the unary transport.

    Registries are populated here and never mutated afterwards.
    """
    if tools is None:
        tools = default_tools()
    if resources is None:
        resources = ResourceRegistry.from_directory(settings.paths.resources_dir)
    if sessions is None:
        sessions = get_session_store()

    proto = McpProtocol(
        tools=tools,
        resources=resources,
        server_name=settings.server.name,
        server_version=settings.server.version,
        protocol_version=settings.server.protocol_version,
    )
    disp = build_dispatcher(proto)
    return Runtime(
        settings=settings,
        protocol=proto,
        dispatcher=disp,
        sessions=sessions,
        unary=UnaryTransport(dispatcher=disp, sessions=sessions),
    )


def build_observability(settings: Settings) -> JsonlSink:
    sink = JsonlSink(settings.paths.logs_dir)
    obs.set_sink(sink)
    return sink
