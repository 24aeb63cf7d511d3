from .protocol import PROTOCOL_VERSION, McpProtocol, build_dispatcher
from .session import LazySession, McpSession, SessionStore, get_session_store

__all__ = [
    "PROTOCOL_VERSION",
    "LazySession",
    "McpProtocol",
    "McpSession",
    "SessionStore",
    "build_dispatcher",
    "get_session_store",
]
