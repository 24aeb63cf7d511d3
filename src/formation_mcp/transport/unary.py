from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ...observability.trace.context import TraceContext
from ..jsonrpc.codec import INVALID_REQUEST, JsonRpcCodecError, parse_body
from ..jsonrpc.dispatcher import Dispatcher
from ..jsonrpc.models import JsonDict, JsonRpcError, JsonRpcResponse
from ..mcp.session import LazySession, SessionStore


@dataclass(frozen=True)
class UnaryReply:
    status: int
    payload: JsonDict
    session_id: str | None = None


@dataclass
class UnaryTransport:
    """One JSON-RPC request per call, answered with exactly one envelope.

    Holds no connection state. The session is looked up lazily, so only calls
    that reach a tool add an entry to the store.
    """

    dispatcher: Dispatcher
    sessions: SessionStore

    def handle_body(self, body: bytes | str, session_id: str | None = None) -> UnaryReply:
        try:
            raw = parse_body(body)
        except JsonRpcCodecError as e:
            return self._malformed(e.message)
        return self.handle_json(raw, session_id)

    def handle_json(self, raw: Any, session_id: str | None = None) -> UnaryReply:
        session = LazySession(self.sessions, session_id)
        ctx = TraceContext.new(trace_type="rpc")
        with TraceContext.activate(ctx):
            resp = self.dispatcher.dispatch(raw, session)
        ctx.finish()

        status = 400 if resp.error is not None and resp.error.code == INVALID_REQUEST else 200
        return UnaryReply(status=status, payload=resp.to_dict(), session_id=session.session_id)

    def _malformed(self, message: str) -> UnaryReply:
        resp = JsonRpcResponse(id=None, error=JsonRpcError(INVALID_REQUEST, message))
        return UnaryReply(status=400, payload=resp.to_dict())
