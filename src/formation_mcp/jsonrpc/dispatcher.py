from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable

from ...observability.obs import api as obs
from .codec import INTERNAL_ERROR, INVALID_REQUEST, METHOD_NOT_FOUND, JsonRpcCodecError, decode_request
from .models import JSONRPC_VERSION, JsonRpcError, JsonRpcRequest, JsonRpcResponse
from .outcome import Ok, Outcome, ProtocolFailure, ToolFailure


# (request, session) -> plain result or an Outcome variant.
Handler = Callable[[JsonRpcRequest, Any], Any]
FailureRenderer = Callable[[ToolFailure], Any]


class JsonRpcAppError(Exception):
    """Intentional protocol-level error raised by a handler."""

    def __init__(self, code: int, message: str, data: Any | None = None) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.data = data


@dataclass
class Dispatcher:
    """JSON-RPC method dispatcher (thin routing layer).

    The routing table is closed: methods are registered once at startup and
    anything else fails with METHOD_NOT_FOUND. Handlers never see the
    transport; the session handle is forwarded to them untouched.
    """

    _handlers: dict[str, Handler] = field(default_factory=dict)
    error_mapper: Callable[[Exception], JsonRpcError] | None = None
    failure_renderer: FailureRenderer | None = None

    def register(self, method: str, handler: Handler) -> None:
        if not isinstance(method, str) or not method:
            raise ValueError("method must be non-empty string")
        if not callable(handler):
            raise TypeError("handler must be callable")
        self._handlers[method] = handler

    def methods(self) -> list[str]:
        return list(self._handlers)

    def dispatch(self, raw: Any, session: Any = None) -> JsonRpcResponse:
        """Decode an already-parsed JSON value and handle it."""
        try:
            req = decode_request(raw)
        except JsonRpcCodecError as e:
            obs.event("rpc.error", {"code": e.code, "message": e.message})
            return JsonRpcResponse(id=None, error=JsonRpcError(e.code, e.message))
        return self.handle(req, session)

    def handle(self, req: JsonRpcRequest, session: Any = None) -> JsonRpcResponse:
        if req.jsonrpc != JSONRPC_VERSION or not req.method:
            return JsonRpcResponse(id=None, error=JsonRpcError(INVALID_REQUEST, "Invalid Request"))

        with obs.span("rpc.dispatch", {"method": req.method}):
            outcome = self.resolve(req, session)
            if isinstance(outcome, ProtocolFailure):
                obs.event("rpc.error", {"method": req.method, "code": outcome.code, "message": outcome.message})
            elif isinstance(outcome, ToolFailure):
                obs.event("tool.failure", {"method": req.method, "message": outcome.message})
            return self.render(req.id, outcome)

    def resolve(self, req: JsonRpcRequest, session: Any = None) -> Outcome:
        handler = self._handlers.get(req.method)
        if handler is None:
            return ProtocolFailure(METHOD_NOT_FOUND, f"Method not found: {req.method}")

        try:
            result = handler(req, session)
        except Exception as e:
            mapper = self.error_mapper or default_error_mapper
            err = mapper(e)
            return ProtocolFailure(err.code, err.message, err.data)

        if isinstance(result, (Ok, ToolFailure, ProtocolFailure)):
            return result
        return Ok(result)

    def render(self, req_id: Any, outcome: Outcome) -> JsonRpcResponse:
        if isinstance(outcome, ProtocolFailure):
            return JsonRpcResponse(id=req_id, error=JsonRpcError(outcome.code, outcome.message, outcome.data))
        if isinstance(outcome, ToolFailure):
            renderer = self.failure_renderer or default_failure_renderer
            return JsonRpcResponse(id=req_id, result=renderer(outcome))
        return JsonRpcResponse(id=req_id, result=outcome.value)


def default_error_mapper(exc: Exception) -> JsonRpcError:
    return JsonRpcError(code=INTERNAL_ERROR, message=str(exc) or "internal error", data={"exc_type": type(exc).__name__})


def default_failure_renderer(failure: ToolFailure) -> dict[str, Any]:
    return {"isError": True, "message": failure.message}
