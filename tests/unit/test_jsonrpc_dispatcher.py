from __future__ import annotations

from src.formation_mcp.jsonrpc.codec import INVALID_PARAMS, INVALID_REQUEST, METHOD_NOT_FOUND
from src.formation_mcp.jsonrpc.dispatcher import Dispatcher, JsonRpcAppError
from src.formation_mcp.jsonrpc.models import JsonRpcRequest
from src.formation_mcp.jsonrpc.outcome import Ok, ProtocolFailure, ToolFailure


def test_dispatcher_method_not_found_echoes_id() -> None:
    d = Dispatcher()
    resp = d.handle(JsonRpcRequest(jsonrpc="2.0", method="nope", params=None, id=7))
    assert resp.error is not None
    assert resp.error.code == METHOD_NOT_FOUND
    assert "nope" in resp.error.message
    assert resp.id == 7


def test_dispatcher_routes_and_returns_result() -> None:
    d = Dispatcher()

    def ping(req: JsonRpcRequest, session: object):
        return {"ok": True, "method": req.method, "session": session}

    d.register("ping", ping)
    resp = d.handle(JsonRpcRequest(jsonrpc="2.0", method="ping", params=None, id=1), session="s1")
    assert resp.error is None
    assert resp.result == {"ok": True, "method": "ping", "session": "s1"}


def test_dispatcher_exception_maps_to_internal_error() -> None:
    d = Dispatcher()

    def bad(req: JsonRpcRequest, session: object):
        raise RuntimeError("boom")

    d.register("bad", bad)
    resp = d.handle(JsonRpcRequest(jsonrpc="2.0", method="bad", params=None, id=1))
    assert resp.error is not None
    assert resp.error.code == -32603
    assert resp.id == 1


def test_dispatcher_app_error_uses_custom_code() -> None:
    d = Dispatcher()

    def bad_params(req: JsonRpcRequest, session: object):
        raise JsonRpcAppError(INVALID_PARAMS, "invalid params", {"x": 1})

    d.register("bad_params", bad_params)
    resp = d.handle(JsonRpcRequest(jsonrpc="2.0", method="bad_params", params=None, id=1))
    assert resp.error is not None
    assert resp.error.code == INVALID_PARAMS
    assert resp.error.message == "invalid params"
    assert resp.error.data == {"x": 1}


def test_dispatch_malformed_envelope_nulls_id() -> None:
    d = Dispatcher()
    d.register("ping", lambda req, session: {})
    resp = d.dispatch({"jsonrpc": "1.0", "id": 5, "method": "ping"})
    assert resp.error is not None
    assert resp.error.code == INVALID_REQUEST
    assert resp.id is None


def test_resolve_returns_outcome_variants() -> None:
    d = Dispatcher()
    d.register("plain", lambda req, session: 42)
    d.register("tool_failed", lambda req, session: ToolFailure("nope"))

    assert d.resolve(JsonRpcRequest("2.0", "plain", None, 1)) == Ok(42)
    assert d.resolve(JsonRpcRequest("2.0", "tool_failed", None, 1)) == ToolFailure("nope")
    missing = d.resolve(JsonRpcRequest("2.0", "missing", None, 1))
    assert isinstance(missing, ProtocolFailure) and missing.code == METHOD_NOT_FOUND


def test_tool_failure_is_rendered_as_result_not_error() -> None:
    d = Dispatcher()
    d.failure_renderer = lambda f: {"isError": True, "why": f.message}
    d.register("t", lambda req, session: ToolFailure("broken"))

    resp = d.handle(JsonRpcRequest(jsonrpc="2.0", method="t", params=None, id="abc"))
    assert resp.error is None
    assert resp.result == {"isError": True, "why": "broken"}
    body = resp.to_dict()
    assert "error" not in body and body["id"] == "abc"
