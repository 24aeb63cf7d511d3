from __future__ import annotations

from src.formation_mcp.errors import ToolError, map_exception_to_jsonrpc
from src.formation_mcp.jsonrpc.codec import INTERNAL_ERROR, INVALID_PARAMS
from src.formation_mcp.jsonrpc.dispatcher import JsonRpcAppError


def test_app_error_keeps_code_message_and_data() -> None:
    err = map_exception_to_jsonrpc(JsonRpcAppError(INVALID_PARAMS, "bad", {"x": 1}))
    assert err.code == INVALID_PARAMS and err.message == "bad" and err.data == {"x": 1}


def test_everything_else_is_internal_error_with_message() -> None:
    for exc in (RuntimeError("boom"), KeyError("k"), ValueError("v"), ToolError("t")):
        err = map_exception_to_jsonrpc(exc)
        assert err.code == INTERNAL_ERROR
        assert err.data == {"exc_type": type(exc).__name__}

    assert map_exception_to_jsonrpc(RuntimeError("boom")).message == "boom"
    assert map_exception_to_jsonrpc(RuntimeError()).message == "internal error"
