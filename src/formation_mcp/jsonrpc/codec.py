from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

from .models import JSONRPC_VERSION, JsonRpcError, JsonRpcRequest, JsonRpcResponse


# JSON-RPC 2.0 standard error codes.
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603


class JsonRpcCodecError(ValueError):
    """Raised when an inbound envelope cannot be turned into a request.

    Malformed envelopes never echo the caller's id, so there is no `req_id`.
    """

    def __init__(self, code: int, message: str, *, data: Any | None = None) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.data = data


def _reject_constant(token: str) -> Any:
    # NaN/Infinity are not JSON and cannot be rendered back into a reply.
    raise ValueError(f"non-standard JSON token: {token}")


def parse_body(body: bytes | str) -> Any:
    """Decode a raw HTTP body into a JSON value.

    Unparseable bodies are reported as INVALID_REQUEST (not PARSE_ERROR) so the
    caller always takes the same malformed-request path. That includes bodies
    nested too deeply for the decoder.
    """
    try:
        if isinstance(body, bytes):
            body = body.decode("utf-8")
        return json.loads(body, parse_constant=_reject_constant)
    except (UnicodeDecodeError, ValueError, RecursionError) as e:
        raise JsonRpcCodecError(INVALID_REQUEST, "Invalid Request", data=type(e).__name__) from e


def decode_request(raw: Any) -> JsonRpcRequest:
    """Validate an already-decoded JSON value as a JSON-RPC request."""
    if not isinstance(raw, Mapping):
        raise JsonRpcCodecError(INVALID_REQUEST, "Invalid Request")

    if raw.get("jsonrpc") != JSONRPC_VERSION:
        raise JsonRpcCodecError(INVALID_REQUEST, "Invalid Request")

    method = raw.get("method")
    if not isinstance(method, str) or not method:
        raise JsonRpcCodecError(INVALID_REQUEST, "Invalid Request")

    req_id = raw.get("id")
    if isinstance(req_id, bool) or not isinstance(req_id, (str, int, float, type(None))):
        raise JsonRpcCodecError(INVALID_REQUEST, "Invalid Request")

    params = raw.get("params") if "params" in raw else None
    return JsonRpcRequest(jsonrpc=JSONRPC_VERSION, method=method, params=params, id=req_id)


def encode_response(resp: JsonRpcResponse) -> str:
    return json.dumps(resp.to_dict(), ensure_ascii=False, separators=(",", ":"))


def encode_error(req_id: Any | None, code: int, message: str, data: Any | None = None) -> str:
    resp = JsonRpcResponse(id=req_id, error=JsonRpcError(code=code, message=message, data=data))
    return encode_response(resp)
