from __future__ import annotations

from .jsonrpc.codec import INTERNAL_ERROR
from .jsonrpc.dispatcher import JsonRpcAppError
from .jsonrpc.models import JsonRpcError


class ToolError(Exception):
    """Raised by tools (or the tool registry) to report a business failure.

    Never surfaces as a JSON-RPC `error`; tools/call turns it into an
    `isError` result.
    """


def map_exception_to_jsonrpc(exc: Exception) -> JsonRpcError:
    """Map internal exceptions to a JSON-RPC error object.

    - JsonRpcAppError (raised intentionally by handlers) keeps code/message/data.
    - Everything else is an internal error carrying the exception message;
      the wording is diagnostic only, clients should match on the code.
    """
    if isinstance(exc, JsonRpcAppError):
        return JsonRpcError(code=exc.code, message=exc.message, data=exc.data)

    return JsonRpcError(
        code=INTERNAL_ERROR,
        message=str(exc) or "internal error",
        data={"exc_type": type(exc).__name__},
    )
