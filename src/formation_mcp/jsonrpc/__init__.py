from .codec import (
    INVALID_REQUEST,
    METHOD_NOT_FOUND,
    INVALID_PARAMS,
    INTERNAL_ERROR,
    JsonRpcCodecError,
    decode_request,
    encode_error,
    encode_response,
    parse_body,
)
from .models import JsonRpcError, JsonRpcRequest, JsonRpcResponse
from .outcome import Ok, Outcome, ProtocolFailure, ToolFailure
from .dispatcher import Dispatcher, JsonRpcAppError, default_error_mapper

__all__ = [
    "JsonRpcRequest",
    "JsonRpcResponse",
    "JsonRpcError",
    "Dispatcher",
    "JsonRpcAppError",
    "default_error_mapper",
    "Ok",
    "Outcome",
    "ToolFailure",
    "ProtocolFailure",
    "JsonRpcCodecError",
    "decode_request",
    "parse_body",
    "encode_response",
    "encode_error",
    "INVALID_REQUEST",
    "METHOD_NOT_FOUND",
    "INVALID_PARAMS",
    "INTERNAL_ERROR",
]
