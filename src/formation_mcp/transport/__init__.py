from .stream import STREAM_HEADERS, ChannelClosedError, EventChannel, StreamConnection, StreamSession, StreamState
from .unary import UnaryReply, UnaryTransport

__all__ = [
    "STREAM_HEADERS",
    "ChannelClosedError",
    "EventChannel",
    "StreamConnection",
    "StreamSession",
    "StreamState",
    "UnaryReply",
    "UnaryTransport",
]
