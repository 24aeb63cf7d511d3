from __future__ import annotations

import asyncio
import logging
import secrets
import string
import time
from dataclasses import dataclass
from enum import Enum
from typing import AsyncIterator, Callable

from ...core.config.models import StreamSettings
from ...observability.trace.context import TraceContext
from ..jsonrpc.dispatcher import Dispatcher
from ..jsonrpc.models import JSONRPC_VERSION, JsonRpcRequest
from .sse import format_comment, format_event


logger = logging.getLogger(__name__)

STREAM_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}

HANDSHAKE_REQUEST_ID = 0

_ID_ALPHABET = string.ascii_lowercase + string.digits


class StreamState(str, Enum):
    OPENING = "opening"
    HANDSHAKE_SENT = "handshake_sent"
    ALIVE = "alive"
    CLOSING = "closing"
    CLOSED = "closed"


class ChannelClosedError(RuntimeError):
    pass


@dataclass(frozen=True)
class StreamConnection:
    connection_id: str
    opened_at: float

    @classmethod
    def new(cls, now: float) -> "StreamConnection":
        suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))
        return cls(connection_id=f"conn_{int(now * 1000)}_{suffix}", opened_at=now)


class EventChannel:
    """In-memory queue of framed events between timers and the response body."""

    def __init__(self) -> None:
        self._queue: asyncio.Queue[str | None] = asyncio.Queue()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def send(self, frame: str) -> None:
        if self._closed:
            raise ChannelClosedError("event channel is closed")
        self._queue.put_nowait(frame)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._queue.put_nowait(None)

    async def frames(self) -> AsyncIterator[str]:
        while True:
            frame = await self._queue.get()
            if frame is None:
                return
            yield frame


class StreamSession:
    """One push-only event stream.

    Lifecycle: OPENING -> HANDSHAKE_SENT -> ALIVE -> CLOSING -> CLOSED.

    Two timers run against the connection: the keep-alive loop and the
    lifetime deadline. Whichever terminal path fires first (deadline, peer
    disconnect, failed keep-alive write) flips `_terminal` and tears down;
    every later attempt is a no-op. Inbound JSON-RPC is not read from the
    stream; requests go through the unary transport.
    """

    def __init__(
        self,
        dispatcher: Dispatcher,
        settings: StreamSettings,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.dispatcher = dispatcher
        self.settings = settings
        self._clock = clock
        self.connection = StreamConnection.new(clock())
        self.channel = EventChannel()
        self.state = StreamState.OPENING
        self.close_reason: str | None = None
        self.timer_cancellations = 0
        self._terminal = False
        self._keepalive_task: asyncio.Task[None] | None = None
        self._deadline_task: asyncio.Task[None] | None = None
        self._trace = TraceContext.new(trace_type="stream")
        self._trace_delivery: asyncio.Future[object] | None = None

    @property
    def timers(self) -> tuple[asyncio.Task[None], ...]:
        return tuple(t for t in (self._keepalive_task, self._deadline_task) if t is not None)

    def open(self) -> None:
        """Push the handshake and arm both timers. Needs a running event loop."""
        if self.state is not StreamState.OPENING:
            raise RuntimeError(f"stream already opened (state={self.state.value})")

        endpoint = {
            "jsonrpc": JSONRPC_VERSION,
            "method": "endpoint",
            "params": {"uri": self.settings.messages_path},
        }
        self.channel.send(format_event("endpoint", endpoint))

        init = self.dispatcher.handle(
            JsonRpcRequest(jsonrpc=JSONRPC_VERSION, method="initialize", params=None, id=HANDSHAKE_REQUEST_ID)
        )
        self.channel.send(format_event("message", init.to_dict()))
        self.state = StreamState.HANDSHAKE_SENT

        self._keepalive_task = asyncio.create_task(self._keepalive())
        self._deadline_task = asyncio.create_task(self._deadline())
        self.state = StreamState.ALIVE

        self._trace.add_event("stream.open", {"connection_id": self.connection.connection_id})
        logger.info("stream %s opened", self.connection.connection_id)

    async def events(self) -> AsyncIterator[str]:
        """Framed events for the response body; ends when the stream closes."""
        self.open()
        try:
            async for frame in self.channel.frames():
                yield frame
        finally:
            # Body iteration stopped early: the peer went away.
            self.close("disconnect")
            if self._trace_delivery is not None:
                await asyncio.shield(self._trace_delivery)

    def close(self, reason: str) -> bool:
        """Tear the stream down once. Returns False if already torn down."""
        if self._terminal:
            return False
        self._terminal = True
        self.state = StreamState.CLOSING
        self.close_reason = reason
        self._cancel_timers()

        if reason == "timeout":
            try:
                self.channel.send(format_event("close", {"reason": "timeout"}))
            except ChannelClosedError:
                pass
        self.channel.close()
        self.state = StreamState.CLOSED

        lifetime = self._clock() - self.connection.opened_at
        self._trace.add_event(
            "stream.close",
            {"connection_id": self.connection.connection_id, "reason": reason, "lifetime_s": lifetime},
        )
        self._trace_delivery = self._deliver_trace()
        logger.info("stream %s closed (%s)", self.connection.connection_id, reason)
        return True

    def _deliver_trace(self) -> asyncio.Future[object] | None:
        # Sinks do blocking file IO; keep it off the event loop when one runs.
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._trace.finish()
            return None
        return loop.run_in_executor(None, self._trace.finish)

    def _cancel_timers(self) -> None:
        try:
            current = asyncio.current_task()
        except RuntimeError:
            current = None
        for task in self.timers:
            # A timer tearing the stream down finishes on its own.
            if task is not current and not task.done():
                task.cancel()
        self.timer_cancellations += 1

    async def _keepalive(self) -> None:
        while True:
            await asyncio.sleep(self.settings.ping_interval_s)
            if self._terminal:
                return
            try:
                self.channel.send(format_comment(f"ping {int(self._clock() * 1000)}"))
            except ChannelClosedError:
                self._trace.add_event("stream.keepalive_failed", {"connection_id": self.connection.connection_id})
                self.close("channel_closed")
                return

    async def _deadline(self) -> None:
        await asyncio.sleep(self.settings.close_after_s)
        if self._terminal:
            return
        self.close("timeout")
