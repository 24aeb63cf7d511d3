from __future__ import annotations

import asyncio
import json
import re
import threading

from src.core.config.models import Settings
from src.formation_mcp.transport.sse import format_comment, format_event
from src.formation_mcp.transport.stream import ChannelClosedError, EventChannel, StreamSession, StreamState
from src.formation_mcp.runtime import Runtime
from src.observability.obs import api as obs


CLOSE_FRAME = 'event: close\ndata: {"reason":"timeout"}\n\n'


def _parse(frame: str) -> tuple[str, dict]:
    lines = frame.rstrip("\n").split("\n")
    assert lines[0].startswith("event: ")
    assert lines[1].startswith("data: ")
    return lines[0][len("event: ") :], json.loads(lines[1][len("data: ") :])


def _run_to_completion(session: StreamSession, timeout: float = 2.0) -> list[str]:
    async def run() -> list[str]:
        frames: list[str] = []

        async def consume() -> None:
            async for frame in session.events():
                frames.append(frame)

        await asyncio.wait_for(consume(), timeout=timeout)
        return frames

    return asyncio.run(run())


class _RecordingSink:
    def __init__(self) -> None:
        self.envelopes: list = []

    def on_trace_end(self, envelope) -> None:
        self.envelopes.append(envelope)


def test_sse_framing() -> None:
    assert format_event("close", {"reason": "timeout"}) == CLOSE_FRAME
    assert format_event("x", "raw") == "event: x\ndata: raw\n\n"
    assert format_comment("ping 1") == ": ping 1\n\n"


def test_handshake_is_pushed_first_in_order(runtime: Runtime) -> None:
    session = StreamSession(runtime.dispatcher, runtime.settings.stream)
    frames = _run_to_completion(session)

    event, data = _parse(frames[0])
    assert event == "endpoint"
    assert data == {"jsonrpc": "2.0", "method": "endpoint", "params": {"uri": "/api/messages"}}

    event, data = _parse(frames[1])
    assert event == "message"
    assert data["id"] == 0
    assert data["result"]["serverInfo"]["name"] == runtime.settings.server.name
    assert data["result"]["protocolVersion"] == "2024-11-05"


def test_timeout_emits_single_close_and_nothing_after(runtime: Runtime) -> None:
    session = StreamSession(runtime.dispatcher, runtime.settings.stream)
    frames = _run_to_completion(session)

    assert frames.count(CLOSE_FRAME) == 1
    assert frames[-1] == CLOSE_FRAME
    middle = frames[2:-1]
    assert middle, "expected at least one keep-alive before the deadline"
    assert all(re.fullmatch(r": ping \d+\n\n", f) for f in middle)

    assert session.state is StreamState.CLOSED
    assert session.close_reason == "timeout"
    assert session.timer_cancellations == 1


def test_disconnect_cancels_both_timers_once(runtime: Runtime) -> None:
    session = StreamSession(runtime.dispatcher, runtime.settings.stream)

    async def run() -> None:
        gen = session.events()
        await gen.__anext__()
        await gen.__anext__()
        assert session.state is StreamState.ALIVE
        await gen.aclose()
        await asyncio.gather(*session.timers, return_exceptions=True)

    asyncio.run(run())

    assert session.close_reason == "disconnect"
    assert session.state is StreamState.CLOSED
    assert len(session.timers) == 2
    assert all(t.cancelled() for t in session.timers)
    assert session.timer_cancellations == 1
    # A late deadline after teardown is a no-op.
    assert session.close("timeout") is False
    assert session.timer_cancellations == 1


def test_failed_keepalive_write_tears_down_quietly(runtime: Runtime) -> None:
    session = StreamSession(runtime.dispatcher, runtime.settings.stream)

    async def run() -> None:
        session.open()
        session.channel.close()
        await asyncio.sleep(runtime.settings.stream.ping_interval_s * 4)

    asyncio.run(run())

    assert session.close_reason == "channel_closed"
    assert session.state is StreamState.CLOSED
    assert session.timer_cancellations == 1


def test_channel_rejects_writes_after_close() -> None:
    async def run() -> list[str]:
        ch = EventChannel()
        ch.send("a")
        ch.close()
        ch.close()
        try:
            ch.send("b")
        except ChannelClosedError:
            pass
        else:
            raise AssertionError("send after close must fail")
        return [f async for f in ch.frames()]

    assert asyncio.run(run()) == ["a"]


def test_open_twice_is_rejected(runtime: Runtime) -> None:
    session = StreamSession(runtime.dispatcher, runtime.settings.stream)

    async def run() -> None:
        session.open()
        try:
            session.open()
        except RuntimeError:
            pass
        else:
            raise AssertionError("second open must fail")
        session.close("disconnect")

    asyncio.run(run())


def test_connection_record_and_trace(runtime: Runtime, settings: Settings) -> None:
    sink = _RecordingSink()
    obs.set_sink(sink)
    session = StreamSession(runtime.dispatcher, settings.stream, clock=lambda: 1_700_000_000.0)
    assert re.fullmatch(r"conn_1700000000000_[a-z0-9]{9}", session.connection.connection_id)
    assert session.connection.opened_at == 1_700_000_000.0

    _run_to_completion(session)

    assert len(sink.envelopes) == 1
    env = sink.envelopes[0]
    assert env.trace_type == "stream"
    kinds = list(env.iter_event_kinds())
    assert kinds == ["stream.open", "stream.close"]
    assert env.events[-1].attrs["reason"] == "timeout"


class _ThreadRecordingSink:
    def __init__(self) -> None:
        self.threads: list[int] = []

    def on_trace_end(self, envelope) -> None:
        self.threads.append(threading.get_ident())


def test_trace_is_written_off_the_event_loop_before_the_body_ends(runtime: Runtime) -> None:
    sink = _ThreadRecordingSink()
    obs.set_sink(sink)
    session = StreamSession(runtime.dispatcher, runtime.settings.stream)

    async def run() -> int:
        async for _ in session.events():
            pass
        # Written by the time the body iterator is exhausted.
        assert len(sink.threads) == 1
        return threading.get_ident()

    loop_thread = asyncio.run(run())
    assert sink.threads[0] != loop_thread


def test_close_without_a_loop_writes_trace_inline(runtime: Runtime) -> None:
    sink = _RecordingSink()
    obs.set_sink(sink)
    session = StreamSession(runtime.dispatcher, runtime.settings.stream)
    assert session.close("disconnect") is True
    assert len(sink.envelopes) == 1
