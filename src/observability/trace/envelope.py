from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Iterable


JsonDict = dict[str, Any]

TRACE_SCHEMA_VERSION = "trace.v1"

# Stable, finite event kinds for log consumers.
ALLOWED_EVENT_KINDS: set[str] = {
    "rpc.error",
    "tool.failure",
    "stream.open",
    "stream.close",
    "stream.keepalive_failed",
    "error",
    "warn.span_leak",
}


def _normalize_event_kind(kind: str, *, strict: bool) -> str:
    k = (kind or "").strip()
    if k in ALLOWED_EVENT_KINDS:
        return k
    if strict:
        raise ValueError(f"invalid event.kind: {kind!r}")
    return k


def new_event(
    kind: str,
    attrs: JsonDict | None = None,
    *,
    ts: float | None = None,
    strict: bool = False,
) -> "EventRecord":
    k = _normalize_event_kind(kind, strict=strict)
    return EventRecord(ts=0.0 if ts is None else ts, kind=k, attrs=dict(attrs or {}))


def new_span(
    *,
    span_id: str,
    name: str,
    parent_span_id: str | None,
    start_ts: float,
    attrs: JsonDict | None = None,
) -> "SpanRecord":
    return SpanRecord(
        span_id=span_id,
        name=name,
        parent_span_id=parent_span_id,
        start_ts=start_ts,
        attrs=dict(attrs or {}),
    )


@dataclass(frozen=True)
class EventRecord:
    ts: float
    kind: str
    attrs: JsonDict = field(default_factory=dict)

    def to_dict(self) -> JsonDict:
        return {"ts": self.ts, "kind": self.kind, "attrs": self.attrs}


@dataclass
class SpanRecord:
    span_id: str
    name: str
    parent_span_id: str | None
    start_ts: float
    end_ts: float | None = None
    status: str = "ok"  # ok|error
    attrs: JsonDict = field(default_factory=dict)
    events: list[EventRecord] = field(default_factory=list)

    def to_dict(self) -> JsonDict:
        return {
            "span_id": self.span_id,
            "name": self.name,
            "parent_span_id": self.parent_span_id,
            "start_ts": self.start_ts,
            "end_ts": self.end_ts,
            "status": self.status,
            "attrs": self.attrs,
            "events": [e.to_dict() for e in self.events],
        }


@dataclass
class TraceEnvelope:
    trace_id: str
    start_ts: float
    end_ts: float
    trace_type: str = "unknown"  # rpc|stream|unknown
    status: str = "ok"  # ok|error
    spans: list[SpanRecord] = field(default_factory=list)
    events: list[EventRecord] = field(default_factory=list)  # trace-level events
    aggregates: JsonDict = field(default_factory=dict)
    schema_version: str = TRACE_SCHEMA_VERSION

    def to_dict(self) -> JsonDict:
        return {
            "schema_version": self.schema_version,
            "trace_id": self.trace_id,
            "trace_type": self.trace_type,
            "status": self.status,
            "start_ts": self.start_ts,
            "end_ts": self.end_ts,
            "spans": [s.to_dict() for s in self.spans],
            "events": [e.to_dict() for e in self.events],
            "aggregates": self.aggregates,
        }

    def validate(self, *, strict: bool = True) -> None:
        if not self.trace_id:
            raise ValueError("trace_id missing")
        if strict:
            for kind in self.iter_event_kinds():
                _normalize_event_kind(kind, strict=True)

    def iter_event_kinds(self) -> Iterable[str]:
        for s in self.spans:
            for ev in s.events:
                yield ev.kind
        for ev in self.events:
            yield ev.kind


def compute_aggregates(envelope: TraceEnvelope) -> JsonDict:
    """Per-trace summary: duration, span count and event counts by kind."""
    return {
        "duration_ms": round((envelope.end_ts - envelope.start_ts) * 1000.0, 3),
        "span_count": len(envelope.spans),
        "event_counts": dict(Counter(envelope.iter_event_kinds())),
    }
