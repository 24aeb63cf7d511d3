from __future__ import annotations

import json
import threading
from dataclasses import asdict, is_dataclass
from pathlib import Path
from typing import Any

from ..trace.envelope import TraceEnvelope


def _to_jsonable(obj: Any) -> Any:
    if is_dataclass(obj) and not isinstance(obj, type):
        return asdict(obj)
    if isinstance(obj, Path):
        return str(obj)
    return repr(obj)


class JsonlSink:
    """
    Append-only JSONL sink for trace envelopes.

    If path_or_dir is a directory, a default file name is used.
    """

    def __init__(self, path_or_dir: str | Path) -> None:
        p = Path(path_or_dir)
        if p.suffix == ".jsonl":
            self.path = p
        else:
            # Treat non-existing path without suffix as directory.
            self.path = p / "traces.jsonl"
        self.path.parent.mkdir(parents=True, exist_ok=True)
        # Unary calls finish traces from worker threads.
        self._lock = threading.Lock()

    def write(self, envelope: TraceEnvelope) -> None:
        record = envelope.to_dict()
        line = json.dumps(record, ensure_ascii=True, default=_to_jsonable)
        with self._lock, self.path.open("a", encoding="utf-8") as f:
            f.write(line + "\n")

    def on_trace_end(self, envelope: TraceEnvelope) -> None:
        self.write(envelope)
