from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping


def _as_path(v: Any, default: Path) -> Path:
    if v is None:
        return default
    if isinstance(v, Path):
        return v
    if isinstance(v, str):
        return Path(v)
    raise TypeError(f"expected path-like value, got {type(v).__name__}")


def _as_int(v: Any, default: int) -> int:
    if v is None:
        return default
    if isinstance(v, bool):
        raise TypeError("expected int, got bool")
    if isinstance(v, int):
        return v
    if isinstance(v, str) and v.strip().isdigit():
        return int(v.strip())
    raise TypeError(f"expected int-like value, got {type(v).__name__}")


def _as_float(v: Any, default: float) -> float:
    if v is None:
        return default
    if isinstance(v, bool):
        raise TypeError("expected number, got bool")
    if isinstance(v, (int, float)):
        return float(v)
    if isinstance(v, str):
        try:
            return float(v.strip())
        except ValueError as e:
            raise TypeError(f"expected number-like value, got {v!r}") from e
    raise TypeError(f"expected number-like value, got {type(v).__name__}")


def _as_str(v: Any, default: str, key: str) -> str:
    if v is None:
        return default
    if not isinstance(v, str):
        raise TypeError(f"{key} must be str, got {type(v).__name__}")
    return v


@dataclass
class PathsSettings:
    resources_dir: Path = Path("resources")
    logs_dir: Path = Path("logs")

    @classmethod
    def from_dict(cls, d: Mapping[str, Any] | None) -> "PathsSettings":
        d = d or {}
        return cls(
            resources_dir=_as_path(d.get("resources_dir"), cls.resources_dir),
            logs_dir=_as_path(d.get("logs_dir"), cls.logs_dir),
        )


@dataclass
class ServerSettings:
    host: str = "127.0.0.1"
    port: int = 3000
    name: str = "lovie-formation"
    version: str = "1.0.0"
    protocol_version: str = "2024-11-05"

    @classmethod
    def from_dict(cls, d: Mapping[str, Any] | None) -> "ServerSettings":
        d = d or {}
        return cls(
            host=_as_str(d.get("host"), cls.host, "host"),
            port=_as_int(d.get("port"), cls.port),
            name=_as_str(d.get("name"), cls.name, "name"),
            version=_as_str(d.get("version"), cls.version, "version"),
            protocol_version=_as_str(d.get("protocol_version"), cls.protocol_version, "protocol_version"),
        )


@dataclass
class StreamSettings:
    # Reference deployment: platform ceiling 60s, close 5s early, ping every 15s.
    ping_interval_s: float = 15.0
    max_duration_s: float = 60.0
    safety_margin_s: float = 5.0
    stream_path: str = "/api/sse"
    messages_path: str = "/api/messages"

    def __post_init__(self) -> None:
        if self.ping_interval_s <= 0:
            raise ValueError("stream.ping_interval_s must be > 0")
        if self.safety_margin_s < 0:
            raise ValueError("stream.safety_margin_s must be >= 0")
        if self.safety_margin_s >= self.max_duration_s:
            raise ValueError("stream.safety_margin_s must be < stream.max_duration_s")

    @property
    def close_after_s(self) -> float:
        return self.max_duration_s - self.safety_margin_s

    @classmethod
    def from_dict(cls, d: Mapping[str, Any] | None) -> "StreamSettings":
        d = d or {}
        return cls(
            ping_interval_s=_as_float(d.get("ping_interval_s"), cls.ping_interval_s),
            max_duration_s=_as_float(d.get("max_duration_s"), cls.max_duration_s),
            safety_margin_s=_as_float(d.get("safety_margin_s"), cls.safety_margin_s),
            stream_path=_as_str(d.get("stream_path"), cls.stream_path, "stream_path"),
            messages_path=_as_str(d.get("messages_path"), cls.messages_path, "messages_path"),
        )


@dataclass
class Settings:
    paths: PathsSettings = field(default_factory=PathsSettings)
    server: ServerSettings = field(default_factory=ServerSettings)
    stream: StreamSettings = field(default_factory=StreamSettings)

    # Keep the raw mapping for debugging; must be JSON-serializable.
    raw: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any] | None) -> "Settings":
        raw = dict(raw or {})
        for key in ("paths", "server", "stream"):
            v = raw.get(key)
            if v is not None and not isinstance(v, Mapping):
                raise TypeError(f"{key} must be mapping, got {type(v).__name__}")
        return cls(
            paths=PathsSettings.from_dict(raw.get("paths")),
            server=ServerSettings.from_dict(raw.get("server")),
            stream=StreamSettings.from_dict(raw.get("stream")),
            raw=raw,
        )
