from __future__ import annotations

from pathlib import Path

import pytest

from src.core.config.loader import load_settings
from src.core.config.models import Settings, StreamSettings


def _write(repo: Path, text: str) -> Path:
    (repo / "config").mkdir(parents=True, exist_ok=True)
    p = repo / "config" / "settings.yaml"
    p.write_text(text.strip() + "\n", encoding="utf-8")
    return p


def test_load_settings_resolves_paths(tmp_path: Path) -> None:
    p = _write(
        tmp_path,
        """
paths:
  resources_dir: content/docs
  logs_dir: logs
""",
    )
    s = load_settings(p)
    assert s.paths.resources_dir.is_absolute()
    assert s.paths.logs_dir.is_absolute()
    assert s.paths.resources_dir == (tmp_path / "content" / "docs").resolve()
    assert s.paths.logs_dir == (tmp_path / "logs").resolve()


def test_defaults_match_reference_deployment(tmp_path: Path) -> None:
    s = load_settings(_write(tmp_path, "server: {}"))
    assert s.stream.ping_interval_s == 15.0
    assert s.stream.max_duration_s == 60.0
    assert s.stream.close_after_s == 55.0
    assert s.stream.messages_path == "/api/messages"
    assert s.server.protocol_version == "2024-11-05"


def test_stream_and_server_sections_are_coerced(tmp_path: Path) -> None:
    p = _write(
        tmp_path,
        """
server:
  port: "8080"
  name: formation
stream:
  ping_interval_s: 1
  max_duration_s: "10"
  safety_margin_s: 2.5
""",
    )
    s = load_settings(p)
    assert s.server.port == 8080
    assert s.server.name == "formation"
    assert s.stream.close_after_s == 7.5


def test_invalid_sections_raise(tmp_path: Path) -> None:
    with pytest.raises(TypeError):
        load_settings(_write(tmp_path, "server: 3"))
    with pytest.raises(TypeError):
        Settings.from_dict({"server": {"port": True}})
    with pytest.raises(TypeError):
        load_settings(_write(tmp_path, "- a\n- b"))


def test_stream_margin_must_fit_inside_ceiling() -> None:
    with pytest.raises(ValueError):
        StreamSettings(max_duration_s=5, safety_margin_s=5)
    with pytest.raises(ValueError):
        StreamSettings(ping_interval_s=0)


def test_repo_settings_file_loads() -> None:
    repo_settings = Path(__file__).resolve().parents[2] / "config" / "settings.yaml"
    s = load_settings(repo_settings)
    assert s.server.name == "lovie-formation"
    assert s.stream.stream_path == "/api/sse"
