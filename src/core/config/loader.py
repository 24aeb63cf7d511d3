from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from .models import Settings


def _resolve_path(root: Path, p: Path) -> Path:
    return p if p.is_absolute() else (root / p).resolve()


def _load_yaml_mapping(p: Path) -> dict[str, Any]:
    with p.open("r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}
    if not isinstance(raw, dict):
        raise TypeError("settings root must be a mapping")
    return raw


def load_settings(path: str | Path) -> Settings:
    """
    Load `config/settings.yaml` and normalize paths relative to the repo root
    (the parent of the `config/` directory).
    """
    p = Path(path).expanduser().resolve()
    root = p.parent.parent  # .../config/settings.yaml -> repo root

    raw = _load_yaml_mapping(p)
    s = Settings.from_dict(raw)

    s.paths.resources_dir = _resolve_path(root, s.paths.resources_dir)
    s.paths.logs_dir = _resolve_path(root, s.paths.logs_dir)
    return s
