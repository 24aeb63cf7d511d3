from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from ..runtime import Runtime


def collect_diagnostics(runtime: Runtime) -> dict[str, Any]:
    """Deployment sanity report. Probe failures become fields, never errors."""
    resources_dir = Path(runtime.settings.paths.resources_dir)
    out: dict[str, Any] = {
        "cwd": os.getcwd(),
        "package_dir": str(Path(__file__).resolve().parents[1]),
        "resources_dir": str(resources_dir),
        "resources_dir_exists": resources_dir.is_dir(),
    }

    try:
        if resources_dir.is_dir():
            out["resources_dir_contents"] = sorted(p.name for p in resources_dir.iterdir())
    except OSError as e:
        out["resources_dir_error"] = str(e)

    try:
        tools = runtime.protocol.tools.list_tools()
        out["tools_count"] = len(tools)
        out["tool_names"] = [t["name"] for t in tools[:5]]
    except Exception as e:
        out["tools_error"] = f"{type(e).__name__}: {e}"

    out["resources_count"] = len(runtime.protocol.resources)
    return out
