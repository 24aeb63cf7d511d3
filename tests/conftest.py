from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest

from src.core.config.models import PathsSettings, Settings, StreamSettings
from src.formation_mcp.errors import ToolError
from src.formation_mcp.mcp.resources.registry import ResourceRegistry, ResourceSpec
from src.formation_mcp.mcp.session import SessionStore
from src.formation_mcp.mcp.tools.base import FunctionTool, ToolSpec
from src.formation_mcp.runtime import Runtime, build_runtime, default_tools
from src.observability.obs import api as obs


@pytest.fixture
def mock_clock(monkeypatch: pytest.MonkeyPatch) -> float:
    """
    Freeze time.time() to a deterministic value.
    """
    import time

    fixed = 1_700_000_000.0
    monkeypatch.setattr(time, "time", lambda: fixed)
    return fixed


@pytest.fixture(autouse=True)
def _no_obs_sink() -> Iterator[None]:
    """Keep the process-wide trace sink unset between tests."""
    obs.set_sink(None)
    yield
    obs.set_sink(None)


def _explode(session, args):
    raise ToolError("formation backend unavailable")


EXPLODING_TOOL = FunctionTool(
    spec=ToolSpec(
        name="test.explode",
        description="Always fails.",
        input_schema={"type": "object", "properties": {}},
    ),
    fn=_explode,
)


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        paths=PathsSettings(resources_dir=tmp_path / "resources", logs_dir=tmp_path / "logs"),
        stream=StreamSettings(ping_interval_s=0.02, max_duration_s=0.2, safety_margin_s=0.05),
    )


@pytest.fixture
def resources() -> ResourceRegistry:
    reg = ResourceRegistry()
    reg.register(ResourceSpec(uri="docs://guide", name="guide", description="Guide"), "# Guide\n\nHello.\n")
    return reg


@pytest.fixture
def runtime(settings: Settings, resources: ResourceRegistry) -> Runtime:
    tools = default_tools()
    tools.register(EXPLODING_TOOL)
    return build_runtime(settings, tools=tools, resources=resources, sessions=SessionStore())


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """
    Default behavior: only run unit tests.

    If the user explicitly provides `-m ...`, we respect it and do not apply
    any extra deselection logic.
    """
    if config.option.markexpr:
        return

    deselect: list[pytest.Item] = []
    keep: list[pytest.Item] = []

    for item in items:
        if item.get_closest_marker("integration"):
            deselect.append(item)
        else:
            keep.append(item)

    if deselect:
        config.hook.pytest_deselected(items=deselect)
        items[:] = keep
