from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union


@dataclass(frozen=True)
class Ok:
    value: Any


@dataclass(frozen=True)
class ToolFailure:
    """A tool ran and reported failure. Rendered as a successful envelope."""

    message: str


@dataclass(frozen=True)
class ProtocolFailure:
    """The RPC itself failed. The only variant that becomes `error`."""

    code: int
    message: str
    data: Any | None = None


Outcome = Union[Ok, ToolFailure, ProtocolFailure]
