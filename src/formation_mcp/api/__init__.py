from .app import SESSION_HEADER, create_app
from .diagnostics import collect_diagnostics

__all__ = ["SESSION_HEADER", "create_app", "collect_diagnostics"]
