from .base import FunctionTool, Tool, ToolSpec
from .registry import ToolRegistry

__all__ = ["FunctionTool", "Tool", "ToolSpec", "ToolRegistry"]
