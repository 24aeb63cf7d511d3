"""JSON-RPC / MCP dispatcher served over an event stream and unary HTTP calls."""

__version__ = "1.0.0"
