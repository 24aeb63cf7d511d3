"""Observation sinks."""

from .jsonl import JsonlSink

__all__ = ["JsonlSink"]
