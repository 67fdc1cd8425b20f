"""Chunk sinks: where extracted chunks go."""

from .base import CallbackSink, ChunkSink, ListSink
from .console import ConsoleSink, JsonlSink

__all__ = ["CallbackSink", "ChunkSink", "ConsoleSink", "JsonlSink", "ListSink"]
