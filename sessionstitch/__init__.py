"""Reassemble Claude Code sessions that were split across several JSONL files."""

__version__ = "0.1.0"
