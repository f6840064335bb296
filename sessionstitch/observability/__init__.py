"""Observability helpers."""

from sessionstitch.observability.otel import (
    initialize,
    shutdown,
    start_span,
    record_merge,
    record_parser_failure,
)

__all__ = [
    "initialize",
    "shutdown",
    "start_span",
    "record_merge",
    "record_parser_failure",
]
