"""Session file parsers."""

from sessionstitch.parsers.records import decode_line, iter_records, parse_record_line, read_fragment, serialize_entry
from sessionstitch.parsers.summaries import summarize_fragment, user_prompt_text

__all__ = [
    "decode_line",
    "iter_records",
    "parse_record_line",
    "read_fragment",
    "serialize_entry",
    "summarize_fragment",
    "user_prompt_text",
]
