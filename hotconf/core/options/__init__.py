"""
Option nodes and their text and document representations.
"""

from .node import MISSING, REFERENCE_PREFIX, Options, equal_values
from .parser import MAX_KV_LEN, MAX_LEN, parse_text
from .duration import Duration, coerce_duration, format_duration, parse_duration
from .codec import (
    FORMAT_AUTO, FORMAT_HJSON, FORMAT_JSON, FORMAT_YAML, SUPPORTED_FORMATS,
    from_file, from_reader, from_text, normalize_format, to_file, to_text
)

__all__ = [
    "MISSING",
    "REFERENCE_PREFIX",
    "Options",
    "equal_values",
    "MAX_KV_LEN",
    "MAX_LEN",
    "parse_text",
    "Duration",
    "coerce_duration",
    "format_duration",
    "parse_duration",
    "FORMAT_AUTO",
    "FORMAT_HJSON",
    "FORMAT_JSON",
    "FORMAT_YAML",
    "SUPPORTED_FORMATS",
    "from_file",
    "from_reader",
    "from_text",
    "normalize_format",
    "to_file",
    "to_text",
]
