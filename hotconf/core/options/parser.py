"""
Escaped ``key=value;`` text format.

Records are ``key=value;`` pairs. ``=`` separates a key from its value and
``;`` terminates a record; the terminator of the last record is optional.
A backslash escapes ``\\``, ``=`` and ``;`` and introduces the control
sequences ``\\n``, ``\\r`` and ``\\t``. A backslash directly followed by a line
break joins the two physical lines.
"""

import json
from enum import IntEnum
from typing import Any, Dict, List

from ..exceptions import ParseError, SizeLimitError

FIELD_DELIMITER = "="
RECORD_DELIMITER = ";"
ESCAPE = "\\"

MAX_KV_LEN = 1024 * 1024
"""Maximum length of a single key or value."""

MAX_LEN = 1024 * 1024 * 100
"""Maximum length of a whole input text."""

_CONTROL_ESCAPES = {"n": "\n", "r": "\r", "t": "\t"}
_LITERAL_ESCAPES = {ESCAPE, FIELD_DELIMITER, RECORD_DELIMITER}
_LINE_CONTINUATIONS = ("\\\r\n", "\\\r", "\\\n")


class _State(IntEnum):
    WAIT_FIELD = 0
    WAIT_VALUE = 1


def _join_lines(text: str) -> str:
    for sequence in _LINE_CONTINUATIONS:
        text = text.replace(sequence, "")
    return text


def _check_kv_len(length: int, max_kv_len: int) -> None:
    if length > max_kv_len:
        raise SizeLimitError(
            f"Key/Value len is greater than allowed limit ({length} > {max_kv_len})",
            length, max_kv_len)


def parse_text(
    text: str,
    max_len: int = MAX_LEN,
    max_kv_len: int = MAX_KV_LEN
) -> Dict[str, str]:
    """
    Parse escaped ``key=value;`` text into a mapping.

    Args:
        text: Text to parse
        max_len: Maximum accepted length of ``text``
        max_kv_len: Maximum accepted length of a single key or value

    Returns:
        Mapping of keys to string values

    Raises:
        ParseError: On an empty key, an empty value or an unescaped delimiter
        SizeLimitError: If ``text`` or one of its keys/values is too long
    """
    if len(text) > max_len:
        raise SizeLimitError(
            f"Input len is greater than allowed limit ({len(text)} > {max_len})",
            len(text), max_len)

    text = _join_lines(text)

    result: Dict[str, str] = {}
    buffer: List[str] = []
    key = ""
    state = _State.WAIT_FIELD
    escaped = False

    for pos, ch in enumerate(text):
        if escaped:
            escaped = False
            if ch in _LITERAL_ESCAPES:
                buffer.append(ch)
            elif ch in _CONTROL_ESCAPES:
                buffer.append(_CONTROL_ESCAPES[ch])
            else:
                buffer.append(ESCAPE)
                buffer.append(ch)
        elif ch == ESCAPE:
            escaped = True
            continue
        elif state == _State.WAIT_FIELD:
            if ch == RECORD_DELIMITER:
                raise ParseError(f"unescaped character {ch}", pos)
            if ch == FIELD_DELIMITER:
                key = "".join(buffer)
                buffer = []
                if not key:
                    raise ParseError("empty key", pos)
                state = _State.WAIT_VALUE
                continue
            buffer.append(ch)
        else:
            if ch == FIELD_DELIMITER:
                raise ParseError(f"unescaped character {ch}", pos)
            if ch == RECORD_DELIMITER:
                value = "".join(buffer)
                buffer = []
                if not value:
                    raise ParseError(f"empty value for key {key!r}", pos)
                result[key] = value
                key = ""
                state = _State.WAIT_FIELD
                continue
            buffer.append(ch)

        _check_kv_len(len(buffer), max_kv_len)

    if buffer and state == _State.WAIT_VALUE and key:
        result[key] = "".join(buffer)

    return result


def scalar_text(value: Any) -> str:
    """Textual rendering of a scalar or sequence value."""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    if isinstance(value, float):
        if value.is_integer() and abs(value) < 1e21:
            return str(int(value))
        return repr(value)
    if isinstance(value, (list, tuple, dict)):
        return json.dumps(value, separators=(",", ":"), default=str)
    return str(value)


def escape_delimiters(text: str, max_kv_len: int = MAX_KV_LEN) -> str:
    """Escape ``\\``, ``=`` and ``;`` so the text survives re-parsing."""
    _check_kv_len(len(text), max_kv_len)
    out = []
    for ch in text:
        if ch in _LITERAL_ESCAPES:
            out.append(ESCAPE)
        out.append(ch)
    return "".join(out)


def escape_controls(text: str) -> str:
    """Escape line breaks and tabs for single-line display."""
    return (text.replace("\r", "\\r")
                .replace("\n", "\\n")
                .replace("\t", "\\t"))


def format_mapping(mapping: Dict[str, Any]) -> str:
    """Render a mapping as escaped ``key=value;`` text."""
    parts = []
    for key, value in mapping.items():
        if isinstance(value, dict):
            text = "{" + format_mapping(value) + "}"
        else:
            text = escape_delimiters(scalar_text(value))
        parts.append(escape_delimiters(key) + FIELD_DELIMITER + text + RECORD_DELIMITER)
    return "".join(parts)


def format_display(mapping: Dict[str, Any], separator: str = "\n") -> str:
    """Render a mapping for humans; delimiters are left as they are."""
    parts = []
    for key, value in mapping.items():
        if isinstance(value, dict):
            text = "{" + format_display(value, separator) + "}"
        else:
            text = escape_controls(scalar_text(value))
        parts.append(key + FIELD_DELIMITER + text + separator)
    return "".join(parts)
