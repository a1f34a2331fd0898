"""
Hierarchical option store.

An Options node wraps a mapping of string keys to values. Values are strings,
numbers, booleans, nested mappings or lists of those. Dotted keys such as
``"server.tcp.port"`` address nested mappings.
"""

import json
import logging
import os
import re
from datetime import date, time, timedelta
from typing import Any, Callable, Dict, List, Optional, Tuple, Type, TypeVar

from pydantic import TypeAdapter, ValidationError

from ..exceptions import ConversionError, HotconfError
from ..locks import ReadWriteLock
from .duration import coerce_duration, format_duration
from .parser import MAX_KV_LEN, MAX_LEN, format_display, format_mapping, parse_text, scalar_text

logger = logging.getLogger(__name__)

T = TypeVar('T')

REFERENCE_PREFIX = "@"

_INT64_MIN = -(1 << 63)
_INT64_MAX = (1 << 63) - 1
_INT_MIN = -(1 << 31)
_INT_MAX = (1 << 31) - 1

_TRUE_TEXT = {"1", "t", "T", "TRUE", "true", "True"}
_FALSE_TEXT = {"0", "f", "F", "FALSE", "false", "False"}
_INT_TEXT = re.compile(r"[+-]?[0-9]+")


class _Missing:
    """Marker for "no previous value"."""

    def __repr__(self) -> str:
        return "<MISSING>"

    def __bool__(self) -> bool:
        return False


MISSING: Any = _Missing()


def equal_values(a: Any, b: Any) -> bool:
    """
    Structural equality of option values.

    Mappings are equal when they hold the same keys with equal values, lists
    when they are pairwise equal. Numbers compare by value regardless of int
    or float representation; booleans only equal booleans.
    """
    if isinstance(a, Options):
        a = a._options
    if isinstance(b, Options):
        b = b._options

    if isinstance(a, dict) and isinstance(b, dict):
        if a.keys() != b.keys():
            return False
        return all(equal_values(a[k], b[k]) for k in a)

    if isinstance(a, (list, tuple)) and isinstance(b, (list, tuple)):
        return len(a) == len(b) and all(equal_values(x, y) for x, y in zip(a, b))

    if isinstance(a, bool) or isinstance(b, bool):
        return isinstance(a, bool) and isinstance(b, bool) and a == b

    if isinstance(a, (int, float)) and isinstance(b, (int, float)):
        return a == b

    if type(a) is not type(b) and not (isinstance(a, str) and isinstance(b, str)):
        return False
    return bool(a == b)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _to_int(value: Any, low: int, high: int) -> Optional[int]:
    if _is_number(value):
        try:
            result = int(value)
        except (OverflowError, ValueError):
            return None
    else:
        try:
            text = scalar_text(value).strip()
            if not _INT_TEXT.fullmatch(text):
                return None
            result = int(text, 10)
        except ValueError:
            return None
    if result < low or result > high:
        return None
    return result


def _to_float(value: Any) -> Optional[float]:
    try:
        if _is_number(value):
            return float(value)
        text = scalar_text(value).strip()
        if "_" in text:
            return None
        return float(text)
    except (OverflowError, ValueError):
        return None


def _json_default(value: Any) -> Any:
    if isinstance(value, Options):
        return value._options
    if isinstance(value, timedelta):
        return format_duration(value)
    if isinstance(value, (date, time)):
        return value.isoformat()
    if isinstance(value, (set, frozenset, tuple)):
        return list(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


class Options:
    """
    Thread-safe hierarchical key/value store.

    Views returned by :meth:`get` share the underlying mapping with the
    node they were taken from. Each node has its own lock, so writes through
    two different views of the same mapping are not serialized against each
    other.
    """

    def __init__(
        self,
        options: Optional[Dict[str, Any]] = None,
        file_path: Optional[str] = None
    ) -> None:
        self._lock = ReadWriteLock()
        self._options: Dict[str, Any] = options if options is not None else {}
        self.file_path = file_path

    # -- navigation ------------------------------------------------------

    def _get_container(self, key: str) -> Tuple[Dict[str, Any], str]:
        items = key.split(".")
        if len(items) <= 1:
            return self._options, key

        container = self._options
        for item in items[:-1]:
            value = container.get(item)
            if not isinstance(value, dict):
                return {}, items[-1]
            container = value
        return container, items[-1]

    def _new_container(self, key: str) -> Tuple[Dict[str, Any], str]:
        items = key.split(".")
        if len(items) <= 1:
            return self._options, key

        container = self._options
        for item in items[:-1]:
            value = container.get(item)
            if not isinstance(value, dict):
                value = {}
                container[item] = value
            container = value
        return container, items[-1]

    def _lookup(self, key: str) -> Any:
        container, leaf = self._get_container(key)
        return container.get(leaf, MISSING)

    def _reference_path(self, value: str) -> str:
        name = value[len(REFERENCE_PREFIX):]
        base = os.path.dirname(self.file_path) if self.file_path else ""
        return os.path.join(base, name)

    def _view(self, mapping: Dict[str, Any]) -> 'Options':
        return Options(mapping, self.file_path)

    # -- node accessors --------------------------------------------------

    def get(self, key: str = "") -> 'Options':
        """
        Get the node stored under ``key``.

        An empty key returns a view of this node. Missing keys and values
        that are not mappings yield an empty node. A string value starting
        with ``@`` is loaded from the named file, resolved relative to the
        file this node was loaded from.

        Args:
            key: Dotted path

        Returns:
            Options view sharing the stored mapping, or a new node
        """
        with self._lock.read_locked():
            if not key:
                return self._view(self._options)

            value = self._lookup(key)
            if isinstance(value, str) and value.startswith(REFERENCE_PREFIX):
                from .codec import from_file

                path = self._reference_path(value)
                try:
                    return from_file(path)
                except (HotconfError, OSError) as e:
                    logger.debug(f"Cannot resolve reference {value!r} ({path}): {e}")

            if isinstance(value, dict):
                return self._view(value)
            return Options()

    def get_object(self, key: str, default: Any = None) -> Any:
        """Raw value stored under ``key``."""
        with self._lock.read_locked():
            value = self._lookup(key)
        return default if value is MISSING else value

    def exists(self, key: str) -> bool:
        with self._lock.read_locked():
            return self._lookup(key) is not MISSING

    def is_empty(self) -> bool:
        with self._lock.read_locked():
            return len(self._options) == 0

    def keys(self) -> List[str]:
        with self._lock.read_locked():
            return list(self._options.keys())

    def set(self, key: str, value: Any) -> Any:
        """
        Store ``value`` under ``key``, creating intermediate nodes.

        Returns:
            The value previously stored, or ``MISSING``
        """
        if isinstance(value, Options):
            value = value.to_dict()

        with self._lock.write_locked():
            container, leaf = self._new_container(key)
            previous = container.get(leaf, MISSING)
            container[leaf] = value
            return previous

    def assign(self, options: Dict[str, Any]) -> None:
        """Replace all values with a copy of ``options``."""
        with self._lock.write_locked():
            self._options = dict(options)

    def parse(
        self,
        text: str,
        max_len: int = MAX_LEN,
        max_kv_len: int = MAX_KV_LEN
    ) -> None:
        """
        Replace all values with the records of an escaped ``key=value;`` text.

        On error the node is left empty.

        Raises:
            ParseError: If the text is malformed
            SizeLimitError: If the text or one of its fields is too long
        """
        with self._lock.write_locked():
            self._options = {}
            self._options = parse_text(text, max_len, max_kv_len)

    # -- typed getters ---------------------------------------------------

    def _typed(self, key: str, default: T, convert: Callable[[Any], Optional[T]]) -> T:
        with self._lock.read_locked():
            value = self._lookup(key)
        if value is MISSING:
            return default
        result = convert(value)
        return default if result is None else result

    def get_string(self, key: str, default: str = "") -> str:
        return self._typed(key, default, scalar_text)

    def get_int(self, key: str, default: int = 0) -> int:
        """Integer value within the 32-bit range, or ``default``."""
        return self._typed(key, default, lambda v: _to_int(v, _INT_MIN, _INT_MAX))

    def get_int64(self, key: str, default: int = 0) -> int:
        """Integer value within the 64-bit range, or ``default``."""
        return self._typed(key, default, lambda v: _to_int(v, _INT64_MIN, _INT64_MAX))

    def get_float(self, key: str, default: float = 0.0) -> float:
        return self._typed(key, default, _to_float)

    def get_bool(self, key: str, default: bool = False) -> bool:
        def convert(value: Any) -> Optional[bool]:
            if isinstance(value, bool):
                return value
            text = scalar_text(value).strip()
            if text in _TRUE_TEXT:
                return True
            if text in _FALSE_TEXT:
                return False
            return None

        return self._typed(key, default, convert)

    def get_duration(self, key: str, default: timedelta = timedelta(0)) -> timedelta:
        """
        Duration value, or ``default``.

        Numbers are nanoseconds; strings use the ``"1m30s"`` notation.
        """
        def convert(value: Any) -> Optional[timedelta]:
            try:
                return coerce_duration(value)
            except (ValueError, OverflowError):
                return None

        return self._typed(key, default, convert)

    def _get_list(self, key: str) -> Optional[List[Any]]:
        with self._lock.read_locked():
            value = self._lookup(key)
        if isinstance(value, (list, tuple)):
            return list(value)
        return None

    def get_string_array(self, key: str, default: Optional[List[str]] = None) -> Optional[List[str]]:
        items = self._get_list(key)
        if items is None:
            return default
        return [scalar_text(item) for item in items]

    def get_int64_array(self, key: str, default: Optional[List[int]] = None) -> Optional[List[int]]:
        """Items convertible to integers; others are skipped."""
        items = self._get_list(key)
        if items is None:
            return default
        result = []
        for item in items:
            value = _to_int(item, _INT64_MIN, _INT64_MAX)
            if value is not None:
                result.append(value)
        return result

    def get_float64_array(self, key: str, default: Optional[List[float]] = None) -> Optional[List[float]]:
        """Items convertible to floats; others are skipped."""
        items = self._get_list(key)
        if items is None:
            return default
        result = []
        for item in items:
            value = _to_float(item)
            if value is not None:
                result.append(value)
        return result

    def get_object_array(
        self,
        key: str,
        default: Optional[List['Options']] = None
    ) -> Optional[List['Options']]:
        """Mapping items as option views; other items are skipped."""
        items = self._get_list(key)
        if items is None:
            return default
        return [self._view(item) for item in items if isinstance(item, dict)]

    # -- conversion ------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        """Deep copy of the stored values."""
        with self._lock.read_locked():
            return json.loads(json.dumps(self._options, default=_json_default))

    def as_json(self, indent: Optional[int] = 2) -> str:
        """
        Canonical JSON rendering with sorted keys.

        Raises:
            ConversionError: If a value cannot be represented in JSON
        """
        with self._lock.read_locked():
            try:
                return json.dumps(
                    self._options, indent=indent, sort_keys=True,
                    ensure_ascii=False, default=_json_default)
            except (TypeError, ValueError) as e:
                raise ConversionError(f"Cannot render options as JSON: {e}") from e

    def as_struct(self, target: Type[T]) -> T:
        """
        Materialize the options into a typed structure.

        The options are rendered as JSON and validated into ``target``,
        which may be a pydantic model, a dataclass or any type pydantic
        understands.

        Raises:
            ConversionError: If the values do not fit ``target``
        """
        stream = self.as_json(indent=None)
        try:
            return TypeAdapter(target).validate_json(stream)
        except ValidationError as e:
            raise ConversionError(
                f"Cannot convert options to {getattr(target, '__name__', target)}: {e}",
                e.errors()) from e

    def to_string(self) -> str:
        """Escaped ``key=value;`` rendering."""
        with self._lock.read_locked():
            return format_mapping(self._options)

    def format(self, separator: str = "\n") -> str:
        """Human readable rendering; not guaranteed to parse back."""
        with self._lock.read_locked():
            return format_display(self._options, separator)

    def equal_to(self, other: Optional['Options']) -> bool:
        if other is None:
            return False
        if other is self:
            return True
        with self._lock.read_locked(), other._lock.read_locked():
            return equal_values(self._options, other._options)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Options):
            return NotImplemented
        return self.equal_to(other)

    __hash__ = None  # type: ignore[assignment]

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.exists(key)

    def __len__(self) -> int:
        with self._lock.read_locked():
            return len(self._options)

    def __str__(self) -> str:
        return self.to_string()

    def __repr__(self) -> str:
        return f"Options({self._options!r}, file_path={self.file_path!r})"
