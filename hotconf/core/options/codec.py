"""
Loading and saving options as JSON, HJSON or YAML documents.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import IO, Any, Dict, Optional, Union

import hjson
import yaml

from ..exceptions import FormatError
from .node import Options

FORMAT_AUTO = ""
FORMAT_JSON = "json"
FORMAT_HJSON = "hjson"
FORMAT_YAML = "yaml"

SUPPORTED_FORMATS = (FORMAT_JSON, FORMAT_HJSON, FORMAT_YAML)

_EXTENSIONS = {
    ".json": FORMAT_JSON,
    ".hjson": FORMAT_HJSON,
    ".yaml": FORMAT_YAML,
    ".yml": FORMAT_YAML,
}


def _plain(value: Any) -> Any:
    """Convert decoder specific containers to plain dicts and lists."""
    if isinstance(value, dict):
        return {str(k): _plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    return value


def normalize_format(fmt: Optional[str], file_path: Optional[Union[str, Path]] = None) -> str:
    """
    Resolve the document format name.

    Args:
        fmt: Explicit format name, or empty to infer it
        file_path: File used to infer the format from its extension

    Returns:
        One of the supported format names

    Raises:
        FormatError: If the format is unknown or cannot be inferred
    """
    name = (fmt or FORMAT_AUTO).strip().lower()
    if name == "yml":
        name = FORMAT_YAML
    if name == FORMAT_AUTO and file_path is not None:
        suffix = Path(file_path).suffix.lower()
        name = _EXTENSIONS.get(suffix, suffix.lstrip("."))
    if name not in SUPPORTED_FORMATS:
        raise FormatError(f"Not supported options format {name!r}", name)
    return name


def decode(content: str, fmt: str) -> Dict[str, Any]:
    """Decode a document into a mapping."""
    name = normalize_format(fmt)
    try:
        if name == FORMAT_JSON:
            data = json.loads(content)
        elif name == FORMAT_HJSON:
            data = hjson.loads(content)
        else:
            data = yaml.safe_load(content)
    except (ValueError, yaml.YAMLError) as e:
        raise FormatError(f"Failed to decode {name}: {e}", name) from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise FormatError(
            f"Top level {name} value must be an object, got {type(data).__name__}", name)
    return _plain(data)


def encode(options: Options, fmt: str) -> str:
    """Encode options as a document."""
    name = normalize_format(fmt)
    if name == FORMAT_JSON:
        return options.as_json()
    data = options.to_dict()
    if name == FORMAT_HJSON:
        return hjson.dumps(data, indent=2)
    return yaml.safe_dump(data, default_flow_style=False, indent=2, allow_unicode=True)


def from_reader(reader: IO[Any], fmt: str) -> Options:
    """Read options from a text or binary stream."""
    try:
        content = reader.read()
        if isinstance(content, bytes):
            content = content.decode("utf-8")
    except UnicodeDecodeError as e:
        raise FormatError(f"Document is not valid UTF-8: {e}") from e
    return Options(decode(content, fmt))


def from_text(text: str, fmt: str) -> Options:
    """Create options from document text."""
    return Options(decode(text, fmt))


def from_file(file_path: Union[str, Path], fmt: str = FORMAT_AUTO) -> Options:
    """
    Load options from a file, inferring the format from the extension when
    ``fmt`` is empty. The file path is kept for resolving ``@`` references.

    Raises:
        FormatError: If the format is unsupported or the content is invalid
        OSError: If the file cannot be read
    """
    name = normalize_format(fmt, file_path)
    with open(file_path, "r", encoding="utf-8") as f:
        options = from_reader(f, name)
    options.file_path = str(file_path)
    return options


def to_text(options: Options, fmt: str = FORMAT_JSON) -> str:
    return encode(options, fmt)


def to_file(options: Options, file_path: Union[str, Path], fmt: str = FORMAT_AUTO) -> None:
    """
    Save options to a file.

    The document is written to a temporary file in the same directory and
    renamed over the target, so readers never observe a partial file.
    """
    name = normalize_format(fmt, file_path)
    content = encode(options, name)

    target = Path(file_path)
    fd, tmp_path = tempfile.mkstemp(
        prefix=f".{target.name}.", suffix=".tmp", dir=str(target.parent) or ".")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        os.replace(tmp_path, target)
    except BaseException:
        if os.path.exists(tmp_path):
            os.unlink(tmp_path)
        raise
