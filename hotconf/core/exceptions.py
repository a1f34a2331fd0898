"""
Exception hierarchy for the configuration store.

Every error raised by the package derives from HotconfError and carries an
ErrorCode. Errors flagged as fatal signal misuse or corrupted input and are
not meant to be recovered from at runtime.
"""

from enum import Enum
from typing import Any, Optional


class ErrorCode(Enum):
    """Error codes."""
    UNKNOWN_ERROR = 10000
    PARSE_ERROR = 10001
    SIZE_LIMIT = 10002
    FORMAT_ERROR = 10003
    CONVERSION_ERROR = 10004
    DRIVER_NOT_FOUND = 10005
    DRIVER_REGISTRATION = 10006
    CONNECTOR_ERROR = 10007


class HotconfError(Exception):
    """Base exception class."""

    fatal = False

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        details: Optional[Any] = None
    ):
        self.code = code
        self.message = message
        self.details = details
        super().__init__(message)


class ParseError(HotconfError):
    """Malformed key=value text."""

    def __init__(self, message: str, position: int = -1, details: Any = None):
        self.position = position
        super().__init__(ErrorCode.PARSE_ERROR, message, details)


class FatalError(HotconfError):
    """Non-recoverable error, callers must not retry."""

    fatal = True


class SizeLimitError(FatalError):
    """Input, key or value longer than the configured maximum."""

    def __init__(self, message: str, length: int, limit: int):
        self.length = length
        self.limit = limit
        super().__init__(
            ErrorCode.SIZE_LIMIT, message, {"length": length, "limit": limit})


class DriverRegistrationError(FatalError):
    """Duplicate or empty driver registration."""

    def __init__(self, message: str, name: Optional[str] = None):
        self.name = name
        super().__init__(ErrorCode.DRIVER_REGISTRATION, message, name)


class FormatError(HotconfError):
    """Unsupported or undecodable document format."""

    def __init__(self, message: str, details: Any = None):
        super().__init__(ErrorCode.FORMAT_ERROR, message, details)


class ConversionError(HotconfError):
    """Options could not be rendered or materialized."""

    def __init__(self, message: str, details: Any = None):
        super().__init__(ErrorCode.CONVERSION_ERROR, message, details)


class DriverNotFoundError(HotconfError):
    """No driver registered under the requested name."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(
            ErrorCode.DRIVER_NOT_FOUND,
            f"can not find configuration driver {name}, forgot to import it?",
            name
        )


class ConnectorError(HotconfError):
    """Loading from or storing to a configuration source failed."""

    def __init__(self, message: str, details: Any = None):
        super().__init__(ErrorCode.CONNECTOR_ERROR, message, details)
