"""
Error Taxonomy
==============

Exceptions raised by the scene parsing and rendering components.

Each exception carries an ``ErrorKind`` so public entry points can turn a
raised error into a ``ParseResult`` or ``RenderReport`` without losing
what went wrong. Every kind is fatal for the run that raised it.
"""

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """Kinds of failure a render run can end with."""
    USAGE_ERROR = "usage_error"
    FILE_OPEN_ERROR = "file_open_error"
    MALFORMED_INPUT = "malformed_input"
    SCHEMA_VIOLATION = "schema_violation"
    INVALID_COLOR_FORMAT = "invalid_color_format"
    UNSUPPORTED_ELEMENT_TYPE = "unsupported_element_type"
    OUTPUT_DIRECTORY_ERROR = "output_directory_error"
    ENCODING_ERROR = "encoding_error"


class SceneRenderError(Exception):
    """Base class for all scenerender errors."""

    kind: ErrorKind


class UsageError(SceneRenderError):
    """Exception raised when the command line is used incorrectly."""

    kind = ErrorKind.USAGE_ERROR


class FileOpenError(SceneRenderError):
    """Exception raised when a description file cannot be read."""

    kind = ErrorKind.FILE_OPEN_ERROR

    def __init__(self, path: str, reason: str = ""):
        self.path = path
        self.reason = reason
        message = f"could not open {path}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class MalformedInput(SceneRenderError):
    """Exception raised when the description is not well-formed structured text."""

    kind = ErrorKind.MALFORMED_INPUT


class SchemaViolation(SceneRenderError):
    """Exception raised when a required field is missing or has the wrong type."""

    kind = ErrorKind.SCHEMA_VIOLATION

    def __init__(self, field_path: str, message: str):
        self.field_path = field_path
        self.message = message
        super().__init__(f"invalid description: {field_path}: {message}")


class InvalidColorFormat(SceneRenderError):
    """Exception raised for colour text that is not 3, 4, 6 or 8 hex digits."""

    kind = ErrorKind.INVALID_COLOR_FORMAT

    def __init__(self, value: object, reason: str, field_path: Optional[str] = None):
        self.value = value
        self.reason = reason
        self.field_path = field_path
        message = f"invalid colour {value!r}: {reason}"
        if field_path:
            message = f"{field_path}: {message}"
        super().__init__(message)

    def at(self, field_path: str) -> "InvalidColorFormat":
        """Return a copy of this error located at ``field_path``."""
        return InvalidColorFormat(self.value, self.reason, field_path)


class UnsupportedElementType(SceneRenderError):
    """Exception raised for element types that have no rasterization routine."""

    kind = ErrorKind.UNSUPPORTED_ELEMENT_TYPE

    def __init__(self, element_type: str, field_path: Optional[str] = None):
        self.element_type = element_type
        self.field_path = field_path
        message = f"invalid type {element_type!r}"
        if field_path:
            message = f"{field_path}: {message}"
        super().__init__(message)


class OutputDirectoryError(SceneRenderError):
    """Exception raised when an output directory cannot be created or verified."""

    kind = ErrorKind.OUTPUT_DIRECTORY_ERROR


class EncodingError(SceneRenderError):
    """Exception raised when a pixel buffer cannot be written as an image file."""

    kind = ErrorKind.ENCODING_ERROR
