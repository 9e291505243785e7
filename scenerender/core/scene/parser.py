"""
Scene Parser
============

Parsing engine converting scene descriptions into validated
SceneDescription models. Supports JSON and YAML formats.

Validation is fail-fast: the first violation aborts parsing and no
partial scene is returned. Violations are checked in this order:
syntax, document schema, element types, element schemas, colours.
"""

from typing import Dict, List, Any, Iterator, Optional, Tuple, Union
from abc import ABC, abstractmethod
from pathlib import Path
import json
import math
import os
import time

import yaml  # type: ignore[import-untyped]
from cerberus import Validator  # type: ignore[import-untyped]
from pydantic import ValidationError

from scenerender.config.logging import get_logger
from scenerender.config.settings import get_settings
from scenerender.core.errors import (
    FileOpenError,
    InvalidColorFormat,
    MalformedInput,
    SceneRenderError,
    SchemaViolation,
    UnsupportedElementType,
)
from scenerender.core.rendering.colour import parse_colour
from scenerender.core.rendering.rasterizer import round_half_away
from scenerender.models.schemas import (
    Colour,
    ElementType,
    ImageSpec,
    NormalizedRect,
    ParseResult,
    RectangleElement,
    Resolution,
    SceneDescription,
    SceneElement,
)

logger = get_logger(__name__)

PathPart = Union[str, int]

# Largest accepted scale factor or normalized coordinate
MAX_MAGNITUDE = 1_000_000

# TGA stores width and height as 16-bit fields
MAX_RESOLUTION = 0xFFFF

# Field order used to pick the first of several schema errors
FIELD_ORDER = [
    "outputPath",
    "resolutions",
    "images",
    "name",
    "width",
    "height",
    "background",
    "elements",
    "type",
    "x",
    "y",
    "colour",
]


class SceneValidatorEngine(Validator):  # type: ignore[misc]
    """Cerberus validator with the scene-specific ``check_with`` rules."""

    def _check_with_finite(self, field: str, value: Any) -> None:
        if isinstance(value, float) and not math.isfinite(value):
            self._error(field, "must be a finite number")
        elif abs(value) > MAX_MAGNITUDE:
            self._error(field, f"must be between -{MAX_MAGNITUDE} and {MAX_MAGNITUDE}")

    def _check_with_whole(self, field: str, value: Any) -> None:
        if isinstance(value, float) and not value.is_integer():
            self._error(field, "must be a whole number of pixels")


def format_path(parts: Tuple[PathPart, ...]) -> str:
    """Format ``("images", 0, "name")`` as ``images[0].name``."""
    formatted = ""
    for part in parts:
        if isinstance(part, int):
            formatted += f"[{part}]"
        else:
            formatted += f".{part}" if formatted else str(part)
    return formatted


def _path_sort_key(parts: Tuple[PathPart, ...]) -> Tuple[Tuple[int, int], ...]:
    key = []
    for part in parts:
        if isinstance(part, int):
            key.append((0, part))
        elif part in FIELD_ORDER:
            key.append((1, FIELD_ORDER.index(part)))
        else:
            key.append((1, len(FIELD_ORDER)))
    return tuple(key)


class SceneValidator:
    """Scene validation using Cerberus schemas."""

    def __init__(self) -> None:
        self.logger: Any = logger.bind(component="validator")  # structlog.BoundLoggerBase
        self.settings = get_settings()
        self._setup_schemas()

    def _setup_schemas(self) -> None:
        """Setup validation schemas."""
        number = {"type": "number", "required": True, "check_with": "finite"}

        # Per-type element schemas, applied once the type is known
        self.element_schemas: Dict[str, Dict[str, Any]] = {
            ElementType.RECTANGLE.value: {
                "type": {"type": "string", "required": True},
                "x": dict(number),
                "y": dict(number),
                "width": dict(number),
                "height": dict(number),
                "colour": {"type": "string", "required": True},
            },
        }

        # Only the tag is checked at document level
        self.element_schema: Dict[str, Any] = {
            "type": {"type": "string", "required": True},
        }

        self.image_schema: Dict[str, Any] = {
            "name": {"type": "string", "required": True, "empty": False},
            "width": {**number, "min": 0},
            "height": {**number, "min": 0},
            "background": {"type": "string", "required": True},
            "elements": {
                "type": "list",
                "required": True,
                "schema": {"type": "dict", "schema": self.element_schema, "allow_unknown": True},
            },
        }

        resolution_size = {
            "type": "number",
            "min": 1,
            "max": MAX_RESOLUTION,
            "check_with": "whole",
        }

        self.document_schema: Dict[str, Any] = {
            "outputPath": {"type": "string", "required": True, "empty": False},
            "resolutions": {
                "type": "list",
                "required": True,
                "minlength": 1,
                "schema": {
                    "type": "list",
                    "minlength": 2,
                    "maxlength": 2,
                    "items": [resolution_size, resolution_size],
                },
            },
            "images": {
                "type": "list",
                "required": True,
                "schema": {"type": "dict", "schema": self.image_schema, "allow_unknown": True},
            },
        }

    def validate_document(self, data: Any) -> List[str]:
        """
        Validate scene document structure.

        Args:
            data: Decoded document

        Returns:
            Warnings for a valid document

        Raises:
            MalformedInput: If the document is not an object
            SchemaViolation: On the first missing or mistyped field
            UnsupportedElementType: On the first unknown element type
        """
        if not isinstance(data, dict):
            raise MalformedInput(
                f"description must be an object, got {type(data).__name__}"
            )

        self._check(self.document_schema, data, ())

        for i, image in enumerate(data["images"]):
            for j, element in enumerate(image["elements"]):
                self._validate_element(element, ("images", i, "elements", j))

        return self._collect_warnings(data)

    def _validate_element(self, element: Dict[str, Any], path: Tuple[PathPart, ...]) -> None:
        """Validate individual element against its type's schema."""
        element_type = element["type"]
        schema = self.element_schemas.get(element_type)
        if schema is None:
            raise UnsupportedElementType(element_type, format_path(path + ("type",)))
        self._check(schema, element, path)

    def _check(self, schema: Dict[str, Any], data: Dict[str, Any], path: Tuple[PathPart, ...]) -> None:
        validator = SceneValidatorEngine(schema)
        validator.allow_unknown = True  # Allow extra fields

        if validator.validate(data):
            return

        violations = sorted(
            self._flatten_errors(validator.errors, path), key=lambda item: _path_sort_key(item[0])
        )
        field_path, message = violations[0]
        self.logger.debug(
            "Schema validation failed",
            field=format_path(field_path),
            error_count=len(violations),
        )
        raise SchemaViolation(format_path(field_path), message)

    def _flatten_errors(
        self, errors: Dict[PathPart, Any], path: Tuple[PathPart, ...]
    ) -> Iterator[Tuple[Tuple[PathPart, ...], str]]:
        """Flatten Cerberus' nested error tree into (path, message) pairs."""
        for field, error_info in errors.items():
            current_path = path + (field,)
            items = error_info if isinstance(error_info, list) else [error_info]
            for error in items:
                if isinstance(error, dict):
                    yield from self._flatten_errors(error, current_path)
                else:
                    yield current_path, str(error)

    def _collect_warnings(self, data: Dict[str, Any]) -> List[str]:
        """Non-fatal observations about a valid document."""
        warnings: List[str] = []

        if not data["images"]:
            warnings.append("Description contains no images; nothing will be written")

        seen_names: Dict[str, int] = {}
        for i, image in enumerate(data["images"]):
            name = image["name"]
            if name in seen_names:
                warnings.append(
                    f"images[{i}]: name '{name}' repeats images[{seen_names[name]}]; "
                    "the later image overwrites the earlier one"
                )
            else:
                seen_names[name] = i

            for w, h in data["resolutions"]:
                width = max(round_half_away(image["width"] * w), 0)
                height = max(round_half_away(image["height"] * h), 0)
                if width * height > self.settings.large_canvas_pixels:
                    warnings.append(
                        f"images[{i}]: large canvas ({width}x{height}) at res{int(w)}x{int(h)} "
                        "may use a lot of memory"
                    )

            for j, element in enumerate(image["elements"]):
                if element["type"] == ElementType.RECTANGLE.value and self._outside_unit_square(element):
                    warnings.append(
                        f"images[{i}].elements[{j}]: element lies entirely outside the canvas"
                    )

        return warnings

    @staticmethod
    def _outside_unit_square(element: Dict[str, Any]) -> bool:
        x, y = element["x"], element["y"]
        width, height = element["width"], element["height"]
        return x >= 1 or y >= 1 or x + width <= 0 or y + height <= 0


def _colour_at(value: str, path: str) -> Colour:
    try:
        return parse_colour(value)
    except InvalidColorFormat as e:
        raise e.at(path) from e


def _model_violation(error: ValidationError, path: Tuple[PathPart, ...]) -> SchemaViolation:
    """Report the first pydantic error at its description field."""
    first = error.errors()[0]
    loc = tuple(part for part in first["loc"] if part != "geometry")
    return SchemaViolation(format_path(path + loc), first["msg"])


def build_scene(raw_data: Dict[str, Any]) -> SceneDescription:
    """
    Convert a validated document into a SceneDescription.

    Args:
        raw_data: Document that passed SceneValidator

    Returns:
        SceneDescription instance

    Raises:
        InvalidColorFormat: On the first bad colour
        SchemaViolation: If a value is rejected by the scene models
    """
    resolutions: List[Resolution] = []
    for i, (width, height) in enumerate(raw_data["resolutions"]):
        try:
            resolutions.append(Resolution(width=int(width), height=int(height)))
        except ValidationError as e:
            raise _model_violation(e, ("resolutions", i)) from e

    images: List[ImageSpec] = []
    for i, image_data in enumerate(raw_data["images"]):
        background = _colour_at(image_data["background"], f"images[{i}].background")

        elements: List[SceneElement] = []
        for j, element_data in enumerate(image_data["elements"]):
            elements.append(
                build_element(element_data, f"images[{i}].elements[{j}]")
            )

        try:
            images.append(
                ImageSpec(
                    name=image_data["name"],
                    width=image_data["width"],
                    height=image_data["height"],
                    background=background,
                    elements=elements,
                )
            )
        except ValidationError as e:
            raise _model_violation(e, ("images", i)) from e

    try:
        return SceneDescription(
            output_path=Path(os.path.normpath(raw_data["outputPath"])),
            resolutions=resolutions,
            images=images,
        )
    except ValidationError as e:
        raise _model_violation(e, ()) from e


def build_element(element_data: Dict[str, Any], path: str) -> SceneElement:
    """Convert a validated element into its model."""
    element_type = element_data["type"]

    if element_type == ElementType.RECTANGLE.value:
        colour = _colour_at(element_data["colour"], f"{path}.colour")
        try:
            return RectangleElement(
                geometry=NormalizedRect(
                    x=element_data["x"],
                    y=element_data["y"],
                    width=element_data["width"],
                    height=element_data["height"],
                ),
                colour=colour,
            )
        except ValidationError as e:
            raise _model_violation(e, (path,)) from e

    raise UnsupportedElementType(element_type, f"{path}.type")


class BaseSceneParser(ABC):
    """Abstract base class for scene parsers."""

    def __init__(self) -> None:
        self.validator = SceneValidator()

    @abstractmethod
    def load(self, content: str) -> Any:
        """Decode raw text into Python data."""
        pass

    @abstractmethod
    def validate_syntax(self, content: str) -> bool:
        """Validate syntax without full parsing."""
        pass

    def parse(self, content: str) -> ParseResult:
        """
        Parse scene content into a SceneDescription.

        Args:
            content: Raw scene content as string

        Returns:
            ParseResult containing the parsed scene or the first error
        """
        start_time = time.time()

        try:
            raw_data = self.load(content)
            warnings = self.validator.validate_document(raw_data)
            scene = build_scene(raw_data)

            for warning in warnings:
                self.logger.warning("Scene validation warning", warning=warning)

            return ParseResult(
                success=True,
                scene=scene,
                errors=[],
                warnings=warnings,
                processing_time=time.time() - start_time,
            )

        except SceneRenderError as e:
            self.logger.error("Scene parsing failed", error=str(e), kind=e.kind.value)
            return ParseResult(
                success=False,
                scene=None,
                errors=[str(e)],
                error_kind=e.kind,
                processing_time=time.time() - start_time,
            )


class JSONSceneParser(BaseSceneParser):
    """JSON-based scene parser implementation."""

    def __init__(self) -> None:
        super().__init__()
        self.logger: Any = logger.bind(parser="json")  # structlog.BoundLoggerBase

    def load(self, content: str) -> Any:
        self.logger.info("Parsing JSON scene content")
        try:
            return json.loads(content)
        except json.JSONDecodeError as e:
            raise MalformedInput(
                f"Invalid JSON syntax at line {e.lineno}, column {e.colno}: {e.msg}"
            ) from e

    def validate_syntax(self, content: str) -> bool:
        """
        Validate JSON scene syntax.

        Args:
            content: Raw scene content as string

        Returns:
            True if syntax is valid, False otherwise
        """
        try:
            json.loads(content)
            return True
        except json.JSONDecodeError:
            return False


class YAMLSceneParser(BaseSceneParser):
    """YAML-based scene parser implementation."""

    def __init__(self) -> None:
        super().__init__()
        self.logger: Any = logger.bind(parser="yaml")  # structlog.BoundLoggerBase

    def load(self, content: str) -> Any:
        self.logger.info("Parsing YAML scene content")
        try:
            raw_data = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise MalformedInput(f"Invalid YAML syntax: {e}") from e

        if raw_data is None:
            raise MalformedInput("Empty YAML document")
        return raw_data

    def validate_syntax(self, content: str) -> bool:
        """
        Validate YAML scene syntax.

        Args:
            content: Raw scene content as string

        Returns:
            True if syntax is valid, False otherwise
        """
        try:
            yaml.safe_load(content)
            return True
        except yaml.YAMLError:
            return False


class SceneParserFactory:
    """Factory for creating scene parsers based on content type."""

    _parsers = {
        "json": JSONSceneParser,
        "yaml": YAMLSceneParser,
    }

    @classmethod
    def create_parser(cls, parser_type: str) -> BaseSceneParser:
        """
        Create a scene parser instance.

        Args:
            parser_type: Type of parser ("json", "yaml")

        Returns:
            Scene parser instance

        Raises:
            ValueError: If parser type is not supported
        """
        if parser_type not in cls._parsers:
            raise ValueError(f"Unsupported parser type: {parser_type}")

        return cls._parsers[parser_type]()

    @classmethod
    def detect_parser_type(cls, content: str) -> str:
        """
        Detect parser type from content.

        Args:
            content: Raw scene content

        Returns:
            Detected parser type
        """
        content = content.strip()
        if content.startswith(("{", "[")):
            return "json"
        elif content.startswith(("---", "- ")) or "\n-" in content[:100]:
            return "yaml"
        else:
            # Try to parse as JSON first, fallback to YAML
            try:
                json.loads(content)
                return "json"
            except json.JSONDecodeError:
                return "yaml"


def parse_scene(content: str, parser_type: Optional[str] = None) -> ParseResult:
    """
    Parse scene content using appropriate parser.

    Args:
        content: Raw scene content
        parser_type: Optional parser type override

    Returns:
        ParseResult containing parsed scene or errors
    """
    if not content or not content.strip():
        return ParseResult(
            success=False,
            scene=None,
            errors=[str(MalformedInput("Empty scene content provided"))],
            error_kind=MalformedInput.kind,
            processing_time=0.0,
        )

    if not parser_type:
        parser_type = SceneParserFactory.detect_parser_type(content)

    try:
        parser = SceneParserFactory.create_parser(parser_type)
    except ValueError as e:
        return ParseResult(
            success=False,
            scene=None,
            errors=[str(e)],
            error_kind=MalformedInput.kind,
            processing_time=0.0,
        )
    return parser.parse(content)


def load_scene(path: Union[str, Path], parser_type: Optional[str] = None) -> ParseResult:
    """
    Read a description file and parse it.

    Args:
        path: Description file path
        parser_type: Optional parser type override; ``.yaml``/``.yml``
            files default to YAML, everything else is detected from content

    Returns:
        ParseResult; an unreadable file yields a FILE_OPEN_ERROR result
    """
    path = Path(path)
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as e:
        error = FileOpenError(str(path), e.strerror or str(e))
    except UnicodeDecodeError as e:
        error = FileOpenError(str(path), f"not UTF-8 text ({e.reason})")
    else:
        if parser_type is None and path.suffix.lower() in (".yaml", ".yml"):
            parser_type = "yaml"
        return parse_scene(content, parser_type)

    logger.error("Could not read scene file", path=str(path), error=str(error))
    return ParseResult(
        success=False,
        scene=None,
        errors=[str(error)],
        error_kind=error.kind,
        processing_time=0.0,
    )


def validate_scene_syntax(content: str, parser_type: Optional[str] = None) -> bool:
    """
    Validate scene syntax without full parsing.

    Args:
        content: Raw scene content
        parser_type: Optional parser type override

    Returns:
        True if syntax is valid, False otherwise
    """
    if not content or not content.strip():
        return False

    if not parser_type:
        parser_type = SceneParserFactory.detect_parser_type(content)

    try:
        parser = SceneParserFactory.create_parser(parser_type)
        return parser.validate_syntax(content)
    except ValueError:
        return False


def get_supported_element_types() -> List[str]:
    """
    Get list of supported scene element types.

    Returns:
        List of supported element type strings
    """
    return [e.value for e in ElementType]


def get_scene_schema_info() -> Dict[str, Any]:
    """
    Get scene schema information for documentation/tooling.

    Returns:
        Dictionary containing schema information
    """
    validator = SceneValidator()

    return {
        "version": "1.0",
        "supported_formats": ["json", "yaml"],
        "element_types": get_supported_element_types(),
        "document_schema": validator.document_schema,
        "image_schema": validator.image_schema,
        "element_schemas": validator.element_schemas,
        "colour_formats": ["#RGB", "#RGBA", "#RRGGBB", "#RRGGBBAA"],
        "example_minimal": {
            "outputPath": "out",
            "resolutions": [[100, 100]],
            "images": [
                {
                    "name": "square",
                    "width": 1.0,
                    "height": 1.0,
                    "background": "#000000",
                    "elements": [
                        {
                            "type": "rectangle",
                            "x": 0.25,
                            "y": 0.25,
                            "width": 0.5,
                            "height": 0.5,
                            "colour": "#ffffff",
                        }
                    ],
                }
            ],
        },
    }
