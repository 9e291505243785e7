"""
Pydantic Models and Schemas
===========================

Core data models for scene descriptions, parsing results and render reports.
Scene models are frozen: they are built once by the parser and read-only
afterwards.
"""

from typing import Optional, List, Literal, Tuple
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from scenerender.core.errors import ErrorKind


# Enums
class ElementType(str, Enum):
    """Scene element types."""
    RECTANGLE = "rectangle"


# Scene Models
class Colour(BaseModel):
    """8-bit RGBA colour."""
    r: int = Field(..., ge=0, le=255)
    g: int = Field(..., ge=0, le=255)
    b: int = Field(..., ge=0, le=255)
    a: int = Field(255, ge=0, le=255)

    model_config = ConfigDict(frozen=True)

    def as_tuple(self) -> Tuple[int, int, int, int]:
        return (self.r, self.g, self.b, self.a)


class Resolution(BaseModel):
    """Physical output size in pixels."""
    width: int = Field(..., gt=0, description="Output width in pixels")
    height: int = Field(..., gt=0, description="Output height in pixels")

    model_config = ConfigDict(frozen=True)

    @property
    def directory_name(self) -> str:
        """Name of the subdirectory holding every image rendered at this resolution."""
        return f"res{self.width}x{self.height}"


class NormalizedRect(BaseModel):
    """Rectangle expressed as fractions of the canvas size."""
    x: float = Field(..., description="Left edge as a fraction of canvas width")
    y: float = Field(..., description="Top edge as a fraction of canvas height")
    width: float = Field(..., description="Width as a fraction of canvas width")
    height: float = Field(..., description="Height as a fraction of canvas height")

    model_config = ConfigDict(frozen=True)


class SceneElement(BaseModel):
    """Base model for every drawable element.

    Concrete shapes subclass this with a ``Literal`` type tag. The
    rasterizer keeps one painting routine per subclass.
    """
    type: str

    model_config = ConfigDict(frozen=True)


class RectangleElement(SceneElement):
    """Axis-aligned filled rectangle."""
    type: Literal["rectangle"] = "rectangle"
    geometry: NormalizedRect
    colour: Colour


class ImageSpec(BaseModel):
    """One output image: its scale factors, background and elements."""
    name: str = Field(..., min_length=1, description="File name stem")
    width: float = Field(..., description="Width scale factor applied to each resolution")
    height: float = Field(..., description="Height scale factor applied to each resolution")
    background: Colour
    elements: List[SceneElement] = Field(default_factory=list, description="Painted in order")

    model_config = ConfigDict(frozen=True)


class SceneDescription(BaseModel):
    """Validated scene description."""
    output_path: Path = Field(..., description="Directory receiving the resolution folders")
    resolutions: List[Resolution] = Field(..., min_length=1)
    images: List[ImageSpec] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)


# Parsing Results
class ParseResult(BaseModel):
    """Result of scene parsing operation."""
    success: bool = Field(..., description="Whether parsing succeeded")
    scene: Optional[SceneDescription] = Field(None, description="Parsed scene")
    errors: List[str] = Field(default_factory=list, description="Parsing errors")
    warnings: List[str] = Field(default_factory=list, description="Parsing warnings")
    error_kind: Optional[ErrorKind] = Field(None, description="Kind of the first error")
    processing_time: Optional[float] = Field(None, description="Parsing time in seconds")


# Rendering Results
class RenderedImage(BaseModel):
    """One image file written by the pipeline."""
    image_name: str
    resolution: Resolution
    path: Path
    width: int = Field(..., ge=0, description="Canvas width in pixels")
    height: int = Field(..., ge=0, description="Canvas height in pixels")
    byte_count: int = Field(..., ge=0, description="Size of the RGBA pixel buffer")


class RenderReport(BaseModel):
    """Result of a full render run."""
    success: bool = Field(..., description="Whether every image was written")
    outputs: List[RenderedImage] = Field(default_factory=list, description="Files written")
    error: Optional[str] = Field(None, description="Error message if failed")
    error_kind: Optional[ErrorKind] = Field(None, description="Kind of the error if failed")
    processing_time: float = Field(0.0, description="Total processing time")
