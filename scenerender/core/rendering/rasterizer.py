"""
Rasterizer
==========

Paint an image specification onto an RGBA pixel buffer at one resolution.

Normalized geometry is scaled by the canvas size and rounded half away
from zero. Elements are painted in list order and fully overwrite the
pixels they cover; colours are copied as-is, alpha included, with no
blending.
"""

import math
from dataclasses import dataclass
from typing import Any, Callable, Dict, Tuple, Type

import numpy as np

from scenerender.config.logging import get_logger
from scenerender.core.errors import EncodingError, UnsupportedElementType
from scenerender.models.schemas import (
    ImageSpec,
    RectangleElement,
    Resolution,
    SceneElement,
)

logger = get_logger(__name__)

CHANNELS = 4


def round_half_away(value: float) -> int:
    """Round to the nearest integer, ties away from zero (2.5 -> 3, -2.5 -> -3)."""
    rounded = int(math.floor(abs(value) + 0.5))
    return rounded if value >= 0 else -rounded


def canvas_size(image: ImageSpec, resolution: Resolution) -> Tuple[int, int]:
    """Absolute pixel size of ``image`` at ``resolution``, never negative."""
    width = round_half_away(image.width * resolution.width)
    height = round_half_away(image.height * resolution.height)
    return max(width, 0), max(height, 0)


def pixel_span(start: float, size: float, dimension: int) -> Tuple[int, int]:
    """
    Convert a normalized start/size pair into a ``[begin, end)`` pixel range.

    The end is computed from the unclamped start and clipped to
    ``dimension``; the begin is clipped to 0. An empty range has
    ``begin >= end``.
    """
    begin = round_half_away(start * dimension)
    end = min(begin + round_half_away(size * dimension), dimension)
    return max(begin, 0), end


@dataclass
class PixelBuffer:
    """Row-major RGBA pixels owned by a single render call."""

    width: int
    height: int
    data: np.ndarray

    @property
    def nbytes(self) -> int:
        return int(self.data.nbytes)

    def to_bytes(self) -> bytes:
        """Tightly packed ``width * height * 4`` bytes, top row first."""
        return np.ascontiguousarray(self.data).tobytes()

    def pixel(self, x: int, y: int) -> Tuple[int, int, int, int]:
        r, g, b, a = (int(channel) for channel in self.data[y, x])
        return (r, g, b, a)


class Rasterizer:
    """Paints scene elements with the painter's algorithm."""

    def __init__(self) -> None:
        self.logger: Any = logger.bind(component="rasterizer")  # structlog.BoundLoggerBase
        self._painters: Dict[Type[SceneElement], Callable[[np.ndarray, Any], None]] = {
            RectangleElement: self._paint_rectangle,
        }

    @property
    def supported_elements(self) -> Tuple[Type[SceneElement], ...]:
        return tuple(self._painters)

    def render(self, image: ImageSpec, resolution: Resolution) -> PixelBuffer:
        """
        Render one image at one resolution.

        Args:
            image: Image to render
            resolution: Target resolution

        Returns:
            Fully painted pixel buffer

        Raises:
            UnsupportedElementType: If an element has no painting routine
            EncodingError: If the canvas is too large to allocate
        """
        try:
            width, height = canvas_size(image, resolution)
            canvas = np.empty((height, width, CHANNELS), dtype=np.uint8)
        except (OverflowError, MemoryError, ValueError) as e:
            self.logger.error(
                "Canvas allocation failed",
                image=image.name,
                resolution=resolution.directory_name,
                error=str(e),
            )
            raise EncodingError(
                f"could not allocate canvas for {image.name} at {resolution.directory_name}: {e}"
            ) from e

        canvas[:, :] = image.background.as_tuple()

        for index, element in enumerate(image.elements):
            painter = self._painters.get(type(element))
            if painter is None:
                raise UnsupportedElementType(
                    element.type, f"{image.name}.elements[{index}]"
                )
            try:
                painter(canvas, element)
            except OverflowError as e:
                raise EncodingError(
                    f"could not paint {image.name}.elements[{index}]: {e}"
                ) from e

        self.logger.debug(
            "Rasterized image",
            image=image.name,
            resolution=resolution.directory_name,
            width=width,
            height=height,
            elements=len(image.elements),
        )
        return PixelBuffer(width=width, height=height, data=canvas)

    def _paint_rectangle(self, canvas: np.ndarray, element: RectangleElement) -> None:
        height, width = canvas.shape[:2]
        geometry = element.geometry

        x0, x1 = pixel_span(geometry.x, geometry.width, width)
        y0, y1 = pixel_span(geometry.y, geometry.height, height)
        if x0 >= x1 or y0 >= y1:
            return

        canvas[y0:y1, x0:x1] = element.colour.as_tuple()
