"""
TGA Writer
==========

Encode RGBA pixel buffers as Truevision TGA files using Pillow.
Output is uncompressed 32-bit truecolor unless RLE is enabled in settings.
"""

from pathlib import Path
from typing import Any, Optional, Union
import struct

from PIL import Image  # type: ignore

from scenerender.config.logging import get_logger
from scenerender.config.settings import get_settings
from scenerender.core.errors import EncodingError
from scenerender.core.rendering.rasterizer import CHANNELS, PixelBuffer

logger = get_logger(__name__)

# Uncompressed truecolor, 32 bits per pixel, 8 alpha bits, top-left origin
TGA_TRUECOLOR = 2
TGA_DESCRIPTOR = 0x08 | 0x20


def empty_tga_header(width: int, height: int) -> bytes:
    """Header of a TGA file with no pixel data, for zero-area canvases."""
    return struct.pack(
        "<BBBHHBHHHHBB",
        0,  # id length
        0,  # no colour map
        TGA_TRUECOLOR,
        0, 0, 0,  # colour map specification
        0, 0,  # origin
        width,
        height,
        8 * CHANNELS,
        TGA_DESCRIPTOR,
    )


class TGAWriter:
    """Writes pixel buffers to disk as TGA images."""

    def __init__(self, rle: Optional[bool] = None):
        self.settings = get_settings()
        self.rle = self.settings.tga_rle if rle is None else rle
        self.logger: Any = logger.bind(component="tga_writer")  # structlog.BoundLoggerBase

    def write(self, path: Union[str, Path], buffer: PixelBuffer) -> int:
        """
        Write a pixel buffer to ``path``.

        Args:
            path: Destination file path
            buffer: RGBA pixels to encode

        Returns:
            Size of the written file in bytes

        Raises:
            EncodingError: If the file cannot be encoded or written
        """
        path = Path(path)
        try:
            if buffer.width == 0 or buffer.height == 0:
                path.write_bytes(empty_tga_header(buffer.width, buffer.height))
            else:
                image = Image.frombuffer(
                    "RGBA",
                    (buffer.width, buffer.height),
                    buffer.to_bytes(),
                    "raw",
                    "RGBA",
                    0,
                    1,
                )
                image.save(
                    path,
                    format="TGA",
                    compression="tga_rle" if self.rle else None,
                    orientation=1,
                )
        except (OSError, ValueError, struct.error) as e:
            error_msg = f"could not write {path}: {e}"
            self.logger.error("TGA encoding failed", path=str(path), error=str(e))
            raise EncodingError(error_msg) from e

        file_size = path.stat().st_size
        self.logger.debug(
            "Wrote TGA image",
            path=str(path),
            width=buffer.width,
            height=buffer.height,
            file_size=file_size,
            rle=self.rle,
        )
        return file_size
