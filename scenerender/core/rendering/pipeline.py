"""
Render Pipeline
===============

Drive the rasterizer over every (resolution, image) pair of a scene and
hand each finished buffer to the TGA writer.

Resolutions form the outer loop so each ``res{W}x{H}`` folder is created
once, before anything is written into it. The run stops at the first
error; files already written stay on disk.
"""

from pathlib import Path
from typing import Any, List, Optional, Union
import time

from scenerender.config.logging import get_logger
from scenerender.config.settings import get_settings
from scenerender.core.errors import SceneRenderError
from scenerender.core.rendering.rasterizer import Rasterizer
from scenerender.core.rendering.tga_writer import TGAWriter
from scenerender.core.scene.parser import load_scene
from scenerender.models.schemas import (
    ImageSpec,
    RenderedImage,
    RenderReport,
    Resolution,
    SceneDescription,
)
from scenerender.utils.fs import ensure_directory

logger = get_logger(__name__)


class RenderPipeline:
    """Sequential renderer for complete scene descriptions."""

    def __init__(
        self,
        rasterizer: Optional[Rasterizer] = None,
        writer: Optional[TGAWriter] = None,
    ):
        self.settings = get_settings()
        self.logger: Any = logger.bind(component="pipeline")  # structlog.BoundLoggerBase
        self.rasterizer = rasterizer or Rasterizer()
        self.writer = writer or TGAWriter()

    def output_path(self, directory: Path, image: ImageSpec) -> Path:
        """File path of ``image`` inside a resolution folder."""
        return directory / f"{image.name}.{self.settings.output_extension}"

    def run(self, scene: SceneDescription) -> RenderReport:
        """
        Render every image of ``scene`` at every resolution.

        Args:
            scene: Validated scene description

        Returns:
            RenderReport listing written files, or the first error
        """
        start_time = time.time()
        outputs: List[RenderedImage] = []

        self.logger.info(
            "Rendering scene",
            output_path=str(scene.output_path),
            resolutions=len(scene.resolutions),
            images=len(scene.images),
        )

        try:
            for resolution in scene.resolutions:
                directory = ensure_directory(scene.output_path / resolution.directory_name)
                for image in scene.images:
                    outputs.append(self._render_image(image, resolution, directory))

        except SceneRenderError as e:
            self.logger.error(
                "Render run aborted",
                error=str(e),
                kind=e.kind.value,
                written=len(outputs),
            )
            return RenderReport(
                success=False,
                outputs=outputs,
                error=str(e),
                error_kind=e.kind,
                processing_time=time.time() - start_time,
            )

        self.logger.info("Render run completed", written=len(outputs))
        return RenderReport(
            success=True,
            outputs=outputs,
            processing_time=time.time() - start_time,
        )

    def _render_image(self, image: ImageSpec, resolution: Resolution, directory: Path) -> RenderedImage:
        path = self.output_path(directory, image)

        buffer = self.rasterizer.render(image, resolution)
        self.writer.write(path, buffer)

        rendered = RenderedImage(
            image_name=image.name,
            resolution=resolution,
            path=path,
            width=buffer.width,
            height=buffer.height,
            byte_count=buffer.nbytes,
        )
        return rendered


def render_scene_file(
    path: Union[str, Path],
    parser_type: Optional[str] = None,
    pipeline: Optional[RenderPipeline] = None,
) -> RenderReport:
    """
    Load, validate and render a description file.

    Args:
        path: Description file path
        parser_type: Optional parser type override
        pipeline: Pipeline to use; a default one is built when omitted

    Returns:
        RenderReport; parse failures are reported with their error kind
    """
    start_time = time.time()
    result = load_scene(path, parser_type)

    if not result.success or result.scene is None:
        return RenderReport(
            success=False,
            error=result.errors[0] if result.errors else "invalid description",
            error_kind=result.error_kind,
            processing_time=time.time() - start_time,
        )

    pipeline = pipeline or RenderPipeline()
    return pipeline.run(result.scene)
