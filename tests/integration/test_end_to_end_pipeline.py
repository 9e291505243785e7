"""
Integration Tests for End-to-End Pipeline
=========================================

Integration tests for the scene to TGA rendering pipeline, from a
description file on disk to image files in resolution folders.
"""

import pytest

from scenerender.core.errors import ErrorKind
from scenerender.core.rendering.pipeline import RenderPipeline, render_scene_file
from scenerender.core.scene.parser import parse_scene
from scenerender.models.schemas import RenderedImage

from tests.utils.assertions import (
    assert_failed_render_report,
    assert_filled_region,
    assert_successful_parse_result,
    assert_successful_render_report,
    assert_tga_image,
    assert_uniform_colour,
)
from tests.utils.data_generators import SceneDataGenerator

BLACK = (0, 0, 0, 255)
WHITE = (255, 255, 255, 255)
RED = (255, 0, 0, 255)


@pytest.mark.integration
class TestScenarios:
    """Render the reference scenes and inspect the written files."""

    def test_blank_canvas(self, write_scene, output_dir):
        """Test a single black canvas without elements."""
        report = render_scene_file(write_scene(SceneDataGenerator.blank_canvas(output_dir)))

        assert_successful_render_report(report, expected_files=1)
        image = assert_tga_image(output_dir / "res100x100" / "canvas.tga", 100, 100)
        assert_uniform_colour(image, BLACK)

    def test_centred_square(self, write_scene, output_dir):
        """Test a white square centred in a black canvas."""
        report = render_scene_file(write_scene(SceneDataGenerator.centred_square(output_dir)))

        assert_successful_render_report(report, expected_files=1)
        image = assert_tga_image(output_dir / "res100x100" / "canvas.tga", 100, 100)

        assert_filled_region(image, WHITE, (25, 25, 75, 75))
        assert image.getpixel((24, 24)) == BLACK
        assert image.getpixel((75, 75)) == BLACK

    def test_two_resolutions(self, write_scene, output_dir):
        """Test one image rendered at two resolutions."""
        report = render_scene_file(write_scene(SceneDataGenerator.two_resolutions(output_dir)))

        assert_successful_render_report(report, expected_files=2)

        small = assert_tga_image(output_dir / "res50x50" / "canvas.tga", 50, 50)
        large = assert_tga_image(output_dir / "res100x100" / "canvas.tga", 100, 100)
        assert_filled_region(small, WHITE, (13, 13, 38, 38))
        assert_filled_region(large, WHITE, (25, 25, 75, 75))

    def test_clipped_rectangle(self, write_scene, output_dir):
        """Test a rectangle past the canvas edge is clipped."""
        report = render_scene_file(write_scene(SceneDataGenerator.clipped_rectangle(output_dir)))

        assert_successful_render_report(report, expected_files=1)
        image = assert_tga_image(output_dir / "res100x100" / "canvas.tga", 100, 100)

        assert_filled_region(image, RED, (75, 80, 100, 100))

    def test_unsupported_element(self, write_scene, output_dir):
        """Test an unknown element type fails before anything is written."""
        report = render_scene_file(write_scene(SceneDataGenerator.ellipse_scene(output_dir)))

        assert_failed_render_report(report, ErrorKind.UNSUPPORTED_ELEMENT_TYPE, "ellipse")
        assert report.outputs == []
        assert not output_dir.exists()


@pytest.mark.integration
class TestPipeline:
    """Test RenderPipeline behaviour."""

    def _scene(self, document):
        result = parse_scene(SceneDataGenerator.to_json(document))
        assert_successful_parse_result(result)
        return result.scene

    def test_report_lists_outputs_in_order(self, pipeline, output_dir):
        """Test outputs follow resolution-major order."""
        report = pipeline.run(self._scene(SceneDataGenerator.gallery(output_dir)))

        assert_successful_render_report(report, expected_files=4)
        assert [
            (output.resolution.directory_name, output.image_name) for output in report.outputs
        ] == [
            ("res64x48", "banner"),
            ("res64x48", "icon"),
            ("res128x96", "banner"),
            ("res128x96", "icon"),
        ]

        banner = report.outputs[0]
        assert isinstance(banner, RenderedImage)
        assert banner.path == output_dir / "res64x48" / "banner.tga"
        assert (banner.width, banner.height) == (64, 12)
        assert banner.byte_count == 64 * 12 * 4

    def test_gallery_pixels(self, pipeline, output_dir):
        """Test mixed scale factors and translucent colours."""
        pipeline.run(self._scene(SceneDataGenerator.gallery(output_dir)))

        banner = assert_tga_image(output_dir / "res128x96" / "banner.tga", 128, 24)
        assert banner.getpixel((0, 0)) == (255, 255, 255, 0x88)
        assert banner.getpixel((0, 23)) == (30, 144, 255, 255)
        assert banner.getpixel((64, 12)) == BLACK

        icon = assert_tga_image(output_dir / "res128x96" / "icon.tga", 64, 48)
        assert icon.getpixel((0, 0)) == (0, 0, 0, 0)
        assert icon.getpixel((32, 24)) == (255, 0, 0, 0x80)

    def test_idempotent(self, pipeline, output_dir):
        """Test re-running a scene rewrites byte-identical files."""
        scene = self._scene(SceneDataGenerator.gallery(output_dir))

        first = pipeline.run(scene)
        contents = {output.path: output.path.read_bytes() for output in first.outputs}
        second = pipeline.run(scene)

        assert_successful_render_report(second, expected_files=4)
        for output in second.outputs:
            assert output.path.read_bytes() == contents[output.path]

    def test_zero_area_image(self, pipeline, output_dir):
        """Test images rounding to zero pixels still produce a file."""
        document = SceneDataGenerator.scene(
            output_dir, images=[SceneDataGenerator.image("sliver", width=0.0)]
        )
        report = pipeline.run(self._scene(document))

        assert_successful_render_report(report, expected_files=1)
        assert report.outputs[0].byte_count == 0
        assert (output_dir / "res100x100" / "sliver.tga").stat().st_size == 18

    def test_no_images_creates_resolution_folders(self, pipeline, output_dir):
        """Test a scene without images still creates its folders."""
        document = SceneDataGenerator.scene(output_dir, resolutions=[[10, 10], [20, 20]], images=[])
        report = pipeline.run(self._scene(document))

        assert_successful_render_report(report, expected_files=0)
        assert (output_dir / "res10x10").is_dir()
        assert (output_dir / "res20x20").is_dir()

    def test_duplicate_names_overwrite(self, pipeline, output_dir):
        """Test the later of two same-named images wins."""
        document = SceneDataGenerator.scene(
            output_dir,
            images=[
                SceneDataGenerator.image("same", background="#ff0000"),
                SceneDataGenerator.image("same", background="#ffffff"),
            ],
        )
        report = pipeline.run(self._scene(document))

        assert_successful_render_report(report, expected_files=2)
        image = assert_tga_image(output_dir / "res100x100" / "same.tga", 100, 100)
        assert_uniform_colour(image, WHITE)

    def test_output_path_is_file(self, pipeline, tmp_path):
        """Test an output path occupied by a file stops the run."""
        blocker = tmp_path / "renders"
        blocker.write_text("in the way")

        report = pipeline.run(self._scene(SceneDataGenerator.centred_square(blocker)))

        assert_failed_render_report(
            report, ErrorKind.OUTPUT_DIRECTORY_ERROR, "could not create output folder"
        )
        assert report.outputs == []

    def test_stops_at_first_failure(self, output_dir):
        """Test files written before a failure are kept and reported."""
        (output_dir / "res20x20").mkdir(parents=True)
        (output_dir / "res20x20" / "canvas.tga").mkdir()

        document = SceneDataGenerator.scene(output_dir, resolutions=[[10, 10], [20, 20], [30, 30]])
        report = RenderPipeline().run(self._scene(document))

        assert_failed_render_report(report, ErrorKind.ENCODING_ERROR, "could not write")
        assert [output.resolution.directory_name for output in report.outputs] == ["res10x10"]
        assert (output_dir / "res10x10" / "canvas.tga").is_file()
        assert not (output_dir / "res30x30").exists()

    def test_unallocatable_canvas(self, pipeline, output_dir):
        """Test a canvas too large for memory fails the run with a report."""
        document = SceneDataGenerator.scene(
            output_dir,
            resolutions=[[65535, 65535]],
            images=[SceneDataGenerator.image("vast", width=1e6, height=1e6)],
        )
        report = pipeline.run(self._scene(document))

        assert_failed_render_report(report, ErrorKind.ENCODING_ERROR, "could not allocate canvas")
        assert report.outputs == []
        assert not (output_dir / "res65535x65535" / "vast.tga").exists()

    def test_output_extension_setting(self, monkeypatch, output_dir):
        """Test the written file extension follows settings."""
        from scenerender.config.settings import reload_settings

        monkeypatch.setenv("SCENERENDER_OUTPUT_EXTENSION", ".targa")
        reload_settings()

        report = RenderPipeline().run(self._scene(SceneDataGenerator.blank_canvas(output_dir)))

        assert_successful_render_report(report, expected_files=1)
        assert report.outputs[0].path.name == "canvas.targa"


@pytest.mark.integration
class TestRenderSceneFile:
    """Test the file-level entry point."""

    def test_yaml_description(self, write_scene, output_dir):
        path = write_scene(SceneDataGenerator.centred_square(output_dir), name="scene.yml")
        report = render_scene_file(path)

        assert_successful_render_report(report, expected_files=1)

    def test_missing_file(self, tmp_path):
        report = render_scene_file(tmp_path / "absent.json")

        assert_failed_render_report(report, ErrorKind.FILE_OPEN_ERROR, "could not open")

    def test_malformed_file(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text('{"outputPath": ', encoding="utf-8")

        report = render_scene_file(path)

        assert_failed_render_report(report, ErrorKind.MALFORMED_INPUT)

    def test_invalid_colour(self, write_scene, output_dir):
        """Test a colour error aborts the run before any folder is created."""
        document = SceneDataGenerator.centred_square(output_dir)
        document["images"][0]["elements"][0]["colour"] = "#12345"

        report = render_scene_file(write_scene(document))

        assert_failed_render_report(
            report, ErrorKind.INVALID_COLOR_FORMAT, "images[0].elements[0].colour"
        )
        assert not output_dir.exists()

    def test_custom_pipeline(self, write_scene, output_dir):
        """Test a supplied pipeline is used."""
        from scenerender.core.rendering.tga_writer import TGAWriter

        pipeline = RenderPipeline(writer=TGAWriter(rle=True))
        report = render_scene_file(
            write_scene(SceneDataGenerator.blank_canvas(output_dir)), pipeline=pipeline
        )

        assert_successful_render_report(report, expected_files=1)
        assert (output_dir / "res100x100" / "canvas.tga").read_bytes()[2] == 10
