"""
Test Configuration
==================

Pytest configuration with fixtures for all test types.
Provides isolated settings, output directories and sample scenes.
"""

import json
import logging
from pathlib import Path
from typing import Any, Callable, Dict, Generator

import pytest
import structlog

from scenerender.config import settings as settings_module
from scenerender.config.settings import Settings, reload_settings
from scenerender.core.rendering.pipeline import RenderPipeline
from scenerender.core.rendering.rasterizer import Rasterizer

from tests.utils.data_generators import SceneDataGenerator


@pytest.fixture(autouse=True)
def test_settings(monkeypatch: pytest.MonkeyPatch) -> Generator[Settings, None, None]:
    """Fresh testing settings for every test."""
    monkeypatch.setenv("SCENERENDER_ENVIRONMENT", "testing")
    monkeypatch.setenv("SCENERENDER_LOG_LEVEL", "DEBUG")
    yield reload_settings()
    settings_module.settings = None


@pytest.fixture
def reset_logging() -> Generator[None, None, None]:
    """Undo logging configuration done by code under test."""
    yield
    structlog.reset_defaults()
    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(logging.WARNING)


@pytest.fixture
def output_dir(tmp_path: Path) -> Path:
    """Directory receiving rendered resolution folders."""
    return tmp_path / "renders"


@pytest.fixture
def write_scene(tmp_path: Path) -> Callable[..., Path]:
    """Write a scene document to a file and return its path."""

    def _write(document: Dict[str, Any], name: str = "scene.json") -> Path:
        path = tmp_path / name
        if name.endswith((".yaml", ".yml")):
            path.write_text(SceneDataGenerator.to_yaml(document), encoding="utf-8")
        else:
            path.write_text(json.dumps(document, indent=2), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def rasterizer() -> Rasterizer:
    """Rasterizer instance."""
    return Rasterizer()


@pytest.fixture
def pipeline() -> RenderPipeline:
    """Render pipeline with default collaborators."""
    return RenderPipeline()


@pytest.fixture
def centred_square_json(output_dir: Path) -> str:
    """Scene with a white square centred in a black canvas."""
    return json.dumps(SceneDataGenerator.centred_square(output_dir))
