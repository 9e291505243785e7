"""
File System Helpers
===================

Output directory creation and verification.
"""

from pathlib import Path
from typing import Union

from scenerender.config.logging import get_logger
from scenerender.core.errors import OutputDirectoryError

logger = get_logger(__name__)


def ensure_directory(path: Union[str, Path]) -> Path:
    """
    Create ``path`` and its parents if needed and verify it is a directory.

    Args:
        path: Directory to create

    Returns:
        The directory as a Path

    Raises:
        OutputDirectoryError: If creation fails or ``path`` is not a directory
    """
    path = Path(path)
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        logger.error("Output directory creation failed", path=str(path), error=str(e))
        raise OutputDirectoryError(f"could not create output folder {path}: {e}") from e

    if not path.is_dir():
        raise OutputDirectoryError(f"could not create output folder {path}: not a directory")

    return path
