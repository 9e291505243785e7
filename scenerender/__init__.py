"""
scenerender
===========

Render declarative scene descriptions into TGA raster images, one image
per requested output resolution.

This package provides:
- Scene description parsing and schema validation (JSON and YAML)
- Hex colour parsing
- Rasterization of normalized scene geometry at concrete resolutions
- A sequential render pipeline writing ``res{W}x{H}/{name}.tga`` files
- A command line entry point
"""

__version__ = "1.0.0"
