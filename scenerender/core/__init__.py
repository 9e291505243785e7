"""
Core Business Logic
==================

Core business logic modules for scene parsing and image rendering.

Modules:
- errors: Error taxonomy shared by every component
- scene: Scene description parsing and validation
- rendering: Colour parsing, rasterization, TGA encoding and the render pipeline
"""
