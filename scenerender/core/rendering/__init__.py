"""
Rendering Module
===============

Pixel rendering and image file output.

Components:
- colour: Hex colour parsing
- rasterizer: Normalized geometry to RGBA pixel buffers
- tga_writer: Pillow-based TGA encoding
- pipeline: Resolution x image render loop
"""
