"""
Data Models
===========

Pydantic data models for scene descriptions and render results.

Models:
- schemas: Scene, element, parse result and render report models
"""
