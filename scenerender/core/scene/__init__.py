"""
Scene Processing Module
=======================

Scene description parsing and validation.

Components:
- parser: JSON/YAML decoding, Cerberus schema validation and model conversion
"""
