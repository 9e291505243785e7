"""
Test Suite
==========

Test suite matching the scenerender/ package structure.

Test Categories:
- unit: Unit tests for individual components
- integration: End-to-end rendering and command line tests
"""
