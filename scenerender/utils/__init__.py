"""
Shared Utilities
===============

Common utilities and helper functions used across the application.

Modules:
- fs: Output directory creation and verification
"""
