"""
Configuration Management
=======================

Environment-based configuration using Pydantic Settings.

Components:
- settings: Application settings and environment configuration
- logging: Structured logging configuration
"""
