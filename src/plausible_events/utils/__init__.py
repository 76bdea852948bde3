"""
Module: utils
Description: Package initialization for utility functions.

Current utilities:
- logger: Structured logging configuration and helpers
- urls: URL normalization for tracked locations
"""

__all__ = []
