"""Command-line interface module for Valve Settings Parser.

This module provides the valve-settings tool for validating, formatting and
dumping settings files.
"""

from .main import main

__all__ = ["main"]
