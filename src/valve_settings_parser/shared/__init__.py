"""Shared utilities for valve settings parsing.

This module provides the exception hierarchy, configuration, diagnostic and
metric types, and logging helpers used across all layers.
"""

from .config import (
    ConfigError,
    ConfigValidationError,
    ParserConfig,
)
from .errors import (
    InvalidNode,
    MalformedDocument,
    ParseError,
    SettingsError,
    TokenError,
    ValidationError,
)
from .logging import (
    CorrelationLogger,
    get_logger,
)
from .result import (
    DiagnosticEntry,
    DiagnosticSeverity,
    PerformanceMetrics,
)

__all__ = [
    "ConfigError",
    "ConfigValidationError",
    "ParserConfig",
    "InvalidNode",
    "MalformedDocument",
    "ParseError",
    "SettingsError",
    "TokenError",
    "ValidationError",
    "CorrelationLogger",
    "get_logger",
    "DiagnosticEntry",
    "DiagnosticSeverity",
    "PerformanceMetrics",
]
