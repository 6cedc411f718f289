"""Diagnostic and metric types shared by the parser layers.

These objects travel inside :class:`~valve_settings_parser.tree.builder.ParseResult`
so callers can present failures and timings without re-parsing.
"""

import time
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, Optional


class DiagnosticSeverity(Enum):
    """Severity levels for diagnostic entries."""

    DEBUG = auto()
    INFO = auto()
    WARNING = auto()
    ERROR = auto()      # The parse was aborted


@dataclass
class DiagnosticEntry:
    """Single diagnostic entry anchored to a source line."""

    severity: DiagnosticSeverity
    message: str
    component: str
    line_number: Optional[int] = None
    details: Optional[Dict[str, Any]] = None
    timestamp: float = field(default_factory=time.time)
    correlation_id: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate diagnostic entry."""
        if not self.message:
            raise ValueError("Diagnostic message cannot be empty")
        if not self.component:
            raise ValueError("Diagnostic component cannot be empty")
        if self.line_number is not None and self.line_number < 0:
            raise ValueError("Diagnostic line number must be >= 0")

    def to_dict(self) -> Dict[str, Any]:
        """Convert the entry to a JSON-ready dictionary."""
        result: Dict[str, Any] = {
            "severity": self.severity.name,
            "message": self.message,
            "component": self.component,
        }
        if self.line_number is not None:
            result["line_number"] = self.line_number
        if self.details:
            result["details"] = dict(self.details)
        return result


@dataclass
class PerformanceMetrics:
    """Counters and timings collected for one parse call."""

    processing_time_ms: float = 0.0
    memory_used_bytes: int = 0
    lines_processed: int = 0
    characters_processed: int = 0
    tokens_generated: int = 0
    nodes_built: int = 0
    max_depth: int = 0

    @property
    def characters_per_second(self) -> float:
        """Calculate characters processed per second."""
        if self.processing_time_ms <= 0:
            return 0.0
        return (self.characters_processed * 1000.0) / self.processing_time_ms

    @property
    def tokens_per_second(self) -> float:
        """Calculate tokens generated per second."""
        if self.processing_time_ms <= 0:
            return 0.0
        return (self.tokens_generated * 1000.0) / self.processing_time_ms

    def to_dict(self) -> Dict[str, Any]:
        return {
            "processing_time_ms": self.processing_time_ms,
            "memory_used_bytes": self.memory_used_bytes,
            "lines_processed": self.lines_processed,
            "characters_processed": self.characters_processed,
            "tokens_generated": self.tokens_generated,
            "nodes_built": self.nodes_built,
            "max_depth": self.max_depth,
        }
