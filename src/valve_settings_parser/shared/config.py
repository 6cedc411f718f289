"""Configuration objects for valve settings parsing.

The parser itself needs very little tuning; configuration covers the
optional nesting guard, metric collection and the logging level used by
the command-line tool.
"""

import json
from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

VALID_LOGGING_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
HARDENED_MAX_DEPTH = 64


class ConfigError(Exception):
    """Base exception for configuration errors."""


class ConfigValidationError(ConfigError):
    """Exception raised when configuration validation fails."""

    def __init__(self, message: str, field_name: Optional[str] = None,
                 suggestions: Optional[List[str]] = None):
        super().__init__(message)
        self.field_name = field_name
        self.suggestions = suggestions or []


@dataclass(frozen=True)
class ParserConfig:
    """Immutable configuration for parser and caller layers.

    Thread-safe due to frozen dataclass implementation, so one instance may
    be shared by concurrent parses.
    """

    # Tree building
    max_depth: Optional[int] = None  # None disables the nesting guard

    # Metrics
    enable_metrics: bool = True
    track_memory: bool = False

    # Caller layer
    encoding: str = "utf-8"
    logging_level: str = "WARNING"

    # Metadata
    name: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate the configuration values."""
        self._check_types()
        if self.max_depth is not None and self.max_depth < 1:
            raise ConfigValidationError(
                "max_depth must be >= 1 or None",
                field_name="max_depth",
                suggestions=["Use None to disable the nesting guard"],
            )
        if self.logging_level not in VALID_LOGGING_LEVELS:
            raise ConfigValidationError(
                f"logging_level must be one of {VALID_LOGGING_LEVELS}",
                field_name="logging_level",
            )
        if not self.encoding:
            raise ConfigValidationError(
                "encoding cannot be empty", field_name="encoding"
            )

    def _check_types(self) -> None:
        # bool is an int subclass, so it is rejected explicitly for max_depth
        if self.max_depth is not None and (
            isinstance(self.max_depth, bool) or not isinstance(self.max_depth, int)
        ):
            raise ConfigValidationError(
                f"max_depth must be an integer or None, got {self.max_depth!r}",
                field_name="max_depth",
            )
        for name in ("enable_metrics", "track_memory"):
            if not isinstance(getattr(self, name), bool):
                raise ConfigValidationError(
                    f"{name} must be true or false, got {getattr(self, name)!r}",
                    field_name=name,
                )
        for name in ("encoding", "logging_level"):
            if not isinstance(getattr(self, name), str):
                raise ConfigValidationError(
                    f"{name} must be a string, got {getattr(self, name)!r}",
                    field_name=name,
                )
        if self.name is not None and not isinstance(self.name, str):
            raise ConfigValidationError(
                f"name must be a string or None, got {self.name!r}",
                field_name="name",
            )

    def override(self, **kwargs: Any) -> "ParserConfig":
        """Create a new configuration with specific overrides.

        Example:
            >>> config = ParserConfig().override(max_depth=32)
            >>> config.max_depth
            32
        """
        known = {f.name for f in fields(self)}
        unknown = sorted(set(kwargs) - known)
        if unknown:
            raise ConfigValidationError(
                f"Unknown configuration fields: {', '.join(unknown)}",
                field_name=unknown[0],
            )
        return replace(self, **kwargs)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ParserConfig":
        """Create configuration from a dictionary, ignoring unknown keys."""
        if not isinstance(data, dict):
            raise ConfigValidationError("Configuration data must be an object")
        known = {f.name for f in fields(cls)}
        return cls(**{key: value for key, value in data.items() if key in known})

    @classmethod
    def from_json(cls, json_str: str) -> "ParserConfig":
        try:
            data = json.loads(json_str)
        except json.JSONDecodeError as e:
            raise ConfigValidationError(f"Invalid configuration JSON: {e}") from e
        return cls.from_dict(data)

    @classmethod
    def from_file(cls, config_path: Union[str, Path]) -> "ParserConfig":
        """Load configuration from a JSON file."""
        path = Path(config_path)
        try:
            content = path.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigError(f"Could not read config file {path}: {e}") from e
        return cls.from_json(content)

    # Preset factory methods
    @classmethod
    def default(cls) -> "ParserConfig":
        """Create the default configuration (no nesting guard)."""
        return cls(name="default")

    @classmethod
    def hardened(cls) -> "ParserConfig":
        """Create a preset for untrusted input with a bounded nesting depth."""
        return cls(
            max_depth=HARDENED_MAX_DEPTH,
            track_memory=True,
            name="hardened",
        )
