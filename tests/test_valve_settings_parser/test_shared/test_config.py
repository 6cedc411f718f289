"""Comprehensive tests for configuration system."""

import json
from pathlib import Path

import pytest

from valve_settings_parser.shared.config import (
    HARDENED_MAX_DEPTH,
    ConfigError,
    ConfigValidationError,
    ParserConfig,
)


class TestParserConfig:
    """Test suite for ParserConfig."""

    def test_default_configuration(self):
        """Test default parser configuration values."""
        config = ParserConfig()

        assert config.max_depth is None
        assert config.enable_metrics is True
        assert config.track_memory is False
        assert config.encoding == "utf-8"
        assert config.logging_level == "WARNING"
        assert config.name is None

    def test_configuration_is_frozen(self):
        config = ParserConfig()

        with pytest.raises(AttributeError):
            config.max_depth = 3  # type: ignore[misc]

    def test_validation_failures(self):
        """Test configuration validation failures."""
        with pytest.raises(ConfigValidationError, match="max_depth must be >= 1") as exc_info:
            ParserConfig(max_depth=0)
        assert exc_info.value.field_name == "max_depth"
        assert exc_info.value.suggestions

        with pytest.raises(ConfigValidationError, match="logging_level"):
            ParserConfig(logging_level="LOUD")

        with pytest.raises(ConfigValidationError, match="encoding cannot be empty"):
            ParserConfig(encoding="")

    def test_validation_error_is_config_error(self):
        with pytest.raises(ConfigError):
            ParserConfig(max_depth=-5)

    @pytest.mark.parametrize(
        "field_name, value",
        [
            ("max_depth", "5"),
            ("max_depth", 2.5),
            ("max_depth", True),
            ("enable_metrics", "yes"),
            ("track_memory", 1),
            ("encoding", 8),
            ("logging_level", 10),
            ("name", ["hardened"]),
        ],
    )
    def test_wrong_types_are_rejected(self, field_name, value):
        """Test that values of the wrong type fail validation cleanly."""
        with pytest.raises(ConfigValidationError) as exc_info:
            ParserConfig(**{field_name: value})
        assert exc_info.value.field_name == field_name

    def test_wrong_types_from_json(self):
        with pytest.raises(ConfigValidationError, match="max_depth must be an integer"):
            ParserConfig.from_json('{"max_depth": "5"}')


class TestConfigOverride:
    """Test creating modified copies of a configuration."""

    def test_override(self):
        base = ParserConfig()
        config = base.override(max_depth=16, track_memory=True)

        assert config.max_depth == 16
        assert config.track_memory is True
        assert base.max_depth is None

    def test_override_validates(self):
        with pytest.raises(ConfigValidationError):
            ParserConfig().override(max_depth=0)

    def test_override_rejects_unknown_fields(self):
        with pytest.raises(ConfigValidationError, match="Unknown configuration fields") as exc_info:
            ParserConfig().override(strict=True)
        assert exc_info.value.field_name == "strict"


class TestConfigSerialization:
    """Test dictionary, JSON and file round trips."""

    def test_to_dict(self):
        assert ParserConfig(max_depth=4).to_dict() == {
            "max_depth": 4,
            "enable_metrics": True,
            "track_memory": False,
            "encoding": "utf-8",
            "logging_level": "WARNING",
            "name": None,
        }

    def test_json_round_trip(self):
        config = ParserConfig(max_depth=4, encoding="latin-1", name="custom")

        assert ParserConfig.from_json(config.to_json()) == config

    def test_from_dict_ignores_unknown_keys(self):
        config = ParserConfig.from_dict({"max_depth": 2, "comment": "for mods"})

        assert config.max_depth == 2

    def test_from_dict_rejects_non_objects(self):
        with pytest.raises(ConfigValidationError, match="must be an object"):
            ParserConfig.from_dict([1, 2])  # type: ignore[arg-type]

    def test_from_json_invalid(self):
        with pytest.raises(ConfigValidationError, match="Invalid configuration JSON"):
            ParserConfig.from_json("{not json")

    def test_from_file(self, tmp_path: Path):
        path = tmp_path / "parser.json"
        path.write_text(json.dumps({"logging_level": "DEBUG"}), encoding="utf-8")

        assert ParserConfig.from_file(path).logging_level == "DEBUG"
        assert ParserConfig.from_file(str(path)).logging_level == "DEBUG"

    def test_from_missing_file(self, tmp_path: Path):
        with pytest.raises(ConfigError, match="Could not read config file"):
            ParserConfig.from_file(tmp_path / "missing.json")


class TestPresets:
    """Test preset factory methods."""

    def test_default_preset(self):
        config = ParserConfig.default()

        assert config.name == "default"
        assert config.max_depth is None

    def test_hardened_preset(self):
        config = ParserConfig.hardened()

        assert config.name == "hardened"
        assert config.max_depth == HARDENED_MAX_DEPTH
        assert config.track_memory is True
