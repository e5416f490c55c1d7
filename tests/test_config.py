"""Tests for discovery configuration."""

import json
from pathlib import Path

import pytest

from geometric_patterns.config import DiscoveryConfig, load_config
from geometric_patterns.exceptions import ConfigError, InvalidArgumentError


class TestDiscoveryConfig:
    """Tests for the DiscoveryConfig dataclass."""

    def test_defaults(self) -> None:
        """Test that defaults report every pattern."""
        config = DiscoveryConfig()
        config.validate()
        assert config.min_compression_ratio == 0.0
        assert config.min_pattern_size == 1
        assert config.min_occurrences == 1
        assert config.limit is None

    @pytest.mark.parametrize(
        "settings",
        [
            {"min_compression_ratio": -0.5},
            {"min_pattern_size": 0},
            {"min_occurrences": 0},
            {"limit": 0},
        ],
    )
    def test_validate_rejects_out_of_range(self, settings: dict) -> None:
        """Test range checks."""
        with pytest.raises(ConfigError):
            DiscoveryConfig(**settings).validate()

    def test_config_error_is_invalid_argument(self) -> None:
        """Test the exception hierarchy."""
        with pytest.raises(InvalidArgumentError):
            DiscoveryConfig(limit=-1).validate()

    def test_from_dict(self) -> None:
        """Test building from a dictionary."""
        config = DiscoveryConfig.from_dict({"min_compression_ratio": 2.0, "limit": 5})
        assert config.min_compression_ratio == 2.0
        assert config.limit == 5
        assert DiscoveryConfig.from_dict(config.to_dict()) == config

    def test_from_dict_unknown_key(self) -> None:
        """Test that unknown keys are rejected."""
        with pytest.raises(ConfigError, match="min_ratio"):
            DiscoveryConfig.from_dict({"min_ratio": 2.0})

    def test_from_dict_wrong_type(self) -> None:
        """Test that values of the wrong type are rejected."""
        with pytest.raises(ConfigError):
            DiscoveryConfig.from_dict({"min_pattern_size": "three"})

    def test_with_overrides(self) -> None:
        """Test that only given overrides apply."""
        config = DiscoveryConfig(min_pattern_size=3, limit=10)
        updated = config.with_overrides(min_pattern_size=None, limit=2)
        assert updated.min_pattern_size == 3
        assert updated.limit == 2
        assert config.limit == 10

    def test_with_overrides_validates(self) -> None:
        """Test that overrides are range checked."""
        with pytest.raises(ConfigError):
            DiscoveryConfig().with_overrides(min_occurrences=0)


class TestLoadConfig:
    """Tests for loading configuration files."""

    def test_load_top_level(self, tmp_path: Path) -> None:
        """Test settings at the top level of the file."""
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"min_compression_ratio": 1.5, "min_pattern_size": 2}))
        config = load_config(path)
        assert config.min_compression_ratio == 1.5
        assert config.min_pattern_size == 2

    def test_load_nested(self, tmp_path: Path) -> None:
        """Test settings under a discovery key."""
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"discovery": {"limit": 3}}))
        assert load_config(path).limit == 3

    def test_missing_file(self, tmp_path: Path) -> None:
        """Test loading a file that does not exist."""
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "missing.json")

    def test_invalid_json(self, tmp_path: Path) -> None:
        """Test loading a file that is not JSON."""
        path = tmp_path / "config.json"
        path.write_text("min_pattern_size = 3")
        with pytest.raises(ConfigError):
            load_config(path)

    def test_not_an_object(self, tmp_path: Path) -> None:
        """Test loading JSON that is not an object."""
        path = tmp_path / "config.json"
        path.write_text("[1, 2, 3]")
        with pytest.raises(ConfigError):
            load_config(path)
