"""Configuration for pattern discovery."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any

from geometric_patterns.exceptions import ConfigError


@dataclass
class DiscoveryConfig:
    """Configuration for repeated pattern discovery.

    Attributes:
        min_compression_ratio: Minimum compression ratio of reported TECs
            (0.0 reports all; values below 2.0 tend to report many trivial patterns).
        min_pattern_size: Minimum number of points in a reported pattern.
        min_occurrences: Minimum number of occurrences of a reported pattern.
        limit: Maximum number of reported patterns (None for no limit).
    """

    min_compression_ratio: float = 0.0
    min_pattern_size: int = 1
    min_occurrences: int = 1
    limit: int | None = None

    def validate(self) -> None:
        """Check that all values are in range.

        Raises:
            ConfigError: If a value is out of range.
        """
        if self.min_compression_ratio < 0.0:
            raise ConfigError(
                f"min_compression_ratio must be non-negative, was {self.min_compression_ratio}"
            )
        if self.min_pattern_size < 1:
            raise ConfigError(f"min_pattern_size must be at least 1, was {self.min_pattern_size}")
        if self.min_occurrences < 1:
            raise ConfigError(f"min_occurrences must be at least 1, was {self.min_occurrences}")
        if self.limit is not None and self.limit < 1:
            raise ConfigError(f"limit must be at least 1, was {self.limit}")

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DiscoveryConfig:
        """Create a configuration from a dictionary.

        Raises:
            ConfigError: If the dictionary has unknown keys or invalid values.
        """
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ConfigError(f"Unknown configuration keys: {', '.join(sorted(unknown))}")

        try:
            config = cls(**data)
            config.validate()
        except TypeError as e:
            raise ConfigError(f"Invalid configuration: {e}") from e
        return config

    def with_overrides(self, **overrides: Any) -> DiscoveryConfig:
        """Get a copy with the non-None overrides applied."""
        data = self.to_dict()
        data.update({k: v for k, v in overrides.items() if v is not None})
        return DiscoveryConfig.from_dict(data)


def load_config(path: Path | str) -> DiscoveryConfig:
    """Load a discovery configuration from a JSON file.

    The file may hold the settings at top level or under a "discovery" key.

    Args:
        path: Path to the JSON file.

    Returns:
        Validated DiscoveryConfig.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        ConfigError: If the file is not valid JSON or has invalid settings.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    try:
        data = json.loads(path.read_text())
    except json.JSONDecodeError as e:
        raise ConfigError(f"Failed to parse config file {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a JSON object")

    if "discovery" in data:
        data = data["discovery"]
        if not isinstance(data, dict):
            raise ConfigError("'discovery' must be a JSON object")

    return DiscoveryConfig.from_dict(data)
