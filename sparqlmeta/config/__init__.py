#!/usr/bin/env python3
"""
Configuration management for sparqlmeta.

Parser resource ceilings and operational settings. Values come from the
dataclass defaults, then environment variables, then the first JSON config
file found.

Usage:
    from sparqlmeta.config import ParserLimits, get_config

    limits = ParserLimits(max_depth=50)
    config = get_config()
    print(config.limits.max_depth)
"""

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


# Default ceilings
DEFAULT_MAX_DEPTH = 200
DEFAULT_MAX_INPUT_LENGTH = 1_000_000   # characters
DEFAULT_MAX_TOKENS = 250_000

# Each nesting level costs a few interpreter frames
MAX_SUPPORTED_DEPTH = 250


@dataclass(frozen=True)
class ParserLimits:
    """Ceilings applied to every parse."""
    max_depth: int = DEFAULT_MAX_DEPTH
    max_input_length: int = DEFAULT_MAX_INPUT_LENGTH
    max_tokens: int = DEFAULT_MAX_TOKENS

    def __post_init__(self):
        for name in ("max_depth", "max_input_length", "max_tokens"):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool) or value < 1:
                raise ValueError(f"{name} must be a positive integer, got {value!r}")
        if self.max_depth > MAX_SUPPORTED_DEPTH:
            raise ValueError(
                f"max_depth {self.max_depth} exceeds supported maximum of {MAX_SUPPORTED_DEPTH}"
            )


@dataclass
class OperationalConfig:
    """Operational configuration."""
    log_level: str = "WARNING"


@dataclass
class AnalyzerConfig:
    """Main sparqlmeta configuration."""
    limits: ParserLimits = field(default_factory=ParserLimits)
    operational: OperationalConfig = field(default_factory=OperationalConfig)
    load_environment: bool = True

    def __post_init__(self):
        """Load configuration from environment and files."""
        if self.load_environment:
            self._load_from_environment()
            self._load_from_config_files()

    def _load_from_environment(self):
        """Load configuration from environment variables."""
        overrides = {}
        for name, env_var in (("max_depth", "SPARQLMETA_MAX_DEPTH"),
                              ("max_input_length", "SPARQLMETA_MAX_INPUT_LENGTH"),
                              ("max_tokens", "SPARQLMETA_MAX_TOKENS")):
            raw = os.getenv(env_var)
            if raw is not None:
                try:
                    overrides[name] = int(raw)
                except ValueError:
                    raise ValueError(f"{env_var} must be an integer, got {raw!r}") from None
        if overrides:
            self._update_limits(overrides)

        self.operational.log_level = os.getenv('SPARQLMETA_LOG_LEVEL', self.operational.log_level)

    def _load_from_config_files(self):
        """Load configuration from the first config file found."""
        config_paths = [
            Path.home() / '.sparqlmeta' / 'config.json',
            Path.cwd() / 'sparqlmeta.json',
        ]
        env_file = os.getenv('SPARQLMETA_CONFIG_FILE')
        if env_file:
            config_paths.append(Path(env_file))

        for config_path in config_paths:
            if config_path.is_file():
                try:
                    with open(config_path, 'r') as f:
                        config_data = json.load(f)
                except (OSError, ValueError) as e:
                    logger.warning(f"Failed to load config from {config_path}: {e}")
                    continue
                self._update_from_dict(config_data)
                break

    def _update_limits(self, values: Dict[str, Any]):
        current = self.to_dict()['limits']
        current.update({k: v for k, v in values.items() if k in current})
        self.limits = ParserLimits(**current)

    def _update_from_dict(self, data: Dict[str, Any]):
        """Update configuration from dictionary."""
        if 'limits' in data:
            self._update_limits(data['limits'])

        if 'operational' in data:
            for key, value in data['operational'].items():
                if hasattr(self.operational, key):
                    setattr(self.operational, key, value)

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        return {
            'limits': {
                'max_depth': self.limits.max_depth,
                'max_input_length': self.limits.max_input_length,
                'max_tokens': self.limits.max_tokens,
            },
            'operational': {
                'log_level': self.operational.log_level,
            },
        }

    def save_to_file(self, path: Path):
        """Save configuration to file."""
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)


# Global configuration instance
_config: Optional[AnalyzerConfig] = None


def get_config() -> AnalyzerConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = AnalyzerConfig()
    return _config


def init_config(config_file: Optional[str] = None) -> AnalyzerConfig:
    """Initialize global configuration, optionally from an explicit file."""
    global _config
    _config = AnalyzerConfig()

    if config_file:
        with open(config_file, 'r') as f:
            _config._update_from_dict(json.load(f))

    return _config
