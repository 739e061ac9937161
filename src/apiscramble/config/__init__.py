"""Configuration management for apiscramble."""

from apiscramble.config.settings import ScrambleConfig, load_config

__all__ = [
    "ScrambleConfig",
    "load_config",
]
