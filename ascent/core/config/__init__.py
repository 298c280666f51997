"""
Configuration subsystem for Ascent.

- **config.py**: Static configuration from environment variables (.env support)
- **errors.py**: Configuration exception hierarchy

The progression curve is YAML-backed and loaded by
`ascent.modules.progression.curve_loader`.
"""

from ascent.core.config.config import Config, Environment
from ascent.core.config.errors import (
    ConfigError,
    ConfigInitializationError,
    ConfigValidationError,
)

__all__ = [
    "Config",
    "Environment",
    "ConfigError",
    "ConfigInitializationError",
    "ConfigValidationError",
]
