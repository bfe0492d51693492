"""Centralized configuration for bitperm tools.

Loads configuration from a .env file and the environment and provides typed
access to settings. Only the command-line front end and logging read these;
the core bit operations take no configuration.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

__all__ = [
    "ConfigError",
    "OUTPUT_BASES",
    "Settings",
    "generate_example_env",
    "get_settings",
    "load_env_file",
    "load_settings",
]

OUTPUT_BASES = ("hex", "dec", "bin")
LOG_LEVELS = ("TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL")


class ConfigError(Exception):
    """Raised when configuration is missing or invalid."""

    pass


@dataclass
class Settings:
    """Settings for bitperm tools.

    Attributes
    ----------
    log_level : str
        Logging level
    log_file : Path | None
        JSONL log file path
    output_base : str
        Default rendering of values: hex, dec or bin
    catalog_path : Path | None
        YAML permission catalog used to resolve names
    """

    log_level: str = "WARNING"
    log_file: Path | None = None
    output_base: str = "hex"
    catalog_path: Path | None = None

    def __post_init__(self):
        """Validate settings after initialization."""
        if self.log_file and isinstance(self.log_file, str):
            self.log_file = Path(self.log_file)

        if self.catalog_path and isinstance(self.catalog_path, str):
            self.catalog_path = Path(self.catalog_path)

        self.log_level = self.log_level.upper()
        if self.log_level not in LOG_LEVELS:
            raise ConfigError(
                f"BITPERM_LOG_LEVEL must be one of {', '.join(LOG_LEVELS)} (got {self.log_level!r})"
            )

        self.output_base = self.output_base.lower()
        if self.output_base not in OUTPUT_BASES:
            raise ConfigError(
                f"BITPERM_OUTPUT_BASE must be one of {', '.join(OUTPUT_BASES)} (got {self.output_base!r})"
            )

    @classmethod
    def from_env(cls, env_file: Path | str | None = None) -> Settings:
        """Load settings from environment.

        Loads from .env file if present, otherwise from os.environ.

        Parameters
        ----------
        env_file
            Path to .env file (default: .env in current directory)

        Raises
        ------
        ConfigError
            If settings are invalid
        """
        if env_file is None:
            env_file = Path(".env")

        if isinstance(env_file, str):
            env_file = Path(env_file)

        if env_file.exists():
            load_env_file(env_file)

        return cls(
            log_level=os.environ.get("BITPERM_LOG_LEVEL", "WARNING"),
            log_file=Path(os.environ["BITPERM_LOG_FILE"]) if os.environ.get("BITPERM_LOG_FILE") else None,
            output_base=os.environ.get("BITPERM_OUTPUT_BASE", "hex"),
            catalog_path=Path(os.environ["BITPERM_CATALOG"]) if os.environ.get("BITPERM_CATALOG") else None,
        )


def load_env_file(env_file: Path) -> None:
    """Load environment variables from .env file.

    Variables already present in the environment are left untouched.

    Parameters
    ----------
    env_file
        Path to .env file
    """
    with open(env_file, encoding="utf-8") as f:
        for line in f:
            line = line.strip()

            # Skip comments and empty lines
            if not line or line.startswith("#"):
                continue

            if "=" in line:
                key, value = line.split("=", 1)
                key = key.strip()
                value = value.strip()

                # Remove quotes
                if (value.startswith('"') and value.endswith('"')) or (value.startswith("'") and value.endswith("'")):
                    value = value[1:-1]

                os.environ.setdefault(key, value)


# Global settings instance
_settings: Settings | None = None


def load_settings(env_file: Path | str | None = None) -> Settings:
    """Load settings from environment and store them globally.

    Raises
    ------
    ConfigError
        If settings are invalid
    """
    global _settings
    _settings = Settings.from_env(env_file)
    return _settings


def get_settings() -> Settings:
    """Get current settings, loading them from the environment on first use."""
    global _settings
    if _settings is None:
        _settings = Settings.from_env()
    return _settings


def generate_example_env(output_path: Path | None = None) -> str:
    """Generate example .env file with all settings.

    Parameters
    ----------
    output_path
        Optional path to write .env file

    Returns
    -------
    str
        Example .env contents
    """
    example = """# bitperm configuration
# Copy this to .env and adjust values

# Log level (optional, default: WARNING)
# Options: DEBUG, INFO, WARNING, ERROR, CRITICAL
BITPERM_LOG_LEVEL=WARNING

# JSONL log file (optional, logs to stderr only if not set)
# BITPERM_LOG_FILE=logs/bitperm.jsonl

# How values are printed (optional, default: hex)
# Options: hex, dec, bin
BITPERM_OUTPUT_BASE=hex

# YAML permission catalog for resolving names like read|write (optional)
# BITPERM_CATALOG=permissions.yaml
"""

    if output_path:
        output_path.write_text(example)

    return example
