"""Configuration for runner selection, timeouts and retry budgets."""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from fsrunners.types import RetryPolicy

logger = logging.getLogger(__name__)

# Default config location
CONFIG_DIR = Path.home() / ".fs-runners"
CONFIG_FILE = CONFIG_DIR / "config.yaml"

# Environment variable naming a config file
CONFIG_ENV_VAR = "FSRUNNERS_CONFIG"

KNOWN_RUNNERS = ("native", "bash", "cmd", "powershell")

DEFAULT_SUITE = ["native"]
POSIX_FULL_SUITE = ["native", "bash"]
WINDOWS_FULL_SUITE = ["native", "cmd", "powershell", "bash"]


class ConfigError(Exception):
    """Configuration file is malformed or invalid."""

    pass


class RetrySettings(BaseModel):
    """Retry budget for directory deletion and lock polling."""

    model_config = ConfigDict(populate_by_name=True)

    max_attempts: int = Field(default=10, ge=1, alias="maxAttempts")
    delay_seconds: float = Field(default=0.5, ge=0, alias="delaySeconds")
    escalation_threshold: int = Field(default=10, ge=1, alias="escalationThreshold")

    def to_policy(self) -> RetryPolicy:
        """Convert to an immutable RetryPolicy."""
        return RetryPolicy(
            max_attempts=self.max_attempts,
            delay=self.delay_seconds,
            escalation_threshold=self.escalation_threshold,
        )


class Settings(BaseModel):
    """Top-level settings."""

    model_config = ConfigDict(populate_by_name=True)

    full_suite: bool = Field(default=False, alias="fullSuite")
    runners: list[str] | None = None
    timeout_seconds: float = Field(default=60.0, gt=0, alias="timeoutSeconds")
    retry: RetrySettings = Field(default_factory=RetrySettings)

    @field_validator("runners")
    @classmethod
    def _known_runners(cls, value: list[str] | None) -> list[str] | None:
        if value is None:
            return None
        unknown = [name for name in value if name not in KNOWN_RUNNERS]
        if unknown:
            raise ValueError(f"Unknown runner(s): {unknown}. Supported: {list(KNOWN_RUNNERS)}")
        if not value:
            raise ValueError("runners cannot be empty")
        return value

    @classmethod
    def from_file(cls, path: Path) -> Settings:
        """Load settings from a YAML file.

        Args:
            path: Path to the config file.

        Returns:
            Parsed Settings. An empty file yields defaults.

        Raises:
            ConfigError: If the file cannot be parsed or fails validation.
        """
        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8"))
        except OSError as e:
            raise ConfigError(f"Cannot read config file {path}: {e}") from e
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path}: {e}") from e

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigError(f"Config file {path} must contain a mapping")
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise ConfigError(f"Invalid config file {path}: {e}") from e

    def runner_names(self, platform: str | None = None) -> list[str]:
        """Resolve which runners to use.

        An explicit ``runners`` list wins. Otherwise the default suite is
        native only and the full suite adds the shells of the platform.

        Args:
            platform: Platform to resolve for. Defaults to sys.platform.

        Returns:
            Runner names in order.
        """
        if self.runners:
            return list(self.runners)
        if not self.full_suite:
            return list(DEFAULT_SUITE)
        if (platform or sys.platform) == "win32":
            return list(WINDOWS_FULL_SUITE)
        return list(POSIX_FULL_SUITE)


def find_config_file(path: Path | None = None) -> Path | None:
    """Locate the config file to load.

    Lookup order: explicit path, ``FSRUNNERS_CONFIG``, ``~/.fs-runners/config.yaml``.

    Args:
        path: Explicit config file path.

    Returns:
        Path to load, or None if no config file applies.

    Raises:
        ConfigError: If an explicitly named file does not exist.
    """
    if path is not None:
        if not path.exists():
            raise ConfigError(f"Config file not found: {path}")
        return path
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        candidate = Path(env_path)
        if not candidate.exists():
            raise ConfigError(f"Config file from {CONFIG_ENV_VAR} not found: {candidate}")
        return candidate
    if CONFIG_FILE.exists():
        return CONFIG_FILE
    return None


def load_settings(path: Path | None = None) -> Settings:
    """Load settings, falling back to defaults when no config file exists.

    Args:
        path: Explicit config file path.

    Returns:
        Settings instance.

    Raises:
        ConfigError: If a config file exists but is invalid.
    """
    config_file = find_config_file(path)
    if config_file is None:
        logger.debug("No config file found, using defaults")
        return Settings()
    logger.debug("Loading settings from %s", config_file)
    return Settings.from_file(config_file)
