"""Configuration loader for the stall tool."""

import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

DEFAULT_CONFIG_PATH = ".stall-config"
DEFAULT_STALL_PATH = ".stall"
CONFIG_ENV_VAR = "STALL_CONFIG"

STALL_FORMATS = ("auto", "yaml", "list")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class ConfigError(Exception):
    """Raised when config validation fails."""

    pass


class Config:
    """Application configuration for the stall tool."""

    def __init__(self, config_dict: Optional[Dict[str, Any]] = None):
        """Initialize config from dictionary."""
        self._config = config_dict or {}
        self._validate()

    def _validate(self) -> None:
        """Validate configuration field types."""
        if not isinstance(self._config, dict):
            raise ConfigError("Config must be a mapping")

        for section in ("logging", "sync"):
            value = self._config.get(section, {})
            if value is not None and not isinstance(value, dict):
                raise ConfigError(f"Config section '{section}' must be a mapping")

        stall_file = self._config.get("stall_file", DEFAULT_STALL_PATH)
        if not isinstance(stall_file, str) or not stall_file:
            raise ConfigError("Config key 'stall_file' must be a non-empty string")

        if self.stall_format not in STALL_FORMATS:
            raise ConfigError(
                f"Config key 'stall_format' must be one of {', '.join(STALL_FORMATS)}"
            )

        if not isinstance(self.log_level, str) or self.log_level.upper() not in LOG_LEVELS:
            raise ConfigError(f"Invalid log level: {self.log_level}")

        log_file = self._section("logging").get("file_path")
        if log_file is not None and not isinstance(log_file, str):
            raise ConfigError("Config key 'logging.file_path' must be a string")

        for key in ("max_size_mb", "backup_count"):
            value = self._section("logging").get(key, 0)
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise ConfigError(f"Config key 'logging.{key}' must be a non-negative integer")

        if not isinstance(self._section("logging").get("rotation_enabled", True), bool):
            raise ConfigError("Config key 'logging.rotation_enabled' must be a boolean")

        tolerance = self._section("sync").get("mtime_tolerance", 0.0)
        if isinstance(tolerance, bool) or not isinstance(tolerance, (int, float)):
            raise ConfigError("Config key 'sync.mtime_tolerance' must be a number")
        if tolerance < 0:
            raise ConfigError("Config key 'sync.mtime_tolerance' must not be negative")

        for key in ("promote_warnings_to_errors", "short_names"):
            value = self._section("sync").get(key, False)
            if not isinstance(value, bool):
                raise ConfigError(f"Config key 'sync.{key}' must be a boolean")

    def _section(self, name: str) -> Dict[str, Any]:
        """Get a config section, treating a null section as empty."""
        return self._config.get(name) or {}

    @property
    def stall_file(self) -> str:
        """Get stall file path, relative to the stall directory."""
        return self._config.get("stall_file", DEFAULT_STALL_PATH)

    @property
    def stall_format(self) -> str:
        """Get the stall file format (auto, yaml or list)."""
        return self._config.get("stall_format", "auto")

    @property
    def log_file_path(self) -> Optional[str]:
        """Get log file path."""
        return self._section("logging").get("file_path")

    @property
    def log_level(self) -> str:
        """Get log level."""
        return self._section("logging").get("level", "WARNING")

    @property
    def log_max_size_mb(self) -> int:
        """Get max log file size in MB before rotation."""
        return self._section("logging").get("max_size_mb", 10)

    @property
    def log_backup_count(self) -> int:
        """Get number of rotated log files to keep."""
        return self._section("logging").get("backup_count", 5)

    @property
    def log_rotation_enabled(self) -> bool:
        """Get log rotation flag."""
        return self._section("logging").get("rotation_enabled", True)

    @property
    def mtime_tolerance(self) -> float:
        """Get tolerance in seconds for modification time comparison."""
        return float(self._section("sync").get("mtime_tolerance", 0.0))

    @property
    def promote_warnings_to_errors(self) -> bool:
        """Get whether file access warnings abort a run."""
        return self._section("sync").get("promote_warnings_to_errors", False)

    @property
    def short_names(self) -> bool:
        """Get whether reports omit remote path prefixes."""
        return self._section("sync").get("short_names", False)

    def normalize_paths(self, base: Path) -> None:
        """Expand relative log file paths against the stall directory.

        Args:
            base: Stall directory
        """
        log_file = self.log_file_path
        if log_file and not Path(log_file).is_absolute():
            self._config.setdefault("logging", {})
            if self._config["logging"] is None:
                self._config["logging"] = {}
            self._config["logging"]["file_path"] = str(Path(base) / log_file)

    def to_dict(self) -> Dict[str, Any]:
        """Return config as dictionary."""
        return self._config.copy()


def load_config(config_path: str) -> Config:
    """Load configuration from YAML file.

    Args:
        config_path: Path to the config file

    Returns:
        Config object

    Raises:
        ConfigError: If config file doesn't exist or is invalid
        yaml.YAMLError: If YAML parsing fails
    """
    path = Path(config_path)

    if not path.exists():
        raise ConfigError(f"Config file not found: {config_path}")

    with open(path, "r", encoding="utf-8") as f:
        config_dict = yaml.safe_load(f) or {}

    return Config(config_dict)


def load_config_from_env(env_var: str = CONFIG_ENV_VAR) -> Config:
    """Load configuration from environment variable.

    Args:
        env_var: Name of environment variable containing config path

    Returns:
        Config object

    Raises:
        ConfigError: If environment variable not set or config invalid
    """
    config_path = os.getenv(env_var)
    if not config_path:
        raise ConfigError(f"Environment variable {env_var} not set")

    return load_config(config_path)


def find_config(stall_dir: Path, config_path: Optional[str] = None) -> Config:
    """Locate and load the application config for a stall directory.

    Lookup order is the explicit path, then the environment variable, then
    the default config file inside the stall directory. Falls back to the
    built-in defaults when none of these exist.

    Args:
        stall_dir: Stall directory
        config_path: Explicit config file path, if given

    Returns:
        Config object with log paths normalized against the stall directory
    """
    if config_path:
        config = load_config(config_path)
    elif os.getenv(CONFIG_ENV_VAR):
        config = load_config_from_env()
    elif (Path(stall_dir) / DEFAULT_CONFIG_PATH).exists():
        config = load_config(str(Path(stall_dir) / DEFAULT_CONFIG_PATH))
    else:
        config = Config()

    config.normalize_paths(Path(stall_dir))
    return config
