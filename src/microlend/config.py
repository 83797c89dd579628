"""Configuration management for the MicroLend client.

This module handles loading and validating configuration from a config file
and environment variables.
"""

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Union

DEFAULT_TIMEOUT = 30
DEFAULT_LOG_LEVEL = "warning"
DEFAULT_CONFIG_PATH = Path.home() / ".microlend" / "config.json"
DEFAULT_SESSION_DIR = Path.home() / ".microlend" / "session"
VALID_LOG_LEVELS = ["debug", "info", "warning", "error"]
MIN_TIMEOUT = 1
MAX_TIMEOUT = 300

ENV_API_URL = "MICROLEND_API_URL"
ENV_API_TIMEOUT = "MICROLEND_API_TIMEOUT"
ENV_LOG_LEVEL = "MICROLEND_LOG_LEVEL"
ENV_SESSION_DIR = "MICROLEND_SESSION_DIR"

logger = logging.getLogger(__name__)


@dataclass
class ClientConfig:
    """Configuration for the MicroLend client.

    Args:
        api_url: Base URL of the lending API (HTTPS unless localhost)
        timeout: Request timeout in seconds (1-300, default: 30)
        log_level: Logging level (debug/info/warning/error, default: warning)
        session_dir: Directory for the persisted session entries
    """

    api_url: str
    timeout: int = DEFAULT_TIMEOUT
    log_level: str = DEFAULT_LOG_LEVEL
    session_dir: Path = field(default_factory=lambda: DEFAULT_SESSION_DIR)

    def __post_init__(self):
        if not self.api_url:
            raise ValueError("api_url cannot be empty")

        # Plain HTTP is only allowed against a local API
        is_localhost = "://localhost" in self.api_url or "://127.0.0.1" in self.api_url
        if not self.api_url.startswith("https://") and not is_localhost:
            raise ValueError(
                "api_url must use HTTPS for security. " f"Got: {self.api_url[:20]}..."
            )

        if self.timeout < MIN_TIMEOUT or self.timeout > MAX_TIMEOUT:
            raise ValueError(
                f"timeout must be between {MIN_TIMEOUT} and {MAX_TIMEOUT} seconds. "
                f"Got: {self.timeout}"
            )

        self.log_level = self.log_level.lower()
        if self.log_level not in VALID_LOG_LEVELS:
            raise ValueError(
                f"log_level must be one of {VALID_LOG_LEVELS}. "
                f"Got: {self.log_level}"
            )

        self.api_url = self.api_url.rstrip("/")
        self.session_dir = Path(self.session_dir).expanduser()

    @property
    def logging_level(self) -> int:
        return getattr(logging, self.log_level.upper())


def _read_config_file(path: Path) -> Dict[str, Any]:
    file_perms = os.stat(path).st_mode & 0o777
    if file_perms != 0o600:
        logger.warning(
            f"Configuration file {path} has insecure permissions {oct(file_perms)}. "
            f"Recommend setting to 0600: chmod 0600 {path}"
        )

    with open(path) as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"Configuration file {path} must contain a JSON object")
    return data


def load_config(
    config_path: Optional[Union[str, Path]] = None, use_env: bool = True
) -> ClientConfig:
    """Load configuration from file and/or environment variables.

    Args:
        config_path: Path to config JSON file. When omitted the default
            ~/.microlend/config.json is read if it exists.
        use_env: Whether environment variables override file values

    Returns:
        ClientConfig instance

    Raises:
        FileNotFoundError: If an explicitly given config file is missing
        json.JSONDecodeError: If the config file contains invalid JSON
        ValueError: If required fields are missing or invalid

    Environment Variables:
        MICROLEND_API_URL: Base API URL
        MICROLEND_API_TIMEOUT: Timeout in seconds
        MICROLEND_LOG_LEVEL: Log level
        MICROLEND_SESSION_DIR: Session storage directory
    """
    config_data: Dict[str, Any] = {}

    if config_path is not None:
        path = Path(config_path).expanduser().resolve()
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")
        config_data = _read_config_file(path)
    elif DEFAULT_CONFIG_PATH.exists():
        config_data = _read_config_file(DEFAULT_CONFIG_PATH)

    if use_env:
        if ENV_API_URL in os.environ:
            config_data["api_url"] = os.environ[ENV_API_URL]
        if ENV_API_TIMEOUT in os.environ:
            try:
                config_data["timeout"] = int(os.environ[ENV_API_TIMEOUT])
            except ValueError:
                raise ValueError(
                    f"{ENV_API_TIMEOUT} must be an integer number of seconds. "
                    f"Got: {os.environ[ENV_API_TIMEOUT]!r}"
                )
        if ENV_LOG_LEVEL in os.environ:
            config_data["log_level"] = os.environ[ENV_LOG_LEVEL]
        if ENV_SESSION_DIR in os.environ:
            config_data["session_dir"] = os.environ[ENV_SESSION_DIR]

    if not config_data.get("api_url"):
        raise ValueError(
            "Missing required field: api_url\n"
            f"  Fix: Set {ENV_API_URL} environment variable\n"
            "  Or: Add 'api_url' to ~/.microlend/config.json"
        )

    known = {"api_url", "timeout", "log_level", "session_dir"}
    unknown = set(config_data) - known
    if unknown:
        logger.warning(f"Ignoring unknown configuration keys: {sorted(unknown)}")

    return ClientConfig(**{k: v for k, v in config_data.items() if k in known})
