"""Global configuration: constants, environment settings and logging."""

from __future__ import annotations

import logging
import os
from typing import Any

# Supported IFC schemas
SUPPORTED_SCHEMAS = ("IFC2X3", "IFC4", "IFC4X3")

# Logger namespace shared by every module in the package
LOGGER_NAME = "aecids"

# All known configuration keys with defaults
_CONFIG_KEYS: dict[str, dict[str, Any]] = {
    "AECIDS_ENV": {"default": "development", "description": "Environment profile"},
    "AECIDS_LOG_LEVEL": {"default": "INFO", "description": "Logging level"},
}

_PROFILES: dict[str, dict[str, str]] = {
    "development": {"AECIDS_LOG_LEVEL": "DEBUG"},
    "production": {"AECIDS_LOG_LEVEL": "WARNING"},
    "testing": {"AECIDS_LOG_LEVEL": "DEBUG"},
}


def load_config(environ: dict[str, str] | None = None) -> dict[str, str]:
    """Load merged config: defaults -> profile -> environment variables.

    Parameters
    ----------
    environ:
        Mapping to read ``AECIDS_*`` variables from.  Defaults to
        ``os.environ``.

    Returns a flat dict of configuration values.
    """
    env = os.environ if environ is None else environ

    config = {key: info["default"] for key, info in _CONFIG_KEYS.items()}

    profile = env.get("AECIDS_ENV", config["AECIDS_ENV"])
    if profile not in _PROFILES:
        logging.getLogger(__name__).warning(
            "Unknown profile %r, using defaults", profile
        )
    config.update(_PROFILES.get(profile, {}))
    config["AECIDS_ENV"] = profile

    for key in _CONFIG_KEYS:
        if key in env and key != "AECIDS_ENV":
            config[key] = env[key]

    return config


def configure_logging(level: str | int | None = None) -> logging.Logger:
    """Set the level of the package logger.

    The package never installs handlers; applications own the logging
    output.  When *level* is None it is read from ``AECIDS_LOG_LEVEL``.
    """
    if level is None:
        level = load_config()["AECIDS_LOG_LEVEL"]
    if isinstance(level, str):
        level = level.upper()

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    return logger
