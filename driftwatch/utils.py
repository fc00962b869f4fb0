"""Utility functions for driftwatch."""

from __future__ import annotations

import os
import re
from datetime import timedelta

_DURATION_RE = re.compile(r"^(\d+)([smhd])$")
_DURATION_UNITS = {"s": "seconds", "m": "minutes", "h": "hours", "d": "days"}


def expand_env_vars(config: object) -> object:
    """Recursively expand environment variables in config.

    Replaces ${VAR} patterns with environment variable values. Unknown
    variables are left untouched.

    Args:
        config: Configuration object (dict, list, str, or primitive)

    Returns:
        Configuration with all ${VAR} patterns replaced
    """
    if isinstance(config, dict):
        return {k: expand_env_vars(v) for k, v in config.items()}
    if isinstance(config, list):
        return [expand_env_vars(item) for item in config]
    if isinstance(config, str):

        def replace_env_var(match: re.Match[str]) -> str:
            env_var = match.group(1)
            return os.getenv(env_var, match.group(0))

        return re.sub(r"\$\{([^}]+)\}", replace_env_var, config)
    return config


def parse_duration(duration: str) -> timedelta:
    """Parse duration string (e.g., '90s', '10m', '2h', '1d') into timedelta."""
    match = _DURATION_RE.match(duration.strip())
    if not match:
        raise ValueError(f"Invalid duration format: {duration}. Expected <number><s|m|h|d> (e.g. '30m', '24h')")
    value, unit = match.groups()
    return timedelta(**{_DURATION_UNITS[unit]: int(value)})


def split_csv(value: str) -> list[str]:
    """Split a comma-separated env value, dropping blanks."""
    return [part.strip() for part in value.split(",") if part.strip()]


def redact(text: str, secret: str | None) -> str:
    """Replace every occurrence of ``secret`` in ``text``."""
    if not secret:
        return text
    return text.replace(secret, "***")
