"""
Configuration management for crit.

Settings resolve in order: defaults, then ~/.crit/config.json, then
CRIT_* environment variables, then command-line flags.
"""

from __future__ import annotations

import json
import os
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any

CONFIG_PATH = Path.home() / ".crit" / "config.json"

DEFAULT_CONFIG = {
    "host": "127.0.0.1",
    "port": 0,
    "output_dir": None,
    "debounce_seconds": 0.2,
    "watch_interval": 1.0,
    "open_browser": True,
    "log_level": "INFO",
}

# env var -> (field, parser)
ENV_OVERRIDES = {
    "CRIT_HOST": ("host", str),
    "CRIT_PORT": ("port", int),
    "CRIT_OUTPUT_DIR": ("output_dir", str),
    "CRIT_DEBOUNCE_SECONDS": ("debounce_seconds", float),
    "CRIT_WATCH_INTERVAL": ("watch_interval", float),
    "CRIT_NO_OPEN": ("open_browser", lambda v: v.lower() not in ("1", "true", "yes")),
    "CRIT_LOG_LEVEL": ("log_level", str),
}


def _filter_dataclass_fields(data: dict[str, Any], cls: type) -> dict[str, Any]:
    """Filter dict to only include fields that exist in the dataclass."""
    valid_fields = {f.name for f in fields(cls)}
    return {k: v for k, v in data.items() if k in valid_fields}


def _env_overrides() -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    for name, (key, parse) in ENV_OVERRIDES.items():
        value = os.getenv(name)
        if value is None or value == "":
            continue
        try:
            overrides[key] = parse(value)
        except ValueError:
            # Unparseable values keep the previous setting
            continue
    return overrides


@dataclass
class CritConfig:
    """Review server settings."""

    host: str = "127.0.0.1"
    port: int = 0  # 0 = any free port
    output_dir: str | None = None  # None = next to the reviewed file
    debounce_seconds: float = 0.2
    watch_interval: float = 1.0
    open_browser: bool = True
    log_level: str = "INFO"

    @classmethod
    def load(cls, path: Path | None = None, use_env: bool = True) -> "CritConfig":
        """
        Load config from file with defaults.

        Args:
            path: Optional config file path. Defaults to ~/.crit/config.json
            use_env: Apply CRIT_* environment overrides

        Returns:
            CritConfig with user settings merged over defaults
        """
        if path is None:
            path = CONFIG_PATH

        config = DEFAULT_CONFIG.copy()

        if path.exists():
            try:
                user_config = json.loads(path.read_text())
                if isinstance(user_config, dict):
                    config.update(user_config)
            except (json.JSONDecodeError, OSError):
                # Use defaults on error
                pass

        if use_env:
            config.update(_env_overrides())

        return cls(**_filter_dataclass_fields(config, cls))

    def save(self, path: Path | None = None) -> None:
        """Save configuration to file."""
        if path is None:
            path = CONFIG_PATH

        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, "w") as f:
            json.dump(asdict(self), f, indent=2)


__all__ = ["CONFIG_PATH", "DEFAULT_CONFIG", "CritConfig"]
