"""
Configuration management for trailmark.

Layers, later ones win:
1. Defaults
2. ~/.trailmark/config (JSON)
3. {project_root}/.trailmark/config (JSON)
4. TRAILMARK_* environment variables (a project .env is loaded first)
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from .errors import ConfigError

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "config"

DEFAULT_CONFIG: dict[str, Any] = {
    "worker_url": "",
    "token": "",
    "stale_after_minutes": 30,
    "ledger_dirname": ".trailmark",
}

ENV_OVERRIDES = {
    "TRAILMARK_WORKER_URL": "worker_url",
    "TRAILMARK_TOKEN": "token",
    "TRAILMARK_STALE_MINUTES": "stale_after_minutes",
}


def _filter_dataclass_fields(data: dict[str, Any], cls: type) -> dict[str, Any]:
    """Filter dict to only include fields that exist in the dataclass."""
    valid_fields = {f.name for f in fields(cls)}
    return {k: v for k, v in data.items() if k in valid_fields}


def get_global_config_path() -> Path:
    return Path.home() / ".trailmark" / CONFIG_FILENAME


def get_local_config_path(project_root: Path | str) -> Path:
    return Path(project_root) / DEFAULT_CONFIG["ledger_dirname"] / CONFIG_FILENAME


def _read_layer(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    try:
        data = json.loads(path.read_text())
    except (json.JSONDecodeError, OSError) as e:
        logger.warning("ignoring unreadable config %s: %s", path, e)
        return {}
    if not isinstance(data, dict):
        logger.warning("ignoring config %s: not a JSON object", path)
        return {}
    return data


@dataclass
class TrailmarkConfig:
    """
    Upload target and housekeeping settings.

    worker_url/token point at the remote session store; without both,
    sync has nowhere to send sessions.
    """

    worker_url: str = ""
    token: str = ""
    stale_after_minutes: int = 30
    ledger_dirname: str = ".trailmark"

    def __post_init__(self):
        for name in ("worker_url", "token", "ledger_dirname"):
            value = getattr(self, name)
            if not isinstance(value, str):
                raise ConfigError(f"{name} must be a string, got {value!r}")
        self.worker_url = self.worker_url.rstrip("/")
        try:
            self.stale_after_minutes = int(self.stale_after_minutes)
        except (TypeError, ValueError):
            raise ConfigError(
                f"stale_after_minutes must be an integer, got {self.stale_after_minutes!r}"
            )

    @property
    def is_configured(self) -> bool:
        return bool(self.worker_url and self.token)

    @classmethod
    def load(
        cls,
        project_root: Path | str | None = None,
        global_path: Path | None = None,
    ) -> "TrailmarkConfig":
        """
        Load config from files and environment with defaults.

        Args:
            project_root: Repository root holding .trailmark/config and .env
            global_path: Override for ~/.trailmark/config

        Returns:
            TrailmarkConfig with every layer merged

        Raises:
            ConfigError: If a merged value has the wrong type
        """
        config = DEFAULT_CONFIG.copy()
        config.update(_read_layer(global_path or get_global_config_path()))

        if project_root is not None:
            config.update(_read_layer(get_local_config_path(project_root)))
            env_file = Path(project_root) / ".env"
            if env_file.exists():
                load_dotenv(env_file)

        for env_name, key in ENV_OVERRIDES.items():
            value = os.getenv(env_name)
            if value:
                config[key] = value

        return cls(**_filter_dataclass_fields(config, cls))

    def save(self, path: Path | None = None) -> None:
        """
        Save configuration to file.

        Args:
            path: Optional config file path. Defaults to ~/.trailmark/config
        """
        if path is None:
            path = get_global_config_path()

        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, "w") as f:
            json.dump(asdict(self), f, indent=2)


__all__ = [
    "DEFAULT_CONFIG",
    "TrailmarkConfig",
    "get_global_config_path",
    "get_local_config_path",
]
