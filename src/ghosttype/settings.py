"""Layered settings with JSON files.

Precedence: CLI overrides > project settings > global settings.

* global: ``~/.ghosttype/settings.json``
* project: ``./.ghosttype/settings.json``
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

from ghosttype.errors import SettingsError
from ghosttype.samples import DEFAULT_SAMPLES_FILE

CONFIG_DIR_NAME = ".ghosttype"


def _settings_defaults() -> dict[str, Any]:
    """Default settings values."""
    return {
        "samplesFile": DEFAULT_SAMPLES_FILE,
        "sampleIndex": 0,
        "ghost": True,
        "logFile": None,
        "logLevel": "info",
        "geometryQueryTimeoutMs": 500,
        "styles": {},
    }


# --- Deep merge ---


def deep_merge_settings(base: dict[str, Any], overrides: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge overrides into base settings.

    For nested dicts, merge recursively. For primitives and arrays,
    override value wins completely.
    """
    result = dict(base)
    for key, value in overrides.items():
        if value is None:
            continue
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge_settings(result[key], value)
        else:
            result[key] = value
    return result


# --- SettingsManager ---


class SettingsManager:
    """Merges global, project and override settings.

    Use factory methods (create, in_memory) instead of calling constructor directly.
    """

    def __init__(
        self,
        *,
        global_settings: dict[str, Any],
        project_settings: dict[str, Any],
    ) -> None:
        self._settings = deep_merge_settings(
            deep_merge_settings(_settings_defaults(), global_settings), project_settings
        )

    # --- Factory methods ---

    @classmethod
    def create(cls, cwd: str, config_dir: str | None = None) -> SettingsManager:
        """Create a settings manager reading the global and project files.

        Raises :class:`~ghosttype.errors.SettingsError` if either file
        exists but cannot be parsed.
        """
        cdir = config_dir or _default_config_dir()
        settings_path = os.path.join(cdir, "settings.json")
        project_settings_path = os.path.join(cwd, CONFIG_DIR_NAME, "settings.json")
        return cls(
            global_settings=_load_from_file(settings_path),
            project_settings=_load_from_file(project_settings_path),
        )

    @classmethod
    def in_memory(cls, settings: dict[str, Any] | None = None) -> SettingsManager:
        """Create an in-memory settings manager for testing."""
        return cls(global_settings=settings or {}, project_settings={})

    # --- Core operations ---

    def apply_overrides(self, overrides: dict[str, Any]) -> None:
        """Apply CLI-level overrides on top of merged settings."""
        self._settings = deep_merge_settings(self._settings, overrides)

    # --- Getters ---

    def get_samples_file(self) -> str:
        return str(self._settings["samplesFile"])

    def get_sample_index(self) -> int:
        return int(self._settings["sampleIndex"])

    def get_ghost_enabled(self) -> bool:
        return bool(self._settings["ghost"])

    def get_log_file(self) -> str | None:
        return self._settings.get("logFile")

    def get_log_level(self) -> str:
        return str(self._settings["logLevel"])

    def get_geometry_query_timeout(self) -> float:
        """Size-query timeout in seconds."""
        return int(self._settings["geometryQueryTimeoutMs"]) / 1000

    def get_styles(self) -> dict[str, str]:
        styles = self._settings.get("styles") or {}
        return {str(k): str(v) for k, v in styles.items()}


def _load_from_file(path: str) -> dict[str, Any]:
    """Load settings from a JSON file; a missing file is empty settings."""
    if not os.path.exists(path):
        return {}
    try:
        content = Path(path).read_text(encoding="utf-8")
        settings = json.loads(content)
    except (OSError, json.JSONDecodeError) as e:
        raise SettingsError(f"reading settings file {path}: {e}") from e
    if not isinstance(settings, dict):
        raise SettingsError(f"settings file {path} is not a JSON object")
    return settings


def _default_config_dir() -> str:
    """Default config directory (~/.ghosttype)."""
    return os.path.join(os.path.expanduser("~"), CONFIG_DIR_NAME)
