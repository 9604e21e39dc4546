from __future__ import annotations

import json
import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError as SchemaValidationError

from wps_tools import __version__
from wps_tools.models.report import DEFAULT_GROUP_KEY

"""Settings loader.

Responsibilities:
- Load an optional YAML settings file (default: ./config/settings.yml)
- Validate it against settings_schema.json (unknown keys rejected)
- Apply defaults for every key
- Resolve the config directory (settings -> $WPS_TOOLS_HOME -> platform default)
"""

__all__ = [
    "AppSettings",
    "ConfigError",
    "load_settings",
    "default_config_dir",
    "DEFAULT_SETTINGS_PATH",
    "SCHEMA_PATH",
]

SCHEMA_PATH = Path(__file__).with_name("settings_schema.json")
DEFAULT_SETTINGS_PATH = Path("config/settings.yml")
HOME_ENV_VAR = "WPS_TOOLS_HOME"

DEFAULT_HEADING_PREFIX = "Bridge ID"
DEFAULT_DESCRIPTION_COLUMN = "Description of Issue(Report)"
DEFAULT_COLUMN_TITLES = {"Description of Issue(Report)": "Desc. of Issue"}
DEFAULT_REPORT_NAME = "maintenance_report"


class ConfigError(Exception):
    pass


def default_config_dir() -> Path:
    env = os.getenv(HOME_ENV_VAR)
    if env:
        return Path(env).expanduser()
    if sys.platform.startswith("win"):
        return Path.home() / "AppData" / "Local" / "WPS Programs" / "File Sorter"
    return Path.home() / ".wps_tools"


@dataclass(frozen=True)
class AppSettings:
    config_dir: Path
    group_key: str = DEFAULT_GROUP_KEY
    heading_prefix: str = DEFAULT_HEADING_PREFIX
    description_column: str = DEFAULT_DESCRIPTION_COLUMN
    column_titles: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_COLUMN_TITLES))
    default_report_name: str = DEFAULT_REPORT_NAME
    app_version: str = __version__

    @property
    def operations_log(self) -> Path:
        return self.config_dir / "operations.log"


def _validate_settings_schema(data: dict[str, Any]) -> None:
    """Validate settings data against the bundled JSON schema.

    Raises:
        ConfigError: schema file missing/unreadable, or the data violates it
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"settings schema not found: {SCHEMA_PATH}")
    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except SchemaValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def load_settings(path: Path | None = None) -> AppSettings:
    """Load settings from ``path``.

    An explicitly given path must exist. With ``path=None`` the default
    location is used when present, otherwise built-in defaults apply.
    """
    if path is None:
        path = DEFAULT_SETTINGS_PATH
        if not path.exists():
            return AppSettings(config_dir=default_config_dir())
    elif not path.exists():
        raise ConfigError(f"config file not found: {path}")

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"config validation failed: top level must be a mapping, got {type(data).__name__}")

    _validate_settings_schema(data)

    titles = dict(DEFAULT_COLUMN_TITLES)
    titles.update(data.get("column_titles") or {})
    config_dir = data.get("config_dir")
    return AppSettings(
        config_dir=Path(config_dir).expanduser() if config_dir else default_config_dir(),
        group_key=data.get("group_key", DEFAULT_GROUP_KEY),
        heading_prefix=data.get("heading_prefix", DEFAULT_HEADING_PREFIX),
        description_column=data.get("description_column", DEFAULT_DESCRIPTION_COLUMN),
        column_titles=titles,
        default_report_name=data.get("default_report_name", DEFAULT_REPORT_NAME),
        app_version=data.get("app_version", __version__),
    )
