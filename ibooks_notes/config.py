"""Configuration management for ibooks-notes."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

DEFAULT_CONFIG_DIR = Path("~/.config/ibooks-notes").expanduser()
DEFAULT_CONFIG_PATH = DEFAULT_CONFIG_DIR / "config.toml"
DEFAULT_DATA_DIR = Path(
    "~/Library/Containers/com.apple.iBooksX/Data/Documents"
).expanduser()

CONFIG_SECTION = "ibooks_notes"


class ConfigError(RuntimeError):
    """Base error for configuration related issues."""


class MissingConfigError(ConfigError):
    """Raised when an explicitly requested configuration file cannot be found."""

    def __init__(self, path: Path) -> None:
        super().__init__(f"Configuration file not found at {path}")
        self.path = path


class InvalidConfigError(ConfigError):
    """Raised when the configuration file holds malformed values."""


@dataclass(slots=True)
class IbooksNotesConfig:
    """In-memory representation of the ibooks-notes configuration file."""

    data_dir: Path = DEFAULT_DATA_DIR
    library_db: Path | None = None
    annotation_db: Path | None = None
    output_dir: Path | None = None
    export_format: str | None = None
    plugins: dict[str, dict[str, Any]] = field(default_factory=dict)
    source_path: Path | None = None


def load_config(path: Path | None = None) -> IbooksNotesConfig:
    """Load configuration from ``path`` or the default location.

    Parameters
    ----------
    path:
        Optional location of the configuration file. When ``None`` the default
        path (``~/.config/ibooks-notes/config.toml``) is used and a missing
        file yields the built-in defaults.

    Raises
    ------
    MissingConfigError
        If ``path`` was given explicitly and does not exist.
    InvalidConfigError
        If the file is not valid TOML or holds malformed settings.
    """

    config_path = (path or DEFAULT_CONFIG_PATH).expanduser()
    if not config_path.exists():
        if path is not None:
            raise MissingConfigError(config_path)
        return IbooksNotesConfig()

    try:
        with config_path.open("rb") as fh:
            raw = tomllib.load(fh)
    except tomllib.TOMLDecodeError as exc:
        raise InvalidConfigError(f"Invalid TOML in {config_path}: {exc}") from exc

    section = raw.get(CONFIG_SECTION, {})
    if not isinstance(section, dict):
        raise InvalidConfigError(f"'{CONFIG_SECTION}' section must be a table")

    config_dir = config_path.parent

    data_dir = _resolve_path(section, "data_dir", config_dir) or DEFAULT_DATA_DIR
    library_db = _resolve_path(section, "library_db", config_dir)
    annotation_db = _resolve_path(section, "annotation_db", config_dir)
    output_dir = _resolve_path(section, "output_dir", config_dir)

    export_format = section.get("export_format")
    if export_format is not None:
        if not isinstance(export_format, str) or not export_format.strip():
            raise InvalidConfigError("'export_format' must be a non-empty string")
        export_format = export_format.strip()

    plugins_section = raw.get("plugins")
    plugins: dict[str, dict[str, Any]] = {}
    if isinstance(plugins_section, dict):
        for key, value in plugins_section.items():
            if isinstance(value, dict):
                plugins[key] = dict(value)
            else:
                plugins[key] = {}

    return IbooksNotesConfig(
        data_dir=data_dir,
        library_db=library_db,
        annotation_db=annotation_db,
        output_dir=output_dir,
        export_format=export_format,
        plugins=plugins,
        source_path=config_path,
    )


def _resolve_path(section: dict[str, Any], key: str, config_dir: Path) -> Path | None:
    # Relative paths are resolved against the configuration directory.
    raw_value = section.get(key)
    if raw_value is None:
        return None
    if not isinstance(raw_value, str):
        raise InvalidConfigError(f"'{key}' must be a string when provided")
    value = raw_value.strip()
    if not value:
        return None
    candidate = Path(value).expanduser()
    return candidate if candidate.is_absolute() else (config_dir / candidate).resolve()
