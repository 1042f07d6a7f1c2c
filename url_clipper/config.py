"""Configuration objects and constants for the clipper."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass, fields
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger("url_clipper")

CONFIG_ENV_VAR = "URL_CLIPPER_CONFIG"
DEFAULT_CONFIG_PATH = Path("~/.config/url-clipper/settings.json")

USER_AGENT = "url-clipper"
POLL_INTERVAL_SECONDS = 0.12


class ExtractMode(str, Enum):
    """How the content root is chosen."""

    AUTO = "auto"
    CSS = "css"
    XPATH = "xpath"

    @classmethod
    def parse(cls, value: "str | ExtractMode") -> "ExtractMode":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(
                f"Unknown extract mode {value!r}; expected one of auto, css, xpath"
            ) from None


@dataclass
class ClipperSettings:
    """Persisted user settings that control clipping behaviour."""

    default_mode: ExtractMode = ExtractMode.AUTO
    content_path: str = ""
    download_images: bool = True
    image_prefix: str = ""
    debug: bool = True
    attachment_folder: str = "attachments"
    request_timeout: float = 30.0

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["default_mode"] = self.default_mode.value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ClipperSettings":
        known = {f.name for f in fields(cls)}
        values = {key: value for key, value in data.items() if key in known}
        ignored = sorted(set(data) - known)
        if ignored:
            logger.debug("Ignoring unknown settings keys: %s", ", ".join(ignored))
        settings = cls(**values)
        settings.default_mode = ExtractMode.parse(settings.default_mode)
        return settings

    def update(self, key: str, raw_value: str) -> None:
        """Set a single field from its string form (used by ``config set``)."""
        field_types = {f.name: f.default for f in fields(self)}
        if key not in field_types:
            raise KeyError(f"Unknown setting: {key}")
        default = field_types[key]
        value: Any
        if isinstance(default, ExtractMode):
            value = ExtractMode.parse(raw_value)
        elif isinstance(default, bool):
            value = _parse_bool(raw_value)
        elif isinstance(default, float):
            value = float(raw_value)
        else:
            value = raw_value
        setattr(self, key, value)


def _parse_bool(raw: str) -> bool:
    lowered = raw.strip().lower()
    if lowered in {"1", "true", "yes", "on"}:
        return True
    if lowered in {"0", "false", "no", "off"}:
        return False
    raise ValueError(f"Expected a boolean value, got {raw!r}")


def resolve_config_path(path: Optional[Path] = None) -> Path:
    if path is not None:
        return Path(path).expanduser()
    override = os.getenv(CONFIG_ENV_VAR)
    if override:
        return Path(override).expanduser()
    return DEFAULT_CONFIG_PATH.expanduser()


def load_settings(path: Optional[Path] = None) -> ClipperSettings:
    """Read settings from disk, falling back to defaults for missing keys."""
    config_path = resolve_config_path(path)
    if not config_path.exists():
        logger.debug("No settings file at %s; using defaults", config_path)
        return ClipperSettings()
    data = json.loads(config_path.read_text(encoding="utf-8") or "{}")
    if not isinstance(data, dict):
        raise ValueError(f"Settings file {config_path} must contain a JSON object")
    return ClipperSettings.from_dict(data)


def save_settings(settings: ClipperSettings, path: Optional[Path] = None) -> Path:
    config_path = resolve_config_path(path)
    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(
        json.dumps(settings.to_dict(), indent=2, ensure_ascii=False) + "\n",
        encoding="utf-8",
    )
    return config_path
