"""
Export configuration.

Settings are plain dataclasses with explicit dict converters; a YAML file
may override any subset of keys:

    export:
      pretty: false
      include_metadata: true
      version: "3.0"
      default_format: yaml
"""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Union

import yaml

SUPPORTED_FORMATS = ("json", "yaml")


@dataclass(frozen=True)
class ExportSettings:
    pretty: bool = True
    include_metadata: bool = True
    version: str = "3.0"
    default_format: str = "json"


def settings_to_dict(s: ExportSettings) -> Dict[str, Any]:
    return {
        "export": {
            "pretty": s.pretty,
            "include_metadata": s.include_metadata,
            "version": s.version,
            "default_format": s.default_format,
        }
    }


def settings_from_dict(d: Dict[str, Any] | None) -> ExportSettings:
    """Build settings from a mapping; missing keys keep their defaults."""
    export = (d or {}).get("export") or {}
    defaults = ExportSettings()
    default_format = str(export.get("default_format", defaults.default_format)).lower()
    if default_format not in SUPPORTED_FORMATS:
        raise ValueError(f"Unsupported export format in settings: {default_format}")
    return ExportSettings(
        pretty=bool(export.get("pretty", defaults.pretty)),
        include_metadata=bool(export.get("include_metadata", defaults.include_metadata)),
        version=str(export.get("version", defaults.version)),
        default_format=default_format,
    )


def load_settings(path: Union[str, Path]) -> ExportSettings:
    with open(path, "r", encoding="utf-8") as fh:
        return settings_from_dict(yaml.safe_load(fh))
