"""
Export helpers for layouts.

Turns a Layout (or an already serialized layout mapping) into JSON or
YAML text, optionally stamped with export metadata:

    "_metadata": {"exported_at": ..., "version": "3.0", "format": "json"}

Export is one-way: the output is renderer input, not a storage format.
"""
from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from uilayout.config import SUPPORTED_FORMATS, ExportSettings
from uilayout.layout import Layout, LayoutBuilder

logger = logging.getLogger(__name__)

LayoutLike = Union[Layout, LayoutBuilder, Mapping]


class ExportFormatError(ValueError):
    """Raised for an export format other than json or yaml."""
    pass


def check_format(fmt: str) -> str:
    fmt = fmt.lower()
    if fmt == "yml":
        fmt = "yaml"
    if fmt not in SUPPORTED_FORMATS:
        raise ExportFormatError(f"Unsupported export format: {fmt}. Supported: {', '.join(SUPPORTED_FORMATS)}")
    return fmt


def layout_to_dict(
    layout: LayoutLike,
    settings: Optional[ExportSettings] = None,
    fmt: str = "json",
    authorized_only: bool = False,
) -> Dict[str, Any]:
    settings = settings or ExportSettings()
    if isinstance(layout, Layout):
        data = layout.to_authorized_dict() if authorized_only else layout.to_dict()
    elif isinstance(layout, LayoutBuilder):
        data = layout.build().to_authorized_dict() if authorized_only else layout.to_dict()
    elif isinstance(layout, Mapping):
        data = dict(layout)
    else:
        raise TypeError(f"Unsupported layout type: {type(layout)}")

    if settings.include_metadata:
        data["_metadata"] = {
            "exported_at": datetime.now(timezone.utc).isoformat(),
            "version": settings.version,
            "format": check_format(fmt),
        }
    return data


def layout_to_json(layout: LayoutLike, settings: Optional[ExportSettings] = None, authorized_only: bool = False) -> str:
    settings = settings or ExportSettings()
    data = layout_to_dict(layout, settings, "json", authorized_only)
    return json.dumps(data, indent=2 if settings.pretty else None, ensure_ascii=False)


def layout_to_yaml(layout: LayoutLike, settings: Optional[ExportSettings] = None, authorized_only: bool = False) -> str:
    data = layout_to_dict(layout, settings, "yaml", authorized_only)
    return yaml.safe_dump(data, sort_keys=False, allow_unicode=True)


def export_layout(
    layout: LayoutLike,
    fmt: Optional[str] = None,
    settings: Optional[ExportSettings] = None,
    authorized_only: bool = False,
) -> str:
    settings = settings or ExportSettings()
    fmt = check_format(fmt or settings.default_format)
    if fmt == "yaml":
        return layout_to_yaml(layout, settings, authorized_only)
    return layout_to_json(layout, settings, authorized_only)


def save_layout(
    layout: LayoutLike,
    filename: Union[str, Path],
    fmt: Optional[str] = None,
    settings: Optional[ExportSettings] = None,
    authorized_only: bool = False,
) -> Path:
    """
    Write an export to filename.

    Without an explicit fmt the file suffix decides (.yaml/.yml -> YAML),
    falling back to the settings' default format.
    """
    path = Path(filename)
    if fmt is None and path.suffix:
        suffix = path.suffix.lstrip(".").lower()
        if suffix in ("json", "yaml", "yml"):
            fmt = suffix
    text = export_layout(layout, fmt, settings, authorized_only)
    logger.debug("Writing layout export to %s", path)
    path.write_text(text, encoding="utf-8")
    return path
