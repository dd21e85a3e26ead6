from __future__ import annotations

import json
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Sequence


@dataclass
class ExportConfig:
    output_dir: Path = Path("history_export")
    filename_prefix: str = "atmotube_history"
    date_format: str = "%Y-%m-%d %H:%M:%S"
    utc: bool = True
    flag_separator: str = "|"
    listing_marker: str = "h_active"
    log_level: str = "INFO"
    plot: bool = False

    def __post_init__(self) -> None:
        self.output_dir = Path(self.output_dir)
        if not self.flag_separator:
            raise ValueError("flag_separator may not be empty")
        if "," in self.flag_separator:
            raise ValueError("flag_separator may not contain the column delimiter ','")
        self.log_level = str(self.log_level).upper()


_FIELD_NAMES = {item.name for item in fields(ExportConfig)}
_STRING_KEYS = ("filename_prefix", "date_format", "flag_separator", "listing_marker", "log_level")


def _load_json(path: Path) -> Dict[str, Any]:
    with path.open("r", encoding="utf-8") as fh:
        data = json.load(fh)
    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a JSON object")
    return data


def load_config(
    path: Path | str | None = None, overrides: Sequence[str] | None = None
) -> ExportConfig:
    """
    Build an export configuration from an optional JSON file and CLI-style overrides.

    Overrides are `key=value` pairs applied after the file, e.g.:
        ["utc=false", "output_dir=/tmp/export"]
    """
    merged: Dict[str, Any] = {}
    if path is not None:
        merged.update(_load_json(Path(path)))
    for override in overrides or []:
        key, value = _parse_override(override)
        merged[key] = value
    unknown = set(merged) - _FIELD_NAMES
    if unknown:
        raise ValueError(f"Unknown config keys: {sorted(unknown)}")
    if "utc" in merged:
        merged["utc"] = _coerce_bool("utc", merged["utc"])
    if "plot" in merged:
        merged["plot"] = _coerce_bool("plot", merged["plot"])
    if "output_dir" in merged:
        merged["output_dir"] = Path(str(merged["output_dir"]))
    for key in _STRING_KEYS:
        if key in merged:
            merged[key] = str(merged[key])
    return ExportConfig(**merged)


def _coerce_bool(key: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    raise ValueError(f"Config key '{key}' expects true or false, got {value!r}")


def _parse_override(item: str) -> tuple[str, Any]:
    if "=" not in item:
        raise ValueError(f"Override '{item}' must use key=value syntax")
    key, raw_value = item.split("=", 1)
    key = key.strip()
    if not key:
        raise ValueError("Override key may not be empty")
    raw_value = raw_value.strip()
    if key in _STRING_KEYS or key == "output_dir":
        return key, raw_value
    return key, _coerce_value(raw_value)


def _coerce_value(raw: str) -> Any:
    lowered = raw.lower()
    if lowered in {"true", "false"}:
        return lowered == "true"
    if raw.startswith(("[", "{")):
        return json.loads(raw)
    try:
        if "." in raw or "e" in lowered:
            return float(raw)
        return int(raw)
    except ValueError:
        return raw
