"""CSV export of decoded history measurements."""
from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Optional, Sequence

import pandas as pd

from .history import HistoricalMeasurement
from .sentinel import format_value

logger = logging.getLogger(__name__)

HEADER = (
    "Timestamp",
    "Date",
    "Temperature",
    "Humidity",
    "Pressure",
    "Battery",
    "Status",
    "Flags",
    "VOC Index",
    "VOC ppb",
    "NOx Index",
    "CO2 ppm",
    "PM1",
    "PM2.5",
    "PM10",
    "Lat",
    "Lon",
    "PM0.5 (#)",
    "PM1 (#)",
    "PM2.5 (#)",
    "PM10 (#)",
    "Typical Particle (µm)",
    "Alt",
    "Sat Fixed",
    "Sat View",
    "Accuracy",
)

# (column, attribute, sentinel kind or None for plain rendering)
_FIELD_COLUMNS: tuple[tuple[str, str, Optional[str]], ...] = (
    ("Temperature", "temperature", "temp"),
    ("Humidity", "humidity", "hum"),
    ("Pressure", "pressure", "press"),
    ("Battery", "battery_level", None),
    ("Status", "status", None),
    ("VOC Index", "voc_index", "generic"),
    ("VOC ppb", "voc_ppb", "generic"),
    ("NOx Index", "nox_index", "generic"),
    ("CO2 ppm", "co2_ppm", "generic"),
    ("PM1", "pm1", None),
    ("PM2.5", "pm25", None),
    ("PM10", "pm10", None),
    ("Lat", "latitude", None),
    ("Lon", "longitude", None),
    ("PM0.5 (#)", "pm05_particles", None),
    ("PM1 (#)", "pm1_particles", None),
    ("PM2.5 (#)", "pm25_particles", None),
    ("PM10 (#)", "pm10_particles", None),
    ("Typical Particle (µm)", "typical_particle_size", None),
    ("Alt", "altitude", None),
    ("Sat Fixed", "satellites_fixed", None),
    ("Sat View", "satellites_in_view", None),
    ("Accuracy", "accuracy", None),
)

NUMERIC_FIELDS = tuple(attr for _, attr, _ in _FIELD_COLUMNS)

# Fields that carry device sentinel codes; the rest are plain quantities.
FIELD_KINDS: dict[str, Optional[str]] = {attr: kind for _, attr, kind in _FIELD_COLUMNS}
FIELD_KINDS.update({"pm1": "generic", "pm25": "generic", "pm10": "generic"})


class ExportError(RuntimeError):
    """Raised when the exported table cannot be written."""


def _plain(value: object) -> str:
    return "" if value is None else str(value)


def _date_formatter(date_format: str, utc: bool) -> Callable[[int], str]:
    if utc:
        return lambda ts: datetime.fromtimestamp(ts, tz=timezone.utc).strftime(date_format)
    return lambda ts: datetime.fromtimestamp(ts).strftime(date_format)


def _build_rows(
    measurements: Sequence[HistoricalMeasurement],
    *,
    date_format: str,
    utc: bool,
    flag_separator: str,
) -> list[dict[str, str]]:
    format_date = _date_formatter(date_format, utc)
    rows: list[dict[str, str]] = []
    for m in measurements:
        row = {
            "Timestamp": str(m.timestamp),
            "Date": format_date(m.timestamp),
            "Flags": flag_separator.join(m.flags),
        }
        for column, attr, kind in _FIELD_COLUMNS:
            value = getattr(m, attr)
            row[column] = format_value(value, kind) if kind else _plain(value)
        rows.append(row)
    return rows


def render_csv(
    measurements: Sequence[HistoricalMeasurement],
    *,
    date_format: str = "%Y-%m-%d %H:%M:%S",
    utc: bool = True,
    flag_separator: str = "|",
) -> str:
    """Return the history table as CSV text, one row per measurement in input order."""

    rows = _build_rows(
        measurements, date_format=date_format, utc=utc, flag_separator=flag_separator
    )
    df = pd.DataFrame(rows, columns=list(HEADER), dtype=object)
    return df.to_csv(index=False, lineterminator="\n")


def export_csv(
    measurements: Sequence[HistoricalMeasurement],
    output_dir: Path,
    *,
    prefix: str = "atmotube_history",
    date_format: str = "%Y-%m-%d %H:%M:%S",
    utc: bool = True,
    flag_separator: str = "|",
    now: Optional[float] = None,
) -> Path:
    """Write the table to `<prefix>_<unix epoch>.csv` inside *output_dir* and return its path."""

    text = render_csv(
        measurements, date_format=date_format, utc=utc, flag_separator=flag_separator
    )
    epoch = int(time.time() if now is None else now)
    path = Path(output_dir) / f"{prefix}_{epoch}.csv"
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(text.encode("utf-8"))
    except OSError as exc:
        raise ExportError(f"Failed to write {path}: {exc}") from exc
    logger.info("Exported %d measurements to %s", len(measurements), path)
    return path


def history_frame(measurements: Sequence[HistoricalMeasurement]) -> pd.DataFrame:
    """Typed table of raw decoded values (sentinels kept, absent fields as NaN)."""

    records = [
        {
            "timestamp": m.timestamp,
            **{attr: getattr(m, attr) for attr in NUMERIC_FIELDS},
            "flags": "|".join(m.flags),
        }
        for m in measurements
    ]
    df = pd.DataFrame(records, columns=["timestamp", *NUMERIC_FIELDS, "flags"])
    for column in ("timestamp", *NUMERIC_FIELDS):
        df[column] = pd.to_numeric(df[column])
    df.insert(1, "date", pd.to_datetime(df["timestamp"], unit="s", utc=True))
    return df
