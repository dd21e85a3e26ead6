"""Atmotube telemetry decoding toolkit."""

from importlib.metadata import PackageNotFoundError, version

from .export import HEADER, ExportError, export_csv, history_frame, render_csv
from .history import (
    HistoricalMeasurement,
    HistoryParser,
    PacketFeature,
    decode_status_flags,
    parse_history,
)
from .live import (
    LiveReading,
    PacketLengthError,
    ParticulateTriple,
    decode_live,
    decode_particulates,
    decode_pm_value,
)
from .reader import ByteReader
from .sentinel import SensorState, classify, format_value

try:  # pragma: no cover - fallback when package metadata missing
    __version__ = version("atmolog")
except PackageNotFoundError:  # pragma: no cover
    __version__ = "0.0.0"

__all__ = [
    "__version__",
    "ByteReader",
    "ExportError",
    "HEADER",
    "HistoricalMeasurement",
    "HistoryParser",
    "LiveReading",
    "PacketFeature",
    "PacketLengthError",
    "ParticulateTriple",
    "SensorState",
    "classify",
    "decode_live",
    "decode_particulates",
    "decode_pm_value",
    "decode_status_flags",
    "export_csv",
    "format_value",
    "history_frame",
    "parse_history",
    "render_csv",
]
