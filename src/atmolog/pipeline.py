"""High level orchestration: listing, collection and export of history files."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

from .config import ExportConfig
from .export import export_csv
from .history import HistoricalMeasurement, HistoryParser

logger = logging.getLogger(__name__)

LISTING_COMMAND = "history get"


def parse_history_listing(output: str, marker: str = "h_active") -> List[str]:
    """Extract history file names from the device shell's `history get` reply.

    The reply is a `;`-separated list of `name,<metadata>` entries and may echo
    the command itself in front.
    """

    text = output.strip()
    if text.startswith(LISTING_COMMAND):
        text = text[len(LISTING_COMMAND):]
    names: List[str] = []
    for entry in text.strip().split(";"):
        name = entry.split(",", 1)[0].strip()
        if name and marker in name:
            names.append(name)
    return names


def collect_history(sources: Iterable[Tuple[str, bytes]]) -> List[HistoricalMeasurement]:
    """Parse every `(name, payload)` pair and concatenate the records in source order."""

    measurements: List[HistoricalMeasurement] = []
    for name, payload in sources:
        parser = HistoryParser()
        records = parser.parse(payload)
        stats = parser.stats()
        logger.info(
            "Parsed %s: records=%d truncated=%d bytes=%d",
            name,
            stats["records"],
            stats["truncated"],
            stats["bytes"],
        )
        measurements.extend(records)
    return measurements


def load_history_files(paths: Iterable[Path]) -> List[Tuple[str, bytes]]:
    sources: List[Tuple[str, bytes]] = []
    for path in paths:
        try:
            sources.append((path.name, Path(path).read_bytes()))
        except OSError as exc:
            logger.warning("Skipping %s: %s", path, exc)
    return sources


def export_history(paths: Iterable[Path], config: ExportConfig) -> Optional[Path]:
    """Parse history files and export them as one table; `None` when nothing was decoded."""

    return export_measurements(collect_history(load_history_files(paths)), config)


def export_measurements(
    measurements: List[HistoricalMeasurement], config: ExportConfig
) -> Optional[Path]:
    if not measurements:
        logger.warning("No history records decoded; nothing exported")
        return None
    return export_csv(
        measurements,
        config.output_dir,
        prefix=config.filename_prefix,
        date_format=config.date_format,
        utc=config.utc,
        flag_separator=config.flag_separator,
    )
