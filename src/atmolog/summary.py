"""Per-field statistics over decoded history."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional, Sequence

import numpy as np
import pandas as pd

from .export import FIELD_KINDS, NUMERIC_FIELDS
from .history import HistoricalMeasurement
from .sentinel import SensorState, classify


@dataclass(frozen=True)
class FieldSummary:
    name: str
    count: int
    minimum: float
    maximum: float
    mean: float
    off: int
    heating: int


# status is a bitmask; its flags are reported per row, not aggregated
STATISTIC_FIELDS = tuple(attr for attr in NUMERIC_FIELDS if attr != "status")


def _state(value: float, kind: Optional[str]) -> SensorState:
    return classify(value, kind) if kind else SensorState.VALUE


def summarize(measurements: Sequence[HistoricalMeasurement]) -> Dict[str, FieldSummary]:
    """
    Summarise every numeric field present in at least one measurement.
    Sentinel codes are counted as Off/Heating and excluded from min/max/mean;
    fields without sentinel codes are taken as they are.
    """

    summaries: Dict[str, FieldSummary] = {}
    for attr in STATISTIC_FIELDS:
        kind = FIELD_KINDS[attr]
        present = [getattr(m, attr) for m in measurements if getattr(m, attr) is not None]
        if not present:
            continue
        states = [_state(value, kind) for value in present]
        readings = np.array(
            [value for value, state in zip(present, states) if state is SensorState.VALUE],
            dtype=float,
        )
        if readings.size:
            minimum = float(readings.min())
            maximum = float(readings.max())
            mean = float(readings.mean())
        else:
            minimum = maximum = mean = float("nan")
        summaries[attr] = FieldSummary(
            name=attr,
            count=int(readings.size),
            minimum=minimum,
            maximum=maximum,
            mean=mean,
            off=sum(1 for state in states if state is SensorState.OFF),
            heating=sum(1 for state in states if state is SensorState.HEATING),
        )
    return summaries


def summary_frame(summaries: Dict[str, FieldSummary]) -> pd.DataFrame:
    rows = [
        {
            "field": item.name,
            "count": item.count,
            "min": item.minimum,
            "max": item.maximum,
            "mean": item.mean,
            "off": item.off,
            "heating": item.heating,
        }
        for item in summaries.values()
    ]
    return pd.DataFrame(rows, columns=["field", "count", "min", "max", "mean", "off", "heating"])


def write_summary_csv(summaries: Dict[str, FieldSummary], path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    summary_frame(summaries).to_csv(path, index=False)
    return path
