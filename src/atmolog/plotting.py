"""Plotting helpers for decoded history."""
from __future__ import annotations

from pathlib import Path
from typing import Any, Sequence

import numpy as np
import pandas as pd

from .export import FIELD_KINDS, history_frame
from .history import HistoricalMeasurement
from .sentinel import is_reading

_PANELS = (
    ("Climate", (("temperature", "Temperature [°C]"), ("humidity", "Humidity [%]"))),
    ("Particulates", (("pm1", "PM1"), ("pm25", "PM2.5"), ("pm10", "PM10"))),
    ("Gases", (("voc_index", "VOC index"), ("nox_index", "NOx index"), ("co2_ppm", "CO2 [ppm]"))),
)


def masked_series(df: pd.DataFrame, column: str) -> pd.Series:
    """Column values with sentinel codes replaced by NaN so they do not distort the axes."""

    kind = FIELD_KINDS[column]
    values = df[column].astype(float)
    if kind is None:
        return values
    mask = values.map(lambda v: not np.isnan(v) and is_reading(v, kind))
    return values.where(mask, np.nan)


def generate_plots(measurements: Sequence[HistoricalMeasurement], output_dir: Path) -> Path:
    if not measurements:
        raise RuntimeError("no measurements to plot")
    plt = _require_matplotlib()
    output_dir.mkdir(parents=True, exist_ok=True)
    df = history_frame(measurements)
    times = df["date"].dt.tz_localize(None)

    fig, axes = plt.subplots(len(_PANELS), 1, figsize=(12, 9), sharex=True)
    for ax, (title, series) in zip(axes, _PANELS):
        plotted = False
        for column, label in series:
            values = masked_series(df, column)
            if values.notna().any():
                ax.plot(times, values, marker=".", linestyle="-", label=label)
                plotted = True
        ax.set_title(title)
        if plotted:
            ax.legend(loc="best")
    axes[-1].set_xlabel("Time (UTC)")

    fig.tight_layout()
    out_path = output_dir / "history.png"
    fig.savefig(out_path, dpi=150)
    plt.close(fig)
    return out_path


def _require_matplotlib() -> Any:
    try:
        import matplotlib
        matplotlib.use("Agg", force=True)
        import matplotlib.pyplot as plt  # type: ignore
    except ImportError as exc:  # pragma: no cover - optional dependency
        raise RuntimeError("matplotlib is required for plotting; install atmolog[plot]") from exc
    return plt
