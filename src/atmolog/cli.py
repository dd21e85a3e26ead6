"""Command line interface for the atmolog package."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

import typer

from .config import ExportConfig, load_config
from .demo import run_demo
from .live import PacketLengthError, decode_live, decode_particulates
from .pipeline import collect_history, export_measurements, load_history_files, parse_history_listing
from .sentinel import format_value

app = typer.Typer(context_settings={"help_option_names": ["-h", "--help"]})


def _configure_logging(level: str) -> None:
    name = level.upper()
    if not isinstance(logging.getLevelName(name), int):
        raise typer.BadParameter(f"Unknown logging level '{level}'", param_hint="--log-level")
    logging.basicConfig(
        level=name,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )


def _parse_hex(payload: str) -> bytes:
    cleaned = payload.replace(" ", "").replace(":", "")
    try:
        return bytes.fromhex(cleaned)
    except ValueError as exc:
        raise typer.BadParameter(f"Invalid hex payload: {exc}", param_hint="--hex") from exc


@app.command()
def live(
    payload: str = typer.Option(..., "--hex", help="Notification payload as hex."),
    pm: bool = typer.Option(False, "--pm", help="Decode as a particulate notification."),
    device: str = typer.Option("unknown", "--device", help="Device identifier to attach."),
) -> None:
    """Decode a single live notification."""

    data = _parse_hex(payload)
    if pm:
        try:
            triple = decode_particulates(data, strict=True)
        except PacketLengthError as exc:
            typer.echo(f"[error] {exc}")
            raise typer.Exit(code=1) from exc
        typer.echo(f"PM1: {format_value(triple.pm1)}")
        typer.echo(f"PM2.5: {format_value(triple.pm25)}")
        typer.echo(f"PM10: {format_value(triple.pm10)}")
        return

    try:
        reading = decode_live(data, device)
    except PacketLengthError as exc:
        typer.echo(f"[error] {exc}")
        raise typer.Exit(code=1) from exc
    typer.echo(f"Device: {reading.device_id}")
    typer.echo(f"Temperature: {format_value(reading.temperature, 'temp')}")
    typer.echo(f"Humidity: {format_value(reading.humidity, 'hum')}")
    typer.echo(f"Pressure: {format_value(reading.pressure, 'press')}")
    typer.echo(f"VOC index: {format_value(reading.voc_index)}")
    typer.echo(f"VOC ppb: {format_value(reading.voc_ppb)}")
    typer.echo(f"NOx index: {format_value(reading.nox_index)}")
    typer.echo(f"CO2 ppm: {format_value(reading.co2_ppm)}")
    typer.echo(f"Battery: {reading.battery_level}")


@app.command()
def history(
    files: List[Path] = typer.Argument(..., help="History log files retrieved from the device."),
    out_dir: Optional[Path] = typer.Option(None, "--out", help="Output directory for the CSV."),
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="JSON export config."),
    override: Optional[List[str]] = typer.Option(
        None, "--set", help="Override config keys, e.g. --set utc=false"
    ),
    summary: bool = typer.Option(False, "--summary", help="Also write per-field statistics."),
    plot: bool = typer.Option(False, "--plot", help="Also render a PNG time-series figure."),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Logging level."),
) -> None:
    """Decode history logs and export them as one CSV table."""

    try:
        config = load_config(config_path, override)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="--config/--set") from exc
    if out_dir is not None:
        config.output_dir = out_dir
    _configure_logging(log_level or config.log_level)

    measurements = collect_history(load_history_files(files))
    path = export_measurements(measurements, config)
    if path is None:
        typer.echo("No history records decoded")
        raise typer.Exit(code=1)
    typer.echo(f"Exported {len(measurements)} records to {path}")

    if summary:
        from .summary import summarize, write_summary_csv

        summary_path = write_summary_csv(
            summarize(measurements), config.output_dir / f"{path.stem}_summary.csv"
        )
        typer.echo(f"Summary written to {summary_path}")

    if plot or config.plot:
        from .plotting import generate_plots

        try:
            figure = generate_plots(measurements, config.output_dir)
        except RuntimeError as exc:
            typer.echo(f"[warning] plotting skipped: {exc}")
        else:
            typer.echo(f"Figure written to {figure}")


@app.command()
def listing(
    reply_path: Path = typer.Argument(..., help="Saved `history get` shell reply.", exists=True),
    marker: Optional[str] = typer.Option(
        None, "--marker", help="Substring selecting history files (default: config listing_marker)."
    ),
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="JSON export config."),
    override: Optional[List[str]] = typer.Option(
        None, "--set", help="Override config keys, e.g. --set listing_marker=h_"
    ),
) -> None:
    """List history file names from a device shell reply."""

    try:
        config = load_config(config_path, override)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="--config/--set") from exc
    reply = reply_path.read_text(encoding="utf-8")
    for name in parse_history_listing(reply, marker or config.listing_marker):
        typer.echo(name)


@app.command()
def demo(
    out_dir: Path = typer.Option(Path("demo_output"), "--out", help="Target directory for demo export."),
) -> None:
    """Generate a synthetic history log and export it."""

    _configure_logging(ExportConfig().log_level)
    path = run_demo(out_dir)
    if path is None:
        typer.echo("Demo produced no history records")
        raise typer.Exit(code=1)
    typer.echo(f"Demo history log and export written to {path}")


def run() -> None:
    app()


if __name__ == "__main__":  # pragma: no cover
    run()
