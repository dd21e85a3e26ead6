from __future__ import annotations

import json
import struct
from pathlib import Path

import pandas as pd
import pytest

from atmolog.config import ExportConfig, _coerce_value, load_config
from atmolog.demo import create_demo_stream, run_demo
from atmolog.history import parse_history
from atmolog.pipeline import (
    collect_history,
    export_history,
    load_history_files,
    parse_history_listing,
)


def build_core_record(ts: int, packet_type: int = 0) -> bytes:
    body = struct.pack("<BBIhBIBH", 1, packet_type, ts, 2000, 40, 10100, 77, 0)
    if packet_type & 0x02:
        body += struct.pack("<H", 900)
    return body + b"\x00"


def test_parse_history_listing():
    reply = "history get h_active_001.bin,1024;h_active_002.bin,2048;h_archive.bin,12;\n"
    assert parse_history_listing(reply) == ["h_active_001.bin", "h_active_002.bin"]


def test_parse_history_listing_without_echo_and_custom_marker():
    reply = "  log_a,1; h_active_9,2 ;log_b ;;"
    assert parse_history_listing(reply, marker="log") == ["log_a", "log_b"]
    assert parse_history_listing("") == []


def test_collect_history_keeps_source_order():
    sources = [
        ("h_active_002", build_core_record(20) + build_core_record(21)),
        ("h_active_001", build_core_record(10, packet_type=0x02)),
        ("h_active_003", b""),
    ]
    records = collect_history(sources)
    assert [r.timestamp for r in records] == [20, 21, 10]
    assert records[2].co2_ppm == 900


def test_load_history_files_skips_unreadable(tmp_path: Path):
    good = tmp_path / "h_active_1.bin"
    good.write_bytes(build_core_record(5))
    sources = load_history_files([good, tmp_path / "missing.bin"])
    assert sources == [("h_active_1.bin", build_core_record(5))]


def test_export_history(tmp_path: Path):
    log_a = tmp_path / "a.bin"
    log_b = tmp_path / "b.bin"
    log_a.write_bytes(build_core_record(1) + build_core_record(2))
    log_b.write_bytes(build_core_record(3)[:-5])
    config = ExportConfig(output_dir=tmp_path / "export", filename_prefix="test")
    path = export_history([log_a, log_b], config)
    assert path is not None
    assert path.parent == tmp_path / "export"
    assert path.name.startswith("test_")
    df = pd.read_csv(path, dtype=str, keep_default_na=False)
    assert list(df["Timestamp"]) == ["1", "2"]
    assert list(df["Temperature"]) == ["20", "20"]


def test_export_history_nothing_decoded(tmp_path: Path):
    empty = tmp_path / "empty.bin"
    empty.write_bytes(b"")
    assert export_history([empty], ExportConfig(output_dir=tmp_path / "export")) is None
    assert not (tmp_path / "export").exists()


def test_load_config_defaults():
    config = load_config()
    assert config.output_dir == Path("history_export")
    assert config.utc is True
    assert config.flag_separator == "|"


def test_load_config_file_and_overrides(tmp_path: Path):
    cfg_path = tmp_path / "export.json"
    cfg_path.write_text(
        json.dumps({"output_dir": "exports", "date_format": "%Y/%m/%d", "log_level": "debug"}),
        encoding="utf-8",
    )
    config = load_config(cfg_path, overrides=["utc=false", "filename_prefix=pro2"])
    assert config.output_dir == Path("exports")
    assert config.date_format == "%Y/%m/%d"
    assert config.utc is False
    assert config.filename_prefix == "pro2"
    assert config.log_level == "DEBUG"


@pytest.mark.parametrize(
    "overrides",
    [["colour=blue"], ["utc=maybe"], ["flag_separator=,"], ["no_equals_sign"]],
)
def test_load_config_rejects_bad_input(overrides):
    with pytest.raises(ValueError):
        load_config(overrides=overrides)


def test_demo_stream_parses_completely():
    stream = create_demo_stream(records=24)
    records = parse_history(stream)
    assert len(records) == 24
    assert records[0].humidity == -1
    assert records[0].particles is not None
    assert records[1].co2 is None


def test_run_demo(tmp_path: Path):
    path = run_demo(tmp_path)
    assert path is not None and path.exists()
    df = pd.read_csv(path, dtype=str, keep_default_na=False)
    assert len(df) == 48
    assert df.iloc[0]["Humidity"] == "Off"
    assert df.iloc[0]["VOC Index"] == "Heating"


def test_override_values_are_coerced_like_json():
    assert _coerce_value("true") is True
    assert _coerce_value("42") == 42
    assert _coerce_value("2.5") == 2.5
    assert _coerce_value("1e3") == 1000.0
    assert _coerce_value('["a", "b"]') == ["a", "b"]
    assert _coerce_value("h_active") == "h_active"


def test_string_keys_keep_numeric_looking_overrides():
    config = load_config(overrides=["filename_prefix=2024", "output_dir=123", "listing_marker=1e5"])
    assert config.filename_prefix == "2024"
    assert config.output_dir == Path("123")
    assert config.listing_marker == "1e5"
    with pytest.raises(ValueError, match="expects true or false, got 1"):
        load_config(overrides=["utc=1"])
