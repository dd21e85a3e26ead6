"""Demo dataset utilities."""
from __future__ import annotations

import struct
from pathlib import Path

import numpy as np

from .config import ExportConfig
from .history import PacketFeature
from .pipeline import export_history

_CORE = struct.Struct("<BBIhBIBH")


def create_demo_stream(records: int = 48, start: int = 1_700_000_000, interval: int = 300) -> bytes:
    """Synthesize a history log with a mix of feature blocks and sentinel states."""

    rng = np.random.default_rng(42)
    chunks = []
    for idx in range(records):
        features = PacketFeature.VOC | PacketFeature.PM
        if idx % 3 == 0:
            features |= PacketFeature.CO2
        if idx % 4 == 0:
            features |= PacketFeature.GPS | PacketFeature.GPS_EXTENDED
        if idx % 6 == 0:
            features |= PacketFeature.PM_EXTENDED

        temperature = int(round((21.0 + 2.5 * np.sin(idx / 8.0) + rng.normal(scale=0.2)) * 100))
        humidity = 0xFF if idx == 0 else int(np.clip(45 + rng.normal(scale=3.0), 0, 100))
        pressure = int(round((1013.2 + rng.normal(scale=0.8)) * 10))
        battery = max(100 - idx // 2, 0)
        status = (1 << 13) | ((1 << 12) if idx % 5 == 0 else 0)

        body = bytearray(
            _CORE.pack(0x01, int(features), start + idx * interval, temperature, humidity, pressure, battery, status)
        )
        if features & PacketFeature.VOC:
            voc_index = 0xFFFE if idx < 2 else int(100 + rng.integers(0, 40))
            body += struct.pack("<HHH", voc_index, int(rng.integers(50, 400)), int(1 + rng.integers(0, 3)))
        if features & PacketFeature.CO2:
            body += struct.pack("<H", int(420 + rng.integers(0, 300)))
        if features & PacketFeature.PM:
            pm25 = int(abs(rng.normal(loc=80, scale=20)))
            body += struct.pack("<HHH", pm25 // 2, pm25, 0x8000 | (pm25 // 10 + 5))
        if features & PacketFeature.GPS:
            body += struct.pack("<ii", int(52_520_008 + rng.integers(-500, 500)), int(13_404_954 + rng.integers(-500, 500)))
        if features & PacketFeature.PM_EXTENDED:
            body += struct.pack("<HHHHH", 1200, 800, 120, 4, 650)
        if features & PacketFeature.GPS_EXTENDED:
            body += bytes(4) + struct.pack("<hBBh", 34, 7, 11, 250)
        body.append(0x00)
        chunks.append(bytes(body))
    return b"".join(chunks)


def run_demo(out_dir: Path) -> Path | None:
    out_dir.mkdir(parents=True, exist_ok=True)
    log_path = out_dir / "demo_h_active.bin"
    log_path.write_bytes(create_demo_stream())
    return export_history([log_path], ExportConfig(output_dir=out_dir))
