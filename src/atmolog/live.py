"""Decoders for the live notification characteristics."""
from __future__ import annotations

import logging
import struct
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional, Union

logger = logging.getLogger(__name__)

DATA_SERVICE_UUID = "bda3c091-e5e0-4dac-8170-7fcef187a1d0"
DATA_CHARACTERISTIC_UUID = "bda3c092-e5e0-4dac-8170-7fcef187a1d0"
PM_CHARACTERISTIC_UUID = "bda3c093-e5e0-4dac-8170-7fcef187a1d0"

PM_ENCODING_FLAG = 0x8000
PM_VALUE_MASK = 0x7FFF

TEMPERATURE_OFF = 65535.0
HUMIDITY_OFF = -1

_LIVE_LAYOUT = struct.Struct("<HBIHHHHB")
_PM_LAYOUT = struct.Struct("<HHH")

LIVE_PACKET_SIZE = _LIVE_LAYOUT.size
PM_PACKET_SIZE = _PM_LAYOUT.size


class PacketLengthError(ValueError):
    """Raised when a fixed-layout packet is shorter than its layout."""


@dataclass(frozen=True)
class LiveReading:
    device_id: str
    timestamp: datetime
    temperature: float
    humidity: int
    pressure: float
    voc_index: int
    voc_ppb: int
    nox_index: int
    co2_ppm: int
    battery_level: int


@dataclass(frozen=True)
class ParticulateTriple:
    pm1: float
    pm25: float
    pm10: float


def decode_pm_value(raw: int) -> float:
    """Bit 15 selects whole µg/m³ (low 15 bits); otherwise the value is in 0.1 µg/m³."""

    if raw & PM_ENCODING_FLAG:
        return float(raw & PM_VALUE_MASK)
    return raw / 10.0


def decode_temperature(raw: int) -> float:
    if raw == 0xFFFF:
        return TEMPERATURE_OFF
    if raw & 0x8000:
        raw -= 0x10000
    return raw / 100.0


def decode_humidity(raw: int) -> int:
    return HUMIDITY_OFF if raw == 0xFF else raw


def decode_live(
    payload: bytes,
    device_id: str,
    *,
    timestamp: Optional[datetime] = None,
) -> LiveReading:
    if len(payload) < LIVE_PACKET_SIZE:
        raise PacketLengthError(
            f"Live packet requires {LIVE_PACKET_SIZE} bytes, got {len(payload)}"
        )
    (
        temperature_raw,
        humidity_raw,
        pressure_raw,
        voc_index,
        voc_ppb,
        nox_index,
        co2_ppm,
        battery,
    ) = _LIVE_LAYOUT.unpack_from(payload, 0)
    return LiveReading(
        device_id=device_id,
        timestamp=timestamp or datetime.now(timezone.utc),
        temperature=decode_temperature(temperature_raw),
        humidity=decode_humidity(humidity_raw),
        pressure=pressure_raw / 10.0,
        voc_index=voc_index,
        voc_ppb=voc_ppb,
        nox_index=nox_index,
        co2_ppm=co2_ppm,
        battery_level=battery,
    )


def decode_particulates(payload: bytes, *, strict: bool = False) -> ParticulateTriple:
    if len(payload) < PM_PACKET_SIZE:
        if strict:
            raise PacketLengthError(
                f"PM packet requires {PM_PACKET_SIZE} bytes, got {len(payload)}"
            )
        logger.debug("Short PM packet (%d bytes), reporting zeros", len(payload))
        return ParticulateTriple(pm1=0.0, pm25=0.0, pm10=0.0)
    pm1_raw, pm25_raw, pm10_raw = _PM_LAYOUT.unpack_from(payload, 0)
    return ParticulateTriple(
        pm1=decode_pm_value(pm1_raw),
        pm25=decode_pm_value(pm25_raw),
        pm10=decode_pm_value(pm10_raw),
    )


def decode_notification(
    uuid: str,
    payload: bytes,
    device_id: str,
) -> Union[LiveReading, ParticulateTriple]:
    """Route a characteristic notification to its decoder."""

    key = uuid.lower()
    if key == DATA_CHARACTERISTIC_UUID:
        return decode_live(payload, device_id)
    if key == PM_CHARACTERISTIC_UUID:
        return decode_particulates(payload)
    raise ValueError(f"Unknown characteristic '{uuid}'")
