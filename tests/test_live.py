from __future__ import annotations

import struct
from datetime import datetime, timezone

import numpy as np
import pytest

from atmolog.live import (
    DATA_CHARACTERISTIC_UUID,
    PM_CHARACTERISTIC_UUID,
    LiveReading,
    PacketLengthError,
    ParticulateTriple,
    decode_live,
    decode_notification,
    decode_particulates,
    decode_pm_value,
)
from atmolog.sentinel import format_value


def build_live(
    *,
    temperature=2150,
    humidity=45,
    pressure=10132,
    voc_index=100,
    voc_ppb=250,
    nox_index=1,
    co2=600,
    battery=87,
):
    return struct.pack(
        "<HBIHHHHB", temperature, humidity, pressure, voc_index, voc_ppb, nox_index, co2, battery
    )


def test_decode_live_fields():
    stamp = datetime(2024, 5, 1, tzinfo=timezone.utc)
    reading = decode_live(build_live(), "AA:BB", timestamp=stamp)
    assert isinstance(reading, LiveReading)
    assert reading.device_id == "AA:BB"
    assert reading.timestamp == stamp
    assert np.isclose(reading.temperature, 21.5)
    assert reading.humidity == 45
    assert np.isclose(reading.pressure, 1013.2)
    assert reading.voc_index == 100
    assert reading.voc_ppb == 250
    assert reading.nox_index == 1
    assert reading.co2_ppm == 600
    assert reading.battery_level == 87


def test_decode_live_assigns_timestamp():
    reading = decode_live(build_live(), "dev")
    assert reading.timestamp.tzinfo is not None


def test_negative_temperature():
    reading = decode_live(build_live(temperature=0xFC18), "dev")
    assert reading.temperature == -10.0
    assert format_value(reading.temperature, "temp") == "-10"


def test_temperature_and_humidity_sentinels():
    reading = decode_live(build_live(temperature=0xFFFF, humidity=0xFF), "dev")
    assert reading.temperature == 65535.0
    assert reading.humidity == -1
    assert format_value(reading.temperature, "temp") == "Off"
    assert format_value(reading.humidity, "hum") == "Off"


def test_live_packet_is_total_for_sixteen_bytes():
    for fill in (0x00, 0x7F, 0x80, 0xFF):
        reading = decode_live(bytes([fill]) * 16, "dev")
        assert isinstance(reading, LiveReading)


def test_short_live_packet_fails():
    with pytest.raises(PacketLengthError):
        decode_live(bytes(15), "dev")


def test_extra_live_bytes_ignored():
    reading = decode_live(build_live() + b"\x01\x02", "dev")
    assert reading.battery_level == 87


def test_pm_value_encoding():
    assert decode_pm_value(0x8032) == 50.0
    assert decode_pm_value(0x0032) == 5.0
    assert decode_pm_value(0xFFFF) == 32767.0


def test_decode_particulates():
    triple = decode_particulates(struct.pack("<HHH", 0x0032, 0x8032, 0x0005) + b"\xAA")
    assert triple == ParticulateTriple(pm1=5.0, pm25=50.0, pm10=0.5)


def test_short_particulate_packet_is_lenient_by_default():
    assert decode_particulates(b"\x01\x02\x03") == ParticulateTriple(0.0, 0.0, 0.0)
    with pytest.raises(PacketLengthError):
        decode_particulates(b"\x01\x02\x03", strict=True)


def test_decode_notification_dispatch():
    assert isinstance(decode_notification(DATA_CHARACTERISTIC_UUID.upper(), build_live(), "dev"), LiveReading)
    assert isinstance(decode_notification(PM_CHARACTERISTIC_UUID, bytes(6), "dev"), ParticulateTriple)
    with pytest.raises(ValueError):
        decode_notification("0000180f-0000-1000-8000-00805f9b34fb", bytes(16), "dev")
