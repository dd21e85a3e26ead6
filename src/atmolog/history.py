from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Tuple

from .live import HUMIDITY_OFF, TEMPERATURE_OFF, decode_pm_value
from .reader import ByteReader


class PacketFeature(enum.IntFlag):
    VOC = 0x01
    CO2 = 0x02
    PM = 0x04
    PM_EXTENDED = 0x08
    GPS = 0x10
    GPS_EXTENDED = 0x20


STATUS_FLAGS: Tuple[Tuple[int, str], ...] = (
    (0, "PM sensor error"),
    (1, "PM laser error"),
    (2, "PM fan error"),
    (3, "CO2 error"),
    (4, "VOC/NOx error"),
    (5, "Pressure error"),
    (6, "Accelerometer error"),
    (7, "Charger error"),
    (8, "Flash error"),
    (9, "GPS error"),
    (10, "External module error"),
    (12, "Motion"),
    (13, "PM enabled"),
    (14, "Charging"),
    (15, "Recently charged"),
)


def decode_status_flags(status: int) -> List[str]:
    """Labels for every tabulated bit set in *status*, lowest bit first."""

    return [label for bit, label in STATUS_FLAGS if status & (1 << bit)]


@dataclass(frozen=True)
class VocBlock:
    index: int
    ppb: int
    nox_index: int


@dataclass(frozen=True)
class Co2Block:
    ppm: int


@dataclass(frozen=True)
class PmBlock:
    pm1: float
    pm25: float
    pm10: float


@dataclass(frozen=True)
class GpsBlock:
    latitude: float
    longitude: float


@dataclass(frozen=True)
class ParticleCountBlock:
    pm05: int
    pm1: int
    pm25: int
    pm10: int
    typical_size: float


@dataclass(frozen=True)
class GpsExtBlock:
    altitude: float
    satellites_fixed: int
    satellites_in_view: int
    accuracy: float


@dataclass(frozen=True)
class HistoricalMeasurement:
    """One decoded history record; optional blocks are ``None`` when their feature bit is clear."""

    timestamp: int
    temperature: float
    humidity: int
    pressure: float
    battery_level: int
    status: int
    history_type: int = 0
    packet_type: int = 0
    voc: Optional[VocBlock] = None
    co2: Optional[Co2Block] = None
    pm: Optional[PmBlock] = None
    gps: Optional[GpsBlock] = None
    particles: Optional[ParticleCountBlock] = None
    gps_ext: Optional[GpsExtBlock] = None

    @property
    def flags(self) -> List[str]:
        return decode_status_flags(self.status)

    @property
    def features(self) -> PacketFeature:
        return PacketFeature(self.packet_type & 0x3F)

    @property
    def voc_index(self) -> Optional[int]:
        return self.voc.index if self.voc else None

    @property
    def voc_ppb(self) -> Optional[int]:
        return self.voc.ppb if self.voc else None

    @property
    def nox_index(self) -> Optional[int]:
        return self.voc.nox_index if self.voc else None

    @property
    def co2_ppm(self) -> Optional[int]:
        return self.co2.ppm if self.co2 else None

    @property
    def pm1(self) -> Optional[float]:
        return self.pm.pm1 if self.pm else None

    @property
    def pm25(self) -> Optional[float]:
        return self.pm.pm25 if self.pm else None

    @property
    def pm10(self) -> Optional[float]:
        return self.pm.pm10 if self.pm else None

    @property
    def latitude(self) -> Optional[float]:
        return self.gps.latitude if self.gps else None

    @property
    def longitude(self) -> Optional[float]:
        return self.gps.longitude if self.gps else None

    @property
    def pm05_particles(self) -> Optional[int]:
        return self.particles.pm05 if self.particles else None

    @property
    def pm1_particles(self) -> Optional[int]:
        return self.particles.pm1 if self.particles else None

    @property
    def pm25_particles(self) -> Optional[int]:
        return self.particles.pm25 if self.particles else None

    @property
    def pm10_particles(self) -> Optional[int]:
        return self.particles.pm10 if self.particles else None

    @property
    def typical_particle_size(self) -> Optional[float]:
        return self.particles.typical_size if self.particles else None

    @property
    def altitude(self) -> Optional[float]:
        return self.gps_ext.altitude if self.gps_ext else None

    @property
    def satellites_fixed(self) -> Optional[int]:
        return self.gps_ext.satellites_fixed if self.gps_ext else None

    @property
    def satellites_in_view(self) -> Optional[int]:
        return self.gps_ext.satellites_in_view if self.gps_ext else None

    @property
    def accuracy(self) -> Optional[float]:
        return self.gps_ext.accuracy if self.gps_ext else None


class _Truncated(Exception):
    pass


def _need(value: Optional[int]) -> int:
    if value is None:
        raise _Truncated
    return value


class HistoryParser:
    """
    Decoder for the history log stream: back-to-back records with no stream header.
    Each record is two header bytes (history type, feature bitmask), the fixed
    core fields, the optional blocks selected by the bitmask and one integrity
    byte. A record cut short ends the stream; everything before it is kept.
    """

    def __init__(self) -> None:
        self._stats: Dict[str, int] = {"records": 0, "truncated": 0, "bytes": 0}
        self._log = logging.getLogger(__name__)

    def parse(self, data: bytes) -> List[HistoricalMeasurement]:
        return list(self.iter_records(data))

    def iter_records(self, data: bytes) -> Iterator[HistoricalMeasurement]:
        reader = ByteReader(data)
        self._stats["bytes"] += len(data)
        while True:
            start = reader.offset
            history_type = reader.read_u8()
            packet_type = reader.read_u8()
            if history_type is None or packet_type is None:
                break
            try:
                record = self._decode_record(reader, history_type, packet_type)
            except _Truncated:
                self._stats["truncated"] += 1
                self._log.debug(
                    "Dropping truncated record at offset %d (packet_type=0x%02X, %d bytes left)",
                    start,
                    packet_type,
                    len(data) - start,
                )
                break
            self._stats["records"] += 1
            yield record

    def _decode_record(
        self, reader: ByteReader, history_type: int, packet_type: int
    ) -> HistoricalMeasurement:
        timestamp = _need(reader.read_u32())
        temperature_raw = _need(reader.read_i16())
        humidity_raw = _need(reader.read_u8())
        pressure_raw = _need(reader.read_u32())
        battery = _need(reader.read_u8())
        status = _need(reader.read_u16())

        features = PacketFeature(packet_type & 0x3F)
        voc = co2 = pm = gps = particles = gps_ext = None
        if features & PacketFeature.VOC:
            voc = VocBlock(
                index=_need(reader.read_u16()),
                ppb=_need(reader.read_u16()),
                nox_index=_need(reader.read_u16()),
            )
        if features & PacketFeature.CO2:
            co2 = Co2Block(ppm=_need(reader.read_u16()))
        if features & PacketFeature.PM:
            pm = PmBlock(
                pm1=decode_pm_value(_need(reader.read_u16())),
                pm25=decode_pm_value(_need(reader.read_u16())),
                pm10=decode_pm_value(_need(reader.read_u16())),
            )
        if features & PacketFeature.GPS:
            gps = GpsBlock(
                latitude=_need(reader.read_i32()) / 1_000_000,
                longitude=_need(reader.read_i32()) / 1_000_000,
            )
        if features & PacketFeature.PM_EXTENDED:
            particles = ParticleCountBlock(
                pm05=_need(reader.read_u16()),
                pm1=_need(reader.read_u16()),
                pm25=_need(reader.read_u16()),
                pm10=_need(reader.read_u16()),
                typical_size=_need(reader.read_u16()) / 1000.0,
            )
        if features & PacketFeature.GPS_EXTENDED:
            for _ in range(4):  # reserved SNR bytes
                _need(reader.read_u8())
            gps_ext = GpsExtBlock(
                altitude=float(_need(reader.read_i16())),
                satellites_fixed=_need(reader.read_u8()),
                satellites_in_view=_need(reader.read_u8()),
                accuracy=_need(reader.read_i16()) / 100.0,
            )

        if reader.read_checksum_byte() is None:
            self._log.debug("Record at timestamp %d has no integrity byte", timestamp)

        return HistoricalMeasurement(
            timestamp=timestamp,
            temperature=TEMPERATURE_OFF if temperature_raw == -1 else temperature_raw / 100.0,
            humidity=HUMIDITY_OFF if humidity_raw == 0xFF else humidity_raw,
            pressure=pressure_raw / 10.0,
            battery_level=battery,
            status=status,
            history_type=history_type,
            packet_type=packet_type,
            voc=voc,
            co2=co2,
            pm=pm,
            gps=gps,
            particles=particles,
            gps_ext=gps_ext,
        )

    def stats(self) -> Dict[str, int]:
        return dict(self._stats)


def parse_history(data: bytes) -> List[HistoricalMeasurement]:
    return HistoryParser().parse(data)
