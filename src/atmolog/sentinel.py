"""Classification and display of device sentinel codes."""
from __future__ import annotations

import enum
from typing import Optional, Union

Number = Union[int, float]

OFF_VALUES = frozenset({0xFFFF, 0xFFFF / 10.0, 0x7FFF})
HEATING_VALUES = frozenset({0xFFFE, 0xFFFE / 10.0, 0x7FFE})
TEMPERATURE_OFF_VALUES = frozenset({0x7FFF / 100.0, 0x7FFE / 100.0})
HUMIDITY_OFF_VALUES = frozenset({-1})
PRESSURE_OFF_VALUES = frozenset({0xFFFFFFFF / 10.0})

_KIND_ALIASES = {
    "generic": "generic",
    "temp": "temp",
    "temperature": "temp",
    "hum": "hum",
    "humidity": "hum",
    "press": "press",
    "pressure": "press",
}


class SensorState(str, enum.Enum):
    VALUE = "value"
    OFF = "Off"
    HEATING = "Heating"


def normalize_kind(kind: str) -> str:
    try:
        return _KIND_ALIASES[kind.lower()]
    except KeyError:
        raise ValueError(f"Unknown field kind '{kind}'") from None


def classify(value: Number, kind: str = "generic") -> SensorState:
    """Return the device state encoded by *value*.

    The generic Off/Heating codes are checked before the kind-specific ones,
    so a temperature equal to 65535.0 is Off through the generic set.
    """

    kind = normalize_kind(kind)
    if value in OFF_VALUES:
        return SensorState.OFF
    if value in HEATING_VALUES:
        return SensorState.HEATING
    if kind == "temp" and value in TEMPERATURE_OFF_VALUES:
        return SensorState.OFF
    if kind == "hum" and value in HUMIDITY_OFF_VALUES:
        return SensorState.OFF
    if kind == "press" and value in PRESSURE_OFF_VALUES:
        return SensorState.OFF
    return SensorState.VALUE


def is_reading(value: Optional[Number], kind: str = "generic") -> bool:
    if value is None:
        return False
    return classify(value, kind) is SensorState.VALUE


def format_number(value: Number) -> str:
    if isinstance(value, bool):
        return str(int(value))
    if isinstance(value, int):
        return str(value)
    if value.is_integer():
        return str(int(value))
    # shortest round-trip form, locale independent
    return repr(value)


def format_value(value: Optional[Number], kind: str = "generic") -> str:
    """Render *value* for display, replacing sentinel codes with their label."""

    if value is None:
        return ""
    state = classify(value, kind)
    if state is not SensorState.VALUE:
        return state.value
    return format_number(value)
