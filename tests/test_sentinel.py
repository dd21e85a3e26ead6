from __future__ import annotations

import pytest

from atmolog.sentinel import SensorState, classify, format_value, is_reading


@pytest.mark.parametrize("value", [65535, 65535.0, 6553.5, 32767])
def test_generic_off_codes(value):
    assert classify(value) is SensorState.OFF
    assert format_value(value) == "Off"


@pytest.mark.parametrize("value", [65534, 6553.4, 32766])
def test_generic_heating_codes(value):
    assert format_value(value) == "Heating"


def test_missing_value_renders_empty():
    assert format_value(None) == ""
    assert format_value(None, "temp") == ""


def test_generic_codes_win_over_kind_specific_checks():
    # 65535.0 is the decoded temperature sentinel and is caught by the generic set
    assert format_value(65535.0, "temp") == "Off"
    assert format_value(65534, "hum") == "Heating"


def test_temperature_specific_codes():
    assert format_value(327.67, "temp") == "Off"
    assert format_value(327.66, "temp") == "Off"
    assert format_value(327.67) == "327.67"


def test_humidity_minus_one_is_off_only_for_humidity():
    assert format_value(-1, "hum") == "Off"
    assert format_value(-1, "humidity") == "Off"
    assert format_value(-1) == "-1"
    assert format_value(45, "hum") == "45"


def test_pressure_specific_code():
    assert format_value(429496729.5, "press") == "Off"
    assert format_value(429496729.5) == "429496729.5"


def test_numeric_rendering():
    assert format_value(-10.0, "temp") == "-10"
    assert format_value(21.5, "temp") == "21.5"
    assert format_value(1013.2, "press") == "1013.2"
    assert format_value(50.0) == "50"
    assert format_value(0) == "0"


def test_unknown_kind_rejected():
    with pytest.raises(ValueError):
        classify(1, "wind")


def test_is_reading():
    assert is_reading(21.5, "temp")
    assert not is_reading(None)
    assert not is_reading(-1, "hum")
    assert not is_reading(65534)
