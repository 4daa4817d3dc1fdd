"""Tests for unit conversion."""

import pytest

from fridge_inventory.services.units import (
    COUNT_UNITS,
    Dimension,
    base_unit_for,
    compatible,
    convert,
    dimension_of,
    supported_units,
)


def test_convert_scales_mass_and_volume() -> None:
    assert convert(1.5, "kg", "g") == 1500.0
    assert convert(250, "g", "kg") == 0.25
    assert convert(2, "l", "ml") == 2000.0
    assert convert(1, "g", "kg") == 0.001


def test_convert_same_unit_returns_amount() -> None:
    assert convert(3, "大さじ", "大さじ") == 3.0


def test_count_units_are_interchangeable() -> None:
    assert convert(2, "本", "個") == 2.0


@pytest.mark.parametrize(
    ("from_unit", "to_unit"),
    [("g", "ml"), ("個", "g"), ("大さじ", "ml"), ("", "g"), ("g", None)],
)
def test_convert_incompatible_units_returns_none(from_unit, to_unit) -> None:
    assert convert(1, from_unit, to_unit) is None


def test_convert_missing_amount_returns_none() -> None:
    assert convert(None, "g", "kg") is None


def test_round_trip_within_dimension() -> None:
    assert convert(convert(750, "g", "kg"), "kg", "g") == 750.0


def test_dimension_helpers() -> None:
    assert dimension_of("ml") == Dimension.VOLUME
    assert dimension_of("尾") == Dimension.COUNT
    assert dimension_of("cup") is None
    assert compatible("kg", "g")
    assert not compatible("kg", "l")
    assert base_unit_for(Dimension.MASS) == "g"
    assert set(COUNT_UNITS) <= set(supported_units())
    assert len(supported_units()) == 15
