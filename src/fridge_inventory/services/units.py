"""Unit dimensions and conversions between recipe and catalog units."""

from enum import Enum


class Dimension(str, Enum):
    """Family of mutually convertible units."""

    MASS = "mass"
    VOLUME = "volume"
    COUNT = "count"


SCALED_UNITS: dict[Dimension, dict[str, float]] = {
    Dimension.MASS: {"g": 1.0, "kg": 1000.0},
    Dimension.VOLUME: {"ml": 1.0, "l": 1000.0},
}

# Every count unit denotes one item regardless of its label.
COUNT_UNITS: tuple[str, ...] = (
    "個",
    "本",
    "束",
    "パック",
    "袋",
    "枚",
    "缶",
    "瓶",
    "箱",
    "玉",
    "尾",
)

BASE_UNITS: dict[Dimension, str] = {
    Dimension.MASS: "g",
    Dimension.VOLUME: "ml",
    Dimension.COUNT: "個",
}


def dimension_of(unit: str | None) -> Dimension | None:
    """Return the dimension a unit belongs to, or None when unknown."""
    if not unit:
        return None
    for dimension, ratios in SCALED_UNITS.items():
        if unit in ratios:
            return dimension
    if unit in COUNT_UNITS:
        return Dimension.COUNT
    return None


def compatible(from_unit: str | None, to_unit: str | None) -> bool:
    """Return True when an amount can be converted between the two units."""
    if from_unit and from_unit == to_unit:
        return True
    from_dimension = dimension_of(from_unit)
    return from_dimension is not None and from_dimension == dimension_of(to_unit)


def convert(
    amount: float | None, from_unit: str | None, to_unit: str | None
) -> float | None:
    """Convert an amount between units of the same dimension.

    Returns None for a missing amount, blank or unknown units, and units from
    different dimensions.
    """
    if amount is None or not from_unit or not to_unit:
        return None
    if from_unit == to_unit:
        return float(amount)
    dimension = dimension_of(from_unit)
    if dimension is None or dimension != dimension_of(to_unit):
        return None
    if dimension == Dimension.COUNT:
        return float(amount)
    ratios = SCALED_UNITS[dimension]
    base_amount = float(amount) * ratios[from_unit]
    return round(base_amount / ratios[to_unit], 3)


def supported_units() -> list[str]:
    """Return every unit known to the converter."""
    units: list[str] = []
    for ratios in SCALED_UNITS.values():
        units.extend(ratios)
    units.extend(COUNT_UNITS)
    return units


def base_unit_for(dimension: Dimension) -> str:
    """Return the reference unit of a dimension."""
    return BASE_UNITS[dimension]
