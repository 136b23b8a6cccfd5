"""Metric/imperial conversions for lengths and masses.

Everything is stored and computed in centimeters and kilograms. Conversions
to inches and pounds only happen at the edge facing the user.
"""

import math

CM_PER_IN = 2.54
LB_PER_KG = 2.20462

LENGTH_UNITS = ("cm", "in")
MASS_UNITS = ("kg", "lb")
UNIT_SYSTEMS = ("metric", "imperial")

LENGTH_FIELDS = ("height_cm", "neck_cm", "abdomen_cm", "waist_cm", "hip_cm")
MASS_FIELDS = ("weight_kg",)


def cm_to_inches(cm: float) -> float:
    return cm / CM_PER_IN


def inches_to_cm(inches: float) -> float:
    return inches * CM_PER_IN


def kg_to_lb(kg: float) -> float:
    return kg * LB_PER_KG


def lb_to_kg(lb: float) -> float:
    return lb / LB_PER_KG


def length_to_canonical(value: float, unit: str) -> float:
    """Convert a length in `unit` to centimeters."""
    if unit == "cm":
        return value
    if unit == "in":
        return inches_to_cm(value)
    raise ValueError(f"Unknown length unit: {unit!r}")


def length_from_canonical(cm: float, unit: str) -> float:
    """Convert centimeters to `unit`."""
    if unit == "cm":
        return cm
    if unit == "in":
        return cm_to_inches(cm)
    raise ValueError(f"Unknown length unit: {unit!r}")


def mass_to_canonical(value: float, unit: str) -> float:
    """Convert a mass in `unit` to kilograms."""
    if unit == "kg":
        return value
    if unit == "lb":
        return lb_to_kg(value)
    raise ValueError(f"Unknown mass unit: {unit!r}")


def mass_from_canonical(kg: float, unit: str) -> float:
    """Convert kilograms to `unit`."""
    if unit == "kg":
        return kg
    if unit == "lb":
        return kg_to_lb(kg)
    raise ValueError(f"Unknown mass unit: {unit!r}")


def field_unit(field: str, unit_system: str) -> str:
    """Return the unit a measurement field is entered in for a unit system."""
    if unit_system not in UNIT_SYSTEMS:
        raise ValueError(f"Unknown unit system: {unit_system!r}")
    imperial = unit_system == "imperial"
    if field in LENGTH_FIELDS:
        return "in" if imperial else "cm"
    if field in MASS_FIELDS:
        return "lb" if imperial else "kg"
    raise ValueError(f"Not a measurement field: {field!r}")


def field_units(field: str) -> tuple[str, ...]:
    """Units a measurement field may be entered in."""
    if field in LENGTH_FIELDS:
        return LENGTH_UNITS
    if field in MASS_FIELDS:
        return MASS_UNITS
    raise ValueError(f"Not a measurement field: {field!r}")


def to_canonical(field: str, value: float, unit: str) -> float:
    """Convert a field value entered in `unit` to its canonical unit."""
    if field in MASS_FIELDS:
        return mass_to_canonical(value, unit)
    return length_to_canonical(value, unit)


def from_canonical(field: str, value: float, unit: str) -> float:
    """Convert a canonical field value to `unit`."""
    if field in MASS_FIELDS:
        return mass_from_canonical(value, unit)
    return length_from_canonical(value, unit)


def round_half_up(value: float) -> float:
    """Round to one decimal place with halves going up (24.25 -> 24.3)."""
    return math.floor(value * 10 + 0.5) / 10


def to_display(value: float | None) -> float | None:
    """Round a value for presentation (one decimal place)."""
    if value is None:
        return None
    return round_half_up(value)
