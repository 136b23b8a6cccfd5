"""U.S. Navy body fat and BMI from canonical (metric) measurements."""

import math
from dataclasses import dataclass

from units import cm_to_inches, round_half_up

GENDERS = ("male", "female")


@dataclass(frozen=True)
class MeasurementRecord:
    """Canonical measurements consumed by the formulas (cm, kg)."""
    gender: str | None = None
    height_cm: float | None = None
    weight_kg: float | None = None
    neck_cm: float | None = None
    abdomen_cm: float | None = None
    waist_cm: float | None = None
    hip_cm: float | None = None
    age: float | None = None


def is_positive(value) -> bool:
    """True for a finite real number strictly greater than zero."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value) and value > 0


def _round_finite(value: float) -> float | None:
    return round_half_up(value) if math.isfinite(value) else None


def body_fat_percent_male(height_cm: float, abdomen_cm: float, neck_cm: float) -> float | None:
    """Navy body fat % for men.

    86.010 * log10(abdomen - neck) - 70.041 * log10(height) + 36.76,
    with all circumferences in inches.
    """
    height_in = cm_to_inches(height_cm)
    diff = cm_to_inches(abdomen_cm) - cm_to_inches(neck_cm)
    if not is_positive(height_in) or not is_positive(diff):
        return None
    bf = 86.010 * math.log10(diff) - 70.041 * math.log10(height_in) + 36.76
    return _round_finite(bf)


def body_fat_percent_female(
    height_cm: float, waist_cm: float, hip_cm: float, neck_cm: float
) -> float | None:
    """Navy body fat % for women.

    163.205 * log10(waist + hip - neck) - 97.684 * log10(height) - 78.387,
    with all circumferences in inches.
    """
    height_in = cm_to_inches(height_cm)
    total = cm_to_inches(waist_cm) + cm_to_inches(hip_cm) - cm_to_inches(neck_cm)
    if not is_positive(height_in) or not is_positive(total):
        return None
    bf = 163.205 * math.log10(total) - 97.684 * math.log10(height_in) - 78.387
    return _round_finite(bf)


def body_fat_percent(record: MeasurementRecord) -> float | None:
    """Body fat % for the record's gender, or None if inputs are insufficient."""
    if not is_positive(record.height_cm) or not is_positive(record.neck_cm):
        return None

    if record.gender == "male":
        if not is_positive(record.abdomen_cm):
            return None
        return body_fat_percent_male(record.height_cm, record.abdomen_cm, record.neck_cm)

    if record.gender == "female":
        if not is_positive(record.waist_cm) or not is_positive(record.hip_cm):
            return None
        return body_fat_percent_female(
            record.height_cm, record.waist_cm, record.hip_cm, record.neck_cm
        )

    return None


def bmi(weight_kg: float | None, height_cm: float | None) -> float | None:
    """BMI = weight (kg) / height (m)^2, rounded to 1 decimal."""
    if not is_positive(weight_kg) or not is_positive(height_cm):
        return None
    height_m = height_cm / 100
    return _round_finite(weight_kg / height_m**2)
