"""Green/yellow/red status bands for body fat and BMI."""

import math

from config import BMI_POLICY, BODY_FAT_POLICY

GREEN = "green"
YELLOW = "yellow"
RED = "red"

BODY_FAT_POLICIES = ("age_banded", "fixed_band")
BMI_POLICIES = ("two_band", "three_band")

# (max age in bracket, male limit %, female limit %)
NAVY_LIMITS = (
    (21, 22, 33),
    (29, 23, 34),
    (39, 24, 35),
    (math.inf, 26, 36),
)

# gender -> (green range, yellow range), inclusive
FIXED_BANDS = {
    "male": ((8, 19), (20, 24)),
    "female": ((21, 32), (33, 38)),
}


def _is_number(value) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def body_fat_limit(age: float | None, gender: str) -> float | None:
    """US Navy maximum body fat % by age bracket. None under 18 or without age."""
    if not _is_number(age) or age < 18:
        return None
    for max_age, male_limit, female_limit in NAVY_LIMITS:
        if age <= max_age:
            return male_limit if gender == "male" else female_limit
    return None


def _fixed_band_status(percent: float, gender: str) -> str:
    (green_lo, green_hi), (yellow_lo, yellow_hi) = FIXED_BANDS[gender]
    if green_lo <= percent <= green_hi:
        return GREEN
    if yellow_lo <= percent <= yellow_hi:
        return YELLOW
    return RED


def body_fat_status(
    percent: float | None,
    gender: str | None,
    age: float | None,
    policy: str = BODY_FAT_POLICY,
) -> str | None:
    """Classify a body fat percentage.

    "age_banded": green up to the Navy limit for the age bracket, red above
    it, no status under 18 or without an age.
    "fixed_band": age-independent green/yellow/red ranges per gender.
    """
    if policy not in BODY_FAT_POLICIES:
        raise ValueError(f"Unknown body fat policy: {policy!r}")
    if not _is_number(percent) or gender not in FIXED_BANDS:
        return None

    if policy == "fixed_band":
        return _fixed_band_status(percent, gender)

    limit = body_fat_limit(age, gender)
    if limit is None:
        return None
    return GREEN if percent <= limit else RED


def bmi_status(value: float | None, policy: str = BMI_POLICY) -> str | None:
    """Classify a BMI. Normal (18.5-24.9) is green under either policy."""
    if policy not in BMI_POLICIES:
        raise ValueError(f"Unknown BMI policy: {policy!r}")
    if not _is_number(value):
        return None

    if 18.5 <= value <= 24.9:
        return GREEN
    if policy == "three_band" and (17 <= value < 18.5 or 24.9 < value < 30):
        return YELLOW
    return RED
