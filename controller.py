"""Session state for the calculator inputs.

The controller owns the in-memory inputs for one session. Edits update
memory immediately and are persisted in the background by a single writer
task, so saves land in the order they were issued and the newest state
always wins.
"""

import asyncio
import logging
import math
from dataclasses import dataclass, fields

from config import BMI_POLICY, BODY_FAT_POLICY
from db import INPUT_FIELDS, StoreError
from formulas import GENDERS, MeasurementRecord, bmi, body_fat_percent
from health import bmi_status, body_fat_status
from units import (
    LENGTH_FIELDS,
    MASS_FIELDS,
    UNIT_SYSTEMS,
    field_unit,
    field_units,
    from_canonical,
    to_canonical,
    to_display,
)

log = logging.getLogger(__name__)

LOADING = "loading"
READY = "ready"

MEASUREMENT_FIELDS = LENGTH_FIELDS + MASS_FIELDS
NUMERIC_FIELDS = MEASUREMENT_FIELDS + ("age",)


class NotReady(RuntimeError):
    """Inputs were edited before the stored record finished loading."""


class InvalidInput(ValueError):
    """A raw value could not be read as a number."""


@dataclass(frozen=True)
class Results:
    """Values derived from the current inputs. None means not enough data."""
    body_fat_pct: float | None
    bmi: float | None
    body_fat_status: str | None
    bmi_status: str | None


def parse_number(raw) -> float | None:
    """Read a raw field value. Blank clears the field (None), not zero."""
    if raw is None:
        return None
    if isinstance(raw, bool):
        raise InvalidInput(f"Not a number: {raw!r}")
    if isinstance(raw, str):
        raw = raw.strip()
        if not raw:
            return None
    try:
        value = float(raw)
    except (TypeError, ValueError):
        raise InvalidInput(f"Not a number: {raw!r}") from None
    if not math.isfinite(value):
        raise InvalidInput(f"Not a finite number: {raw!r}")
    return value


def _whole(value: float | None) -> float | int | None:
    if value is not None and float(value).is_integer():
        return int(value)
    return value


def parse_row(row: dict) -> dict:
    """Validate a stored record and return its input fields.

    Raises ValueError if any value has the wrong type or an unknown enum.
    """
    state = {field: row.get(field) for field in INPUT_FIELDS}
    if state["gender"] not in (None, *GENDERS):
        raise ValueError(f"Bad gender: {state['gender']!r}")
    if state["unit_preference"] not in (None, *UNIT_SYSTEMS):
        raise ValueError(f"Bad unit preference: {state['unit_preference']!r}")
    for field in NUMERIC_FIELDS:
        value = state[field]
        if value is None:
            continue
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError(f"Bad {field}: {value!r}")
    state["age"] = _whole(state["age"])
    return state


def compute_results(
    state: dict,
    body_fat_policy: str = BODY_FAT_POLICY,
    bmi_policy: str = BMI_POLICY,
) -> Results:
    """Run the formulas and classifiers over an input state."""
    record = MeasurementRecord(**{
        f.name: state.get(f.name) for f in fields(MeasurementRecord)
    })
    percent = body_fat_percent(record)
    bmi_value = bmi(record.weight_kg, record.height_cm)
    return Results(
        body_fat_pct=percent,
        bmi=bmi_value,
        body_fat_status=body_fat_status(percent, record.gender, record.age, body_fat_policy),
        bmi_status=bmi_status(bmi_value, bmi_policy),
    )


class InputStateController:
    """Owns the current inputs and keeps the store up to date.

    Edits must be made from inside the running event loop; persistence is
    scheduled on it as a task.
    """

    def __init__(
        self,
        store,
        body_fat_policy: str = BODY_FAT_POLICY,
        bmi_policy: str = BMI_POLICY,
    ):
        self.store = store
        self.body_fat_policy = body_fat_policy
        self.bmi_policy = bmi_policy
        self.status = LOADING
        self._state = {field: None for field in INPUT_FIELDS}
        self._pending: dict | None = None
        self._writer: asyncio.Task | None = None
        self._loading: asyncio.Task | None = None

    @property
    def state(self) -> dict:
        return dict(self._state)

    @property
    def unit_preference(self) -> str:
        return self._state["unit_preference"] or "metric"

    async def load(self) -> None:
        """Read the stored inputs once and become ready.

        Concurrent and repeated calls all wait on the same single read.
        """
        if self._loading is None:
            self._loading = asyncio.get_running_loop().create_task(self._load())
        await self._loading

    async def _load(self) -> None:
        try:
            row = await asyncio.to_thread(self.store.load)
            if row:
                self._state = parse_row(row)
                log.info("Loaded saved inputs")
            else:
                log.info("No saved inputs, starting empty")
        except (StoreError, ValueError) as e:
            log.warning("Ignoring saved inputs: %s", e)
            self._state = {field: None for field in INPUT_FIELDS}
        self.status = READY

    def edit(self, field: str, raw_value, source_unit: str | None = None) -> Results:
        """Set a measurement from a raw value entered in `source_unit`.

        The unit defaults to the one implied by the unit preference. The value
        is converted to cm/kg straight from what was typed.
        """
        if field not in MEASUREMENT_FIELDS:
            raise ValueError(f"Not a measurement field: {field!r}")
        if source_unit and source_unit not in field_units(field):
            raise ValueError(f"Cannot enter {field} in {source_unit!r}")
        value = parse_number(raw_value)
        unit = source_unit or field_unit(field, self.unit_preference)
        if value is not None:
            value = to_canonical(field, value, unit)
        return self._merge({field: value})

    def change_gender(self, gender: str | None) -> Results:
        if gender not in (None, *GENDERS):
            raise ValueError(f"Unknown gender: {gender!r}")
        return self._merge({"gender": gender})

    def change_unit_preference(self, unit_preference: str) -> Results:
        if unit_preference not in UNIT_SYSTEMS:
            raise ValueError(f"Unknown unit system: {unit_preference!r}")
        return self._merge({"unit_preference": unit_preference})

    def change_age(self, raw_age) -> Results:
        return self._merge({"age": _whole(parse_number(raw_age))})

    def results(self) -> Results:
        return compute_results(self._state, self.body_fat_policy, self.bmi_policy)

    def display_values(self) -> dict:
        """Inputs in the preferred units, rounded for presentation."""
        system = self.unit_preference
        values = {
            "gender": self._state["gender"],
            "age": self._state["age"],
            "unit_preference": system,
            "units": {},
        }
        for field in MEASUREMENT_FIELDS:
            unit = field_unit(field, system)
            value = self._state[field]
            if value is not None:
                value = to_display(from_canonical(field, value, unit))
            values[field] = value
            values["units"][field] = unit
        return values

    async def flush(self) -> None:
        """Wait until every scheduled save has been attempted."""
        while self._writer is not None and not self._writer.done():
            await self._writer

    def _merge(self, changes: dict) -> Results:
        if self.status != READY:
            raise NotReady("Inputs are still loading")
        self._state.update(changes)
        self._schedule_persist()
        return self.results()

    def _schedule_persist(self) -> None:
        self._pending = dict(self._state)
        if self._writer is None or self._writer.done():
            self._writer = asyncio.get_running_loop().create_task(self._write_pending())

    async def _write_pending(self) -> None:
        while self._pending is not None:
            snapshot, self._pending = self._pending, None
            try:
                await asyncio.to_thread(self.store.save, snapshot)
            except StoreError as e:
                log.warning("Could not save inputs, will retry on next edit: %s", e)
