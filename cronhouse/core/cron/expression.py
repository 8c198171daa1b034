"""
5-field cron expression parser.

Format: "minute hour day_of_month month day_of_week"

Field values:
  - minute:       0-59
  - hour:         0-23
  - day_of_month: 1-31
  - month:        1-12 (or jan-dec)
  - day_of_week:  0-6, 0=Sunday (or sun-sat; 7 is also Sunday)

Each field is "*", an integer, a range "a-b", a step "*/n", "a-b/n" or "a/n",
or a comma-separated list of those. "?" is a wildcard in the two day fields.
Descriptors such as "@daily" expand to their 5-field form.
"""
import re
from dataclasses import dataclass
from datetime import datetime
from functools import lru_cache
from typing import Dict, FrozenSet, Optional, Tuple

from cronhouse.core.cron.errors import CronParseError


MONTH_NAMES = {
    "jan": 1, "feb": 2, "mar": 3, "apr": 4, "may": 5, "jun": 6,
    "jul": 7, "aug": 8, "sep": 9, "oct": 10, "nov": 11, "dec": 12,
}

# cron convention: 0=Sunday
DAY_NAMES = {
    "sun": 0, "mon": 1, "tue": 2, "wed": 3, "thu": 4, "fri": 5, "sat": 6,
}

DESCRIPTORS = {
    "@yearly": "0 0 1 1 *",
    "@annually": "0 0 1 1 *",
    "@monthly": "0 0 1 * *",
    "@weekly": "0 0 * * 0",
    "@daily": "0 0 * * *",
    "@midnight": "0 0 * * *",
    "@hourly": "0 * * * *",
}

_NUMBER = re.compile(r"^\d+$", re.ASCII)
_STEP = re.compile(r"^-?\d+$", re.ASCII)


@dataclass(frozen=True)
class _FieldSpec:
    name: str
    low: int
    high: int
    names: Optional[Dict[str, int]] = None
    allow_question: bool = False
    # day_of_week accepts 7 as an alias of 0
    wrap: bool = False


MINUTE = _FieldSpec("minute", 0, 59)
HOUR = _FieldSpec("hour", 0, 23)
DAY_OF_MONTH = _FieldSpec("day_of_month", 1, 31, allow_question=True)
MONTH = _FieldSpec("month", 1, 12, names=MONTH_NAMES)
DAY_OF_WEEK = _FieldSpec("day_of_week", 0, 6, names=DAY_NAMES, allow_question=True, wrap=True)

FIELD_SPECS: Tuple[_FieldSpec, ...] = (MINUTE, HOUR, DAY_OF_MONTH, MONTH, DAY_OF_WEEK)


@dataclass(frozen=True)
class CronField:
    """Allowed values of one cron field. `wildcard` is set when the field was written with * or ?."""
    name: str
    values: FrozenSet[int]
    wildcard: bool = False

    def __contains__(self, value: int) -> bool:
        return value in self.values


@dataclass(frozen=True)
class RecurrenceDescriptor:
    """Normalized form of a cron expression. Immutable."""
    expression: str
    minute: CronField
    hour: CronField
    day_of_month: CronField
    month: CronField
    day_of_week: CronField

    def day_matches(self, dt: datetime) -> bool:
        """
        Standard cron day rule: when both day fields are restricted a day matches
        if EITHER matches; when one is a wildcard only the other constrains.
        """
        dom_match = dt.day in self.day_of_month
        dow_match = (dt.weekday() + 1) % 7 in self.day_of_week
        if self.day_of_month.wildcard or self.day_of_week.wildcard:
            return dom_match and dow_match
        return dom_match or dow_match

    def matches(self, dt: datetime) -> bool:
        """True if the minute containing dt is a fire time."""
        return (
            dt.minute in self.minute
            and dt.hour in self.hour
            and dt.month in self.month
            and self.day_matches(dt)
        )


def _parse_value(token: str, spec: _FieldSpec) -> int:
    token = token.strip().lower()
    if spec.names and token in spec.names:
        return spec.names[token]
    if not _NUMBER.match(token):
        raise CronParseError(f"{spec.name}: invalid value {token!r}")
    value = int(token)
    high = spec.high + 1 if spec.wrap else spec.high
    if value < spec.low or value > high:
        raise CronParseError(
            f"{spec.name}: value {value} out of range [{spec.low}-{spec.high}]"
        )
    return value


def _parse_step(text: str, spec: _FieldSpec) -> int:
    if not _STEP.match(text):
        raise CronParseError(f"{spec.name}: invalid step {text!r}")
    step = int(text)
    if step <= 0:
        raise CronParseError(f"{spec.name}: step must be positive, got {step}")
    return step


def parse_field(text: str, spec: _FieldSpec) -> CronField:
    """Parse one field into the set of values it allows."""
    values = set()
    wildcard = False
    for part in text.split(","):
        if not part:
            raise CronParseError(f"{spec.name}: empty list element in {text!r}")
        base, has_step, step_text = part.partition("/")
        step = _parse_step(step_text, spec) if has_step else 1

        if base == "*" or (base == "?" and spec.allow_question):
            low, high = spec.low, spec.high
            wildcard = True
        elif "-" in base:
            low_text, _, high_text = base.partition("-")
            low = _parse_value(low_text, spec)
            high = _parse_value(high_text, spec)
            if low > high:
                raise CronParseError(f"{spec.name}: inverted range {base!r}")
        else:
            low = _parse_value(base, spec)
            if has_step:
                # "a/n" means "a-max/n"; an alias above max (dow 7) starts from its wrapped value
                if spec.wrap and low > spec.high:
                    low %= spec.high + 1
                high = spec.high
            else:
                high = low

        values.update(range(low, high + 1, step))

    if spec.wrap:
        values = {v % (spec.high + 1) for v in values}
    return CronField(name=spec.name, values=frozenset(values), wildcard=wildcard)


@lru_cache(maxsize=256)
def parse_expression(expression: str) -> RecurrenceDescriptor:
    """
    Parse a cron expression into a RecurrenceDescriptor.

    Raises CronParseError on wrong field count, unknown tokens, out-of-range
    values, inverted ranges or non-positive steps.
    """
    if not isinstance(expression, str):
        raise CronParseError(f"cron expression must be a string, got {type(expression).__name__}")
    raw = expression.strip()
    expanded = DESCRIPTORS.get(raw.lower(), raw)
    if expanded.startswith("@"):
        raise CronParseError(f"unknown descriptor {raw!r}")

    fields = expanded.split()
    if len(fields) != 5:
        raise CronParseError(
            f"expected 5 fields (minute hour day_of_month month day_of_week), got {len(fields)}: {raw!r}"
        )

    minute, hour, dom, month, dow = (
        parse_field(text, spec) for text, spec in zip(fields, FIELD_SPECS)
    )
    return RecurrenceDescriptor(
        expression=raw,
        minute=minute,
        hour=hour,
        day_of_month=dom,
        month=month,
        day_of_week=dow,
    )
