"""Reference range selection for report parameters.

A test owns a bank of reference range rules. Each rule is either scoped to a
named parameter of the test or generic (``parameter_name is None``). For a
given parameter and patient the first named rule that fits wins, then the
first generic rule that fits, else the reference is ``"-"``. Text rules
ignore age and sex.
"""

from __future__ import annotations

import logging
import re
from decimal import Decimal
from typing import Iterable, Literal

from lims.schemas.case import PatientInfo
from lims.schemas.catalog import ReferenceRangeRule

logger = logging.getLogger(__name__)

NO_REFERENCE = "-"
# upper age bound for rules authored without one
DEFAULT_MAX_AGE_YEARS = 200.0

RangeFlag = Literal["high", "low"]

_RANGE_RE = re.compile(r"(-?\d+(?:\.\d+)?)\s*-\s*(-?\d+(?:\.\d+)?)")


def age_to_years(age: float, unit: str | None) -> float:
    if unit == "Days":
        return age / 365
    if unit == "Months":
        return age / 12
    return float(age)


def matches_demographics(rule: ReferenceRangeRule, patient: PatientInfo) -> bool:
    if rule.sex != "Any" and rule.sex != patient.sex:
        return False
    age_years = age_to_years(patient.age, patient.age_unit)
    min_years = age_to_years(rule.min_age or 0, rule.min_unit)
    if rule.max_age is None:
        max_years = DEFAULT_MAX_AGE_YEARS
    else:
        max_years = age_to_years(rule.max_age, rule.max_unit)
    return min_years <= age_years <= max_years


def _fits(rule: ReferenceRangeRule, patient: PatientInfo) -> bool:
    if rule.kind == "Text":
        return True
    return matches_demographics(rule, patient)


def select_rule(
    parameter_name: str,
    rules: Iterable[ReferenceRangeRule],
    patient: PatientInfo,
) -> ReferenceRangeRule | None:
    rules = list(rules)
    for rule in rules:
        if rule.parameter_name == parameter_name and _fits(rule, patient):
            return rule
    for rule in rules:
        if rule.parameter_name is None and _fits(rule, patient):
            return rule
    return None


def format_number(value: float) -> str:
    """Shortest plain decimal for a stored bound, never rounded or in exponent form."""
    value = float(value)
    if value.is_integer():
        return str(int(value))
    return format(Decimal(repr(value)), "f")


def format_reference(rule: ReferenceRangeRule | None) -> str:
    if rule is None:
        return NO_REFERENCE
    if rule.kind == "Text":
        return rule.text_value or rule.display_text or NO_REFERENCE
    if rule.lower is not None and rule.upper is not None:
        return f"{format_number(rule.lower)} - {format_number(rule.upper)}"
    if rule.lower is not None:
        return f"> {format_number(rule.lower)}"
    if rule.upper is not None:
        return f"< {format_number(rule.upper)}"
    return NO_REFERENCE


class ReferenceMatcher:
    def resolve(self, parameter_name: str, rules: Iterable[ReferenceRangeRule], patient: PatientInfo) -> str:
        rule = select_rule(parameter_name, rules, patient)
        if rule is None:
            logger.debug("No reference range for parameter %r", parameter_name)
        return format_reference(rule)


def _to_number(value: str | float | None) -> float | None:
    if value is None:
        return None
    try:
        return float(str(value).strip())
    except ValueError:
        return None


def classify_value(value: str | float | None, reference: str | None) -> RangeFlag | None:
    """Return ``"high"``/``"low"`` when a numeric value falls outside a ``"min - max"`` reference."""
    if value in (None, "") or not reference:
        return None
    match = _RANGE_RE.search(reference)
    if not match:
        return None
    number = _to_number(value)
    if number is None:
        return None
    low, high = float(match.group(1)), float(match.group(2))
    if number < low:
        return "low"
    if number > high:
        return "high"
    return None
