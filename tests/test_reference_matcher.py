import pytest

from lims.schemas.case import PatientInfo
from lims.schemas.catalog import ReferenceRangeRule
from lims.services.reference_matcher import (
    ReferenceMatcher,
    age_to_years,
    classify_value,
    format_reference,
    select_rule,
)


def _rule(**kwargs) -> ReferenceRangeRule:
    kwargs.setdefault("test_id", "hb")
    return ReferenceRangeRule(**kwargs)


def _patient(age, sex="Male", unit="Years") -> PatientInfo:
    return PatientInfo(first_name="Test", age=age, age_unit=unit, sex=sex)


@pytest.mark.parametrize(
    "age, unit, expected",
    [(730, "Days", 2.0), (18, "Months", 1.5), (30, "Years", 30.0)],
)
def test_age_to_years(age, unit, expected):
    assert age_to_years(age, unit) == pytest.approx(expected)


def test_male_adult_hemoglobin_range_and_low_flag():
    rules = [_rule(parameter_name="Hemoglobin", sex="Male", min_age=18, max_age=60, lower=13, upper=17)]
    reference = ReferenceMatcher().resolve("Hemoglobin", rules, _patient(30))

    assert reference == "13 - 17"
    assert classify_value("12", reference) == "low"


def test_named_rule_beats_earlier_generic_rule():
    rules = [
        _rule(parameter_name=None, lower=1, upper=2),
        _rule(parameter_name="Neutrophils", lower=40, upper=80),
    ]
    assert ReferenceMatcher().resolve("Neutrophils", rules, _patient(30)) == "40 - 80"
    assert ReferenceMatcher().resolve("Lymphocytes", rules, _patient(30)) == "1 - 2"


def test_first_fitting_rule_wins_when_ranges_overlap():
    rules = [
        _rule(sex="Any", min_age=0, max_age=100, lower=10, upper=20),
        _rule(sex="Male", min_age=18, max_age=60, lower=13, upper=17),
    ]
    assert select_rule("Hemoglobin", rules, _patient(30)) is rules[0]


def test_sex_and_age_bounds_are_respected():
    rules = [
        _rule(sex="Female", min_age=18, max_age=60, lower=12, upper=15),
        _rule(sex="Any", min_age=0, max_age=None, lower=11, upper=16),
    ]
    matcher = ReferenceMatcher()
    assert matcher.resolve("Hemoglobin", rules, _patient(30, sex="Female")) == "12 - 15"
    assert matcher.resolve("Hemoglobin", rules, _patient(70, sex="Female")) == "11 - 16"
    assert matcher.resolve("Hemoglobin", rules, _patient(150, sex="Male")) == "11 - 16"


def test_age_bounds_are_inclusive_and_unit_aware():
    rules = [_rule(min_age=0, min_unit="Days", max_age=1, max_unit="Months", lower=7, upper=20)]
    assert ReferenceMatcher().resolve("Hemoglobin", rules, _patient(10, unit="Days")) == "7 - 20"
    assert ReferenceMatcher().resolve("Hemoglobin", rules, _patient(1, unit="Months")) == "7 - 20"
    assert ReferenceMatcher().resolve("Hemoglobin", rules, _patient(2, unit="Months")) == "-"


def test_text_rule_ignores_demographics():
    rules = [_rule(parameter_name="Colour", kind="Text", sex="Female", min_age=50, text_value="Pale Yellow")]
    assert ReferenceMatcher().resolve("Colour", rules, _patient(30)) == "Pale Yellow"


def test_no_matching_rule_gives_dash():
    rules = [_rule(sex="Female", lower=12, upper=15)]
    assert ReferenceMatcher().resolve("Hemoglobin", rules, _patient(30)) == "-"
    assert ReferenceMatcher().resolve("Hemoglobin", [], _patient(30)) == "-"


@pytest.mark.parametrize(
    "kwargs, expected",
    [
        ({"lower": 40}, "> 40"),
        ({"upper": 200}, "< 200"),
        ({"lower": 18.5, "upper": 24.9}, "18.5 - 24.9"),
        ({"lower": 12.345678, "upper": 100}, "12.345678 - 100"),
        ({"lower": 0.00001, "upper": 0.00004}, "0.00001 - 0.00004"),
        ({"upper": 1234567.5}, "< 1234567.5"),
        ({}, "-"),
        ({"kind": "Text", "display_text": "Negative"}, "Negative"),
        ({"kind": "Text"}, "-"),
    ],
)
def test_format_reference(kwargs, expected):
    assert format_reference(_rule(**kwargs)) == expected


@pytest.mark.parametrize(
    "value, expected",
    [("25", "high"), ("5", "low"), ("15", None), ("10", None), ("20", None), ("abc", None), ("", None)],
)
def test_classify_value_against_range(value, expected):
    assert classify_value(value, "10 - 20") == expected


def test_classify_value_ignores_non_range_references():
    assert classify_value("5", "-") is None
    assert classify_value("5", "> 40") is None
    assert classify_value("5", "Pale Yellow") is None


def test_small_bounds_still_classify_after_formatting():
    reference = format_reference(_rule(lower=0.00001, upper=0.00004))

    assert classify_value("0.00009", reference) == "high"
    assert classify_value("0.000001", reference) == "low"
    assert classify_value("0.00002", reference) is None
