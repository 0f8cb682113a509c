import logging

from lims.schemas.catalog import FormulaDefinition, FormulaDependencySpec
from lims.schemas.result import ResultCategory, ResultParam, TestNode
from lims.services.formula_evaluator import FormulaEvaluator, format_result, substitute_dependencies


def _bmi_tree() -> list[ResultCategory]:
    return [
        ResultCategory(
            category_name="Clinical",
            items=[
                TestNode(
                    test_name="Body Mass Index",
                    category="Clinical",
                    params=[
                        ResultParam(param_id="w", name="Weight", unit="kg"),
                        ResultParam(param_id="h", name="Height", unit="cm"),
                        ResultParam(param_id="bmi", name="BMI", unit="kg/m2"),
                    ],
                )
            ],
        )
    ]


def _bmi_formula() -> FormulaDefinition:
    return FormulaDefinition(
        parameter_id="bmi",
        test_id="t-bmi",
        formula_string="Weight / (Height/100 * Height/100)",
        dependencies=[
            FormulaDependencySpec(parameter_name="Weight", parameter_id="w"),
            # resolved by name against the report
            FormulaDependencySpec(parameter_name="Height"),
        ],
    )


def _lipid_tree() -> list[ResultCategory]:
    return [
        ResultCategory(
            category_name="Biochemistry",
            items=[
                TestNode(
                    test_name="Lipid Profile",
                    category="Biochemistry",
                    params=[
                        ResultParam(param_id="chol", name="CHOL"),
                        ResultParam(param_id="hdl", name="HDL"),
                        ResultParam(param_id="trig", name="TRIG"),
                        ResultParam(param_id="ldl", name="LDLCHOL"),
                    ],
                )
            ],
        )
    ]


def test_substitution_matches_whole_words_longest_first():
    assert substitute_dependencies("LDLCHOL + CHOL", {"CHOL": 200, "LDLCHOL": 10}) == "10.0 + 200.0"


def test_substitution_is_case_insensitive_and_wraps_negatives():
    assert substitute_dependencies("chol * 2", {"CHOL": 3}) == "3.0 * 2"
    assert substitute_dependencies("A - B", {"A": 1, "B": -2}) == "1.0 - (-2.0)"


def test_format_result_uses_two_decimals():
    assert format_result(22.857142) == "22.86"
    assert format_result(130) == "130.00"


def test_bmi_is_computed_when_dependencies_present(make_reader):
    evaluator = FormulaEvaluator(make_reader(formulas={"bmi": _bmi_formula()}))

    values = evaluator.apply(_bmi_tree(), {"w": "70", "h": "175"})

    assert values["bmi"] == "22.86"
    assert values["w"] == "70"
    assert values["h"] == "175"


def test_formula_waits_for_every_dependency(make_reader):
    evaluator = FormulaEvaluator(make_reader(formulas={"bmi": _bmi_formula()}))

    assert evaluator.apply(_bmi_tree(), {"w": "70", "h": ""}).get("bmi", "") == ""
    assert evaluator.apply(_bmi_tree(), {"w": "70"}).get("bmi", "") == ""
    assert evaluator.apply(_bmi_tree(), {"w": "heavy", "h": "175"}).get("bmi", "") == ""


def test_stale_value_is_overwritten_on_recalculation(make_reader):
    evaluator = FormulaEvaluator(make_reader(formulas={"bmi": _bmi_formula()}))

    values = evaluator.apply(_bmi_tree(), {"w": "70", "h": "175", "bmi": "1.00"})

    assert values["bmi"] == "22.86"


def test_evaluation_error_leaves_parameter_blank(make_reader, caplog):
    evaluator = FormulaEvaluator(make_reader(formulas={"bmi": _bmi_formula()}))

    with caplog.at_level(logging.DEBUG, logger="lims.services.formula_evaluator"):
        values = evaluator.apply(_bmi_tree(), {"w": "70", "h": "0", "bmi": "9.99"})

    assert values["bmi"] == ""
    assert "failed" in caplog.text


def test_ldl_formula_does_not_confuse_chol_and_ldlchol(make_reader):
    formula = FormulaDefinition(
        parameter_id="ldl",
        test_id="t-lipid",
        formula_string="CHOL - HDL - TRIG / 5",
        dependencies=[
            FormulaDependencySpec(parameter_name="CHOL", parameter_id="chol"),
            FormulaDependencySpec(parameter_name="HDL", parameter_id="hdl"),
            FormulaDependencySpec(parameter_name="TRIG", parameter_id="trig"),
        ],
    )
    evaluator = FormulaEvaluator(make_reader(formulas={"ldl": formula}))

    values = evaluator.apply(_lipid_tree(), {"chol": "200", "hdl": "50", "trig": "100"})

    assert values["ldl"] == "130.00"


def test_formula_lookups_are_cached(make_reader):
    reader = make_reader(formulas={"bmi": _bmi_formula()})
    evaluator = FormulaEvaluator(reader)

    evaluator.apply(_bmi_tree(), {"w": "70", "h": "175"})
    evaluator.apply(_bmi_tree(), {"w": "80", "h": "180"})

    assert reader.calls.count(("formula", "bmi")) == 1
    assert reader.calls.count(("formula", "w")) == 1
    assert evaluator.formula_ids(_bmi_tree()) == {"bmi"}


def test_failing_formula_lookup_is_treated_as_no_formula(make_reader):
    class BrokenReader(make_reader):
        def get_formula(self, parameter_id):
            raise RuntimeError("catalog unavailable")

    evaluator = FormulaEvaluator(BrokenReader())

    values = evaluator.apply(_bmi_tree(), {"w": "70", "h": "175"})

    assert values == {"w": "70", "h": "175"}
