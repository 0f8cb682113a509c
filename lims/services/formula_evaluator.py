"""Derived parameter values.

A formula parameter stores an arithmetic expression over the names of other
parameters in the report, e.g. ``"Weight / (Height/100 * Height/100)"``.
Whenever values change the whole report is scanned once; each formula whose
dependencies all hold a value is recomputed and written back rounded to two
decimals. A formula that cannot be computed is left blank and never blocks
the rest of the report.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping

from lims.schemas.catalog import FormulaDefinition
from lims.schemas.result import ResultCategory
from lims.services.catalog_store import CatalogReader
from lims.services.expression import ExpressionError, evaluate_expression
from lims.services.result_tree import iter_parameters

logger = logging.getLogger(__name__)


def _name_key(name: str) -> str:
    return name.strip().lower()


def _format_operand(value: float) -> str:
    text = repr(float(value))
    return f"({text})" if value < 0 else text


def substitute_dependencies(expression: str, dependency_values: Mapping[str, float]) -> str:
    """Replace whole-word dependency names with their values, longest names first."""
    for name in sorted(dependency_values, key=lambda n: len(n.strip()), reverse=True):
        token = name.strip()
        if not token:
            continue
        operand = _format_operand(dependency_values[name])
        pattern = re.compile(rf"(?<![\w.]){re.escape(token)}(?![\w.])", re.IGNORECASE)
        expression = pattern.sub(lambda _: operand, expression)
    return expression


def format_result(value: float) -> str:
    return f"{round(value, 2):.2f}"


class FormulaEvaluator:
    def __init__(self, reader: CatalogReader):
        self.reader = reader
        self._formulas: dict[str, FormulaDefinition | None] = {}

    def formula_for(self, parameter_id: str) -> FormulaDefinition | None:
        if parameter_id not in self._formulas:
            try:
                self._formulas[parameter_id] = self.reader.get_formula(parameter_id)
            except Exception:
                logger.exception("Formula lookup failed for parameter %s", parameter_id)
                self._formulas[parameter_id] = None
        return self._formulas[parameter_id]

    def formula_ids(self, categories: list[ResultCategory]) -> set[str]:
        return {p.param_id for p in iter_parameters(categories) if self.formula_for(p.param_id) is not None}

    def dependency_values(
        self,
        formula: FormulaDefinition,
        values: Mapping[str, str],
        ids_by_name: Mapping[str, str],
    ) -> dict[str, float] | None:
        """Numeric values for every dependency, or ``None`` while any of them is still empty."""
        if not formula.dependencies:
            return None
        resolved: dict[str, float] = {}
        for dependency in formula.dependencies:
            param_id = dependency.parameter_id or ids_by_name.get(_name_key(dependency.parameter_name))
            raw = values.get(param_id) if param_id else None
            if raw is None or str(raw).strip() == "":
                return None
            try:
                resolved[dependency.parameter_name] = float(str(raw).strip())
            except ValueError:
                logger.debug("Non-numeric value %r for dependency %s", raw, dependency.parameter_name)
                return None
        return resolved

    def evaluate(self, formula: FormulaDefinition, dependency_values: Mapping[str, float]) -> str | None:
        expression = substitute_dependencies(formula.formula_string, dependency_values)
        try:
            return format_result(evaluate_expression(expression))
        except ExpressionError as exc:
            logger.debug("Formula for %s failed on %r: %s", formula.parameter_id, expression, exc)
            return None

    def apply(self, categories: list[ResultCategory], values: Mapping[str, str]) -> dict[str, str]:
        """Return a copy of ``values`` with every computable formula parameter filled in."""
        updated = {key: "" if value is None else str(value) for key, value in values.items()}
        params = list(iter_parameters(categories))
        ids_by_name: dict[str, str] = {}
        for param in params:
            ids_by_name.setdefault(_name_key(param.name), param.param_id)

        for param in params:
            formula = self.formula_for(param.param_id)
            if formula is None:
                continue
            operands = self.dependency_values(formula, updated, ids_by_name)
            if operands is None:
                continue
            result = self.evaluate(formula, operands)
            updated[param.param_id] = result if result is not None else ""
        return updated
