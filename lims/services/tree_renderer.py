"""Editable and print presentations of the result tree.

Both presentations walk the same :class:`ResultCategory` tree through
``result_tree`` so an edited report prints with identical grouping and
ordering.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime

from jinja2 import DictLoader, Environment, select_autoescape

from lims.schemas.case import PatientInfo
from lims.schemas.print_setting import PrintSettings
from lims.schemas.result import (
    EntryBlock,
    EntryField,
    EntryGroup,
    EntrySection,
    EntryTest,
    PackageNode,
    ResultCategory,
    TestNode,
)
from lims.services.reference_matcher import classify_value, format_number
from lims.services.report_templates import TEMPLATES
from lims.services.result_tree import UNGROUPED, group_parameters

_env = Environment(loader=DictLoader(TEMPLATES), autoescape=select_autoescape(default=True))

MARKERS = {"high": "↑", "low": "↓"}


# ---------------------------------------------------------------------------
# Editable mode
# ---------------------------------------------------------------------------

def _entry_test(test: TestNode, values: Mapping[str, str], formula_ids: set[str]) -> EntryTest:
    groups = []
    for title, params in group_parameters(test.params):
        fields = []
        for param in params:
            value = values.get(param.param_id, param.value) or ""
            fields.append(
                EntryField(
                    param_id=param.param_id,
                    name=param.name,
                    unit=param.unit,
                    reference=param.reference,
                    value=value,
                    flag=classify_value(value, param.reference),
                    is_formula=param.param_id in formula_ids,
                )
            )
        groups.append(EntryGroup(title=None if title == UNGROUPED else title, fields=fields))
    return EntryTest(test_name=test.test_name, interpretation=test.interpretation, groups=groups)


def _entry_item(node, values: Mapping[str, str], formula_ids: set[str]):
    if isinstance(node, TestNode):
        return _entry_test(node, values, formula_ids)
    return EntryBlock(
        kind="package" if isinstance(node, PackageNode) else "panel",
        name=node.name,
        interpretation=node.interpretation,
        children=[_entry_item(child, values, formula_ids) for child in node.tests],
    )


def build_entry_form(
    categories: list[ResultCategory],
    values: Mapping[str, str] | None = None,
    formula_ids: set[str] | None = None,
) -> list[EntrySection]:
    """Build the input form for entry/edit screens. Out-of-range values are flagged, never rejected."""
    values = values or {}
    formula_ids = formula_ids or set()
    return [
        EntrySection(
            category_name=category.category_name,
            items=[_entry_item(item, values, formula_ids) for item in category.items],
        )
        for category in categories
    ]


# ---------------------------------------------------------------------------
# Print / view mode
# ---------------------------------------------------------------------------

def order_categories(categories: list[ResultCategory], preferred: list[str]) -> list[ResultCategory]:
    """Categories named in ``preferred`` first, in that order; the rest keep document order."""
    rank = {name.strip().lower(): i for i, name in enumerate(preferred)}
    indexed = list(enumerate(categories))
    indexed.sort(key=lambda pair: (rank.get(pair[1].category_name.strip().lower(), len(rank)), pair[0]))
    return [category for _, category in indexed]


def _param_row(param, settings: PrintSettings) -> dict:
    flag = classify_value(param.value, param.reference)
    design = settings.design
    abnormal = flag is not None
    return {
        "type": "param",
        "name": param.name,
        "value": param.value or "-",
        "unit": param.unit or "-",
        "reference": param.reference or "-",
        "flag": flag,
        "marker": MARKERS[flag] if abnormal and settings.general.use_hl_markers else "",
        "red": abnormal and design.red_abnormal,
        "bold": design.bold_values or (abnormal and design.bold_abnormal),
    }


def _test_rows(test: TestNode, settings: PrintSettings, depth: int) -> list[dict]:
    rows = []
    if len(test.params) > 1:
        rows.append({"type": "test_heading", "text": test.test_name, "depth": depth})
    for title, params in group_parameters(test.params):
        if title != UNGROUPED:
            rows.append({"type": "group_heading", "text": title, "depth": depth})
        rows.extend(dict(_param_row(param, settings), depth=depth) for param in params)
    if test.interpretation:
        rows.append({"type": "interpretation", "html": test.interpretation, "depth": depth})
    return rows


def _item_rows(node, settings: PrintSettings, depth: int = 0) -> list[dict]:
    if isinstance(node, TestNode):
        if not node.display_in_report:
            return []
        return _test_rows(node, settings, depth)
    rows = [{"type": "block_heading", "text": node.name, "depth": depth}]
    child_depth = depth + 1 if settings.design.indent_nested else depth
    for child in node.tests:
        rows.extend(_item_rows(child, settings, child_depth))
    if node.interpretation:
        rows.append({"type": "interpretation", "html": node.interpretation, "depth": depth})
    return rows


def build_print_layout(categories: list[ResultCategory], settings: PrintSettings) -> list[dict]:
    general = settings.general
    layout = []
    for index, category in enumerate(order_categories(categories, general.category_order)):
        title = category.category_name.upper() if general.capitalize_tests else category.category_name
        rows = []
        for item in category.items:
            rows.extend(_item_rows(item, settings))
        layout.append(
            {
                "title": title,
                "page_break": general.category_new_page and index > 0,
                "rows": rows,
            }
        )
    return layout


def turnaround_minutes(created_at: datetime | None, finalized_at: datetime | None) -> int | None:
    if created_at is None or finalized_at is None:
        return None
    return max(0, int((finalized_at - created_at).total_seconds() // 60))


def render_report_html(
    categories: list[ResultCategory],
    patient: PatientInfo,
    settings: PrintSettings | None = None,
    *,
    report_no: str = "",
    report_status: str = "",
    tat_minutes: int | None = None,
) -> str:
    settings = settings or PrintSettings()
    template = _env.get_template("report.html")
    return template.render(
        patient=patient,
        age_text=format_number(patient.age),
        report_no=report_no or patient.reg_no,
        report_status=report_status,
        tat_minutes=tat_minutes if settings.show_hide.show_tat_time else None,
        settings=settings,
        categories=build_print_layout(categories, settings),
    )
