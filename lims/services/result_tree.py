"""Traversal and persistence helpers for the category -> item -> test -> parameter tree.

Entry, edit and print all walk the tree through these helpers so that every
view sees the same grouping and ordering. The persisted document uses the
shape::

    [{"categoryName": ..., "items": [
        {"testName", "category", "interpretation", "params": [
            {"paramId", "name", "unit", "groupBy", "value", "reference"}]},
        {"panelOrPackageName", "isPanel", "isPackage", "interpretation", "tests": [...]},
    ]}]
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping

from lims.schemas.result import PackageNode, PanelNode, ResultCategory, ResultParam, TestNode

UNGROUPED = "Ungrouped"


def iter_test_nodes(nodes) -> Iterator[TestNode]:
    for node in nodes:
        if isinstance(node, TestNode):
            yield node
        else:
            yield from iter_test_nodes(node.tests)


def iter_category_tests(categories: list[ResultCategory]) -> Iterator[TestNode]:
    for category in categories:
        yield from iter_test_nodes(category.items)


def iter_parameters(categories: list[ResultCategory]) -> Iterator[ResultParam]:
    for test in iter_category_tests(categories):
        yield from test.params


def collect_values(categories: list[ResultCategory]) -> dict[str, str]:
    return {param.param_id: param.value for param in iter_parameters(categories)}


def apply_values(categories: list[ResultCategory], values: Mapping[str, str]) -> None:
    for param in iter_parameters(categories):
        if param.param_id in values:
            value = values[param.param_id]
            param.value = "" if value is None else str(value).strip()


def group_parameters(params: list[ResultParam]) -> list[tuple[str, list[ResultParam]]]:
    """Cluster parameters by groupBy, keeping first-appearance order of groups and parameters."""
    groups: dict[str, list[ResultParam]] = {}
    for param in params:
        key = param.group_by.strip() or UNGROUPED
        groups.setdefault(key, []).append(param)
    return list(groups.items())


# ---------------------------------------------------------------------------
# Persisted document shape
# ---------------------------------------------------------------------------

def _param_to_document(param: ResultParam) -> dict:
    return {
        "paramId": param.param_id,
        "name": param.name,
        "unit": param.unit,
        "groupBy": param.group_by,
        "value": param.value,
        "reference": param.reference,
    }


def _node_to_document(node) -> dict:
    if isinstance(node, TestNode):
        return {
            "testName": node.test_name,
            "category": node.category,
            "interpretation": node.interpretation,
            "displayInReport": node.display_in_report,
            "params": [_param_to_document(p) for p in node.params],
        }
    return {
        "panelOrPackageName": node.name,
        "isPanel": isinstance(node, PanelNode),
        "isPackage": isinstance(node, PackageNode),
        "interpretation": node.interpretation,
        "tests": [_node_to_document(child) for child in node.tests],
    }


def to_document(categories: list[ResultCategory]) -> list[dict]:
    return [
        {"categoryName": category.category_name, "items": [_node_to_document(item) for item in category.items]}
        for category in categories
    ]


def _param_from_document(raw: dict) -> ResultParam:
    return ResultParam(
        param_id=str(raw["paramId"]),
        name=raw.get("name", ""),
        unit=raw.get("unit") or "",
        group_by=raw.get("groupBy") or "",
        value="" if raw.get("value") is None else str(raw["value"]),
        reference=raw.get("reference") or "",
    )


def _node_from_document(raw: dict):
    if raw.get("isPanel") or raw.get("isPackage"):
        children = [_node_from_document(child) for child in raw.get("tests") or []]
        name = raw.get("panelOrPackageName") or ""
        interpretation = raw.get("interpretation") or ""
        if raw.get("isPackage"):
            return PackageNode(name=name, interpretation=interpretation, tests=children)
        return PanelNode(name=name, interpretation=interpretation, tests=children)
    return TestNode(
        test_name=raw.get("testName", ""),
        category=raw.get("category") or "Other",
        interpretation=raw.get("interpretation") or "",
        display_in_report=raw.get("displayInReport", True) is not False,
        params=[_param_from_document(p) for p in raw.get("params") or []],
    )


def from_document(document: list[dict]) -> list[ResultCategory]:
    """Rebuild the typed tree from a persisted document. Raises ``ValueError`` on malformed input."""
    categories = []
    for raw in document:
        try:
            categories.append(
                ResultCategory(
                    category_name=raw["categoryName"],
                    items=[_node_from_document(item) for item in raw.get("items") or []],
                )
            )
        except (KeyError, TypeError, AttributeError) as exc:
            raise ValueError(f"Malformed result document: {exc}") from exc
    return categories
