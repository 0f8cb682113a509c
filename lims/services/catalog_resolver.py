"""Expand ordered test / panel / package references into the result tree.

Every leaf test carries its parameters with the reference range already
resolved for the patient and an empty value. References that match nothing
in the catalog are dropped with a warning; they never abort the report.
"""

from __future__ import annotations

import logging
from typing import Iterable, Literal

from pydantic import BaseModel

from lims.schemas.case import PatientInfo
from lims.schemas.catalog import LabTestDefinition, PackageDefinition, PanelDefinition, ParameterDefinition
from lims.schemas.result import PackageNode, PanelNode, ResultCategory, ResultParam, TestNode
from lims.services.catalog_store import CatalogReader
from lims.services.reference_matcher import ReferenceMatcher

logger = logging.getLogger(__name__)

ItemKind = Literal["test", "panel", "package"]
PROBE_ORDER: tuple[ItemKind, ...] = ("test", "panel", "package")

PANELS_CATEGORY = "Panels"
PACKAGES_CATEGORY = "Packages"
DEFAULT_CATEGORY = "Other"


class ItemRef(BaseModel):
    id: str
    kind: ItemKind | None = None


def normalize_parameters(test: LabTestDefinition) -> list[ParameterDefinition]:
    """A test without declared parameters reports as one parameter standing for the test itself."""
    if test.parameters:
        return list(test.parameters)
    return [
        ParameterDefinition(
            id=test.id,
            name=test.name,
            short_name=test.short_name,
            unit=test.unit,
            is_formula=test.is_formula,
        )
    ]


def category_for(node) -> str:
    if isinstance(node, PanelNode):
        return PANELS_CATEGORY
    if isinstance(node, PackageNode):
        return PACKAGES_CATEGORY
    return node.category or DEFAULT_CATEGORY


class CatalogResolver:
    def __init__(self, reader: CatalogReader, matcher: ReferenceMatcher | None = None):
        self.reader = reader
        self.matcher = matcher or ReferenceMatcher()

    def resolve(self, refs: Iterable[ItemRef | str], patient: PatientInfo) -> list[ResultCategory]:
        categories: dict[str, ResultCategory] = {}
        for ref in refs:
            node = self.resolve_item(ref, patient)
            if node is None:
                continue
            name = category_for(node)
            if name not in categories:
                categories[name] = ResultCategory(category_name=name)
            categories[name].items.append(node)
        return list(categories.values())

    def resolve_item(self, ref: ItemRef | str, patient: PatientInfo):
        return self._resolve(_as_ref(ref), patient, frozenset())

    # -- internals ---------------------------------------------------------

    def _resolve(self, ref: ItemRef, patient: PatientInfo, path: frozenset, kinds: tuple[ItemKind, ...] | None = None):
        for kind in ((ref.kind,) if ref.kind else kinds or PROBE_ORDER):
            definition = self._lookup(kind, ref.id)
            if definition is None:
                continue
            if (kind, ref.id) in path:
                logger.warning("Circular catalog reference to %s %s, skipping", kind, ref.id)
                return None
            path = path | {(kind, ref.id)}
            if kind == "test":
                return self._build_test(definition, patient)
            if kind == "panel":
                return self._build_panel(definition, patient, path)
            return self._build_package(definition, patient, path)
        logger.warning("Dropping catalog reference %s: no test, panel or package with that id", ref.id)
        return None

    def _lookup(self, kind: ItemKind, item_id: str):
        getter = {
            "test": self.reader.get_test_by_id,
            "panel": self.reader.get_panel_by_id,
            "package": self.reader.get_package_by_id,
        }[kind]
        try:
            return getter(item_id)
        except Exception:
            logger.exception("Catalog lookup failed for %s %s", kind, item_id)
            return None

    def _reference_rules(self, test_id: str):
        try:
            return self.reader.get_reference_ranges_for_test(test_id)
        except Exception:
            logger.exception("Reference range lookup failed for test %s", test_id)
            return []

    def _build_test(self, test: LabTestDefinition, patient: PatientInfo) -> TestNode:
        rules = self._reference_rules(test.id)
        params = [
            ResultParam(
                param_id=param.id,
                name=param.name,
                unit=param.unit or "",
                group_by=param.group_by or "",
                reference=self.matcher.resolve(param.name, rules, patient),
            )
            for param in normalize_parameters(test)
        ]
        return TestNode(
            test_name=test.name,
            category=test.category or DEFAULT_CATEGORY,
            interpretation=test.interpretation or "",
            display_in_report=test.display_in_report,
            params=params,
        )

    def _children(self, ids: list[str], patient: PatientInfo, path: frozenset, kinds: tuple[ItemKind, ...]) -> list:
        children = []
        for child_id in ids:
            node = self._resolve(ItemRef(id=child_id), patient, path, kinds)
            if node is not None:
                children.append(node)
        return children

    def _build_panel(self, panel: PanelDefinition, patient: PatientInfo, path: frozenset) -> PanelNode:
        if not panel.test_ids:
            logger.warning("Panel %s (%s) has no tests", panel.name, panel.id)
        return PanelNode(
            name=panel.name,
            interpretation="" if panel.hide_interpretation else panel.interpretation,
            tests=self._children(panel.test_ids, patient, path, ("test", "panel")),
        )

    def _build_package(self, package: PackageDefinition, patient: PatientInfo, path: frozenset) -> PackageNode:
        tests = self._children(package.test_ids, patient, path, ("test", "panel"))
        tests += self._children(package.panel_ids, patient, path, ("panel",))
        return PackageNode(name=package.name, interpretation=package.interpretation, tests=tests)


def _as_ref(ref: ItemRef | str) -> ItemRef:
    if isinstance(ref, ItemRef):
        return ref
    return ItemRef(id=str(ref))


def refs_from_case_tests(tests: dict[str, list[str]]) -> list[ItemRef]:
    """Flatten a case's category-keyed id map into ordered references.

    Ids filed under ``PANELS`` / ``PACKAGES`` are tagged; everything else is
    probed against the test, panel and package stores in turn.
    """
    refs: list[ItemRef] = []
    for key, ids in tests.items():
        kind: ItemKind | None = None
        if key.upper() == "PANELS":
            kind = "panel"
        elif key.upper() == "PACKAGES":
            kind = "package"
        refs.extend(ItemRef(id=str(item_id), kind=kind) for item_id in ids or [])
    return refs
