from typing import Protocol

from sqlalchemy.orm import Session

from lims.models.catalog import Formula, LabPackage, LabPanel, LabTest, ReferenceRange
from lims.schemas.catalog import (
    FormulaDefinition,
    LabTestDefinition,
    PackageDefinition,
    PanelDefinition,
    ReferenceRangeRule,
)


class CatalogReader(Protocol):
    def get_test_by_id(self, test_id: str) -> LabTestDefinition | None: ...

    def get_panel_by_id(self, panel_id: str) -> PanelDefinition | None: ...

    def get_package_by_id(self, package_id: str) -> PackageDefinition | None: ...

    def get_reference_ranges_for_test(self, test_id: str) -> list[ReferenceRangeRule]: ...

    def get_formula(self, parameter_id: str) -> FormulaDefinition | None: ...


class SqlCatalogReader:
    """Catalog reads against the SQLAlchemy session of the current request."""

    def __init__(self, db: Session):
        self.db = db

    def get_test_by_id(self, test_id: str) -> LabTestDefinition | None:
        test = self.db.get(LabTest, test_id)
        if test is None or test.status != "Active":
            return None
        return LabTestDefinition.model_validate(test)

    def get_panel_by_id(self, panel_id: str) -> PanelDefinition | None:
        panel = self.db.get(LabPanel, panel_id)
        if panel is None or panel.status != "Active":
            return None
        return PanelDefinition.model_validate(panel)

    def get_package_by_id(self, package_id: str) -> PackageDefinition | None:
        package = self.db.get(LabPackage, package_id)
        if package is None:
            return None
        return PackageDefinition.model_validate(package)

    def get_reference_ranges_for_test(self, test_id: str) -> list[ReferenceRangeRule]:
        rows = (
            self.db.query(ReferenceRange)
            .filter(ReferenceRange.test_id == test_id)
            .order_by(ReferenceRange.id.asc())
            .all()
        )
        return [ReferenceRangeRule.model_validate(row) for row in rows]

    def get_formula(self, parameter_id: str) -> FormulaDefinition | None:
        formula = (
            self.db.query(Formula)
            .filter(Formula.parameter_id == parameter_id, Formula.status == "Active")
            .first()
        )
        if formula is None:
            return None
        return FormulaDefinition.model_validate(formula)
