import logging
import re

from rapidfuzz import fuzz
from sqlalchemy import func
from sqlalchemy.orm import Session

from lims.config import settings
from lims.models.catalog import (
    Formula,
    FormulaDependency,
    LabPackage,
    LabPanel,
    LabTest,
    LabTestParameter,
    ReferenceRange,
)
from lims.schemas.catalog import (
    CatalogSearchItem,
    FormulaCreate,
    FormulaDependencySpec,
    FormulaUpdate,
    LabTestCreate,
    ReferenceRangeCreate,
)

logger = logging.getLogger(__name__)


class CatalogValidationError(ValueError):
    pass


def _normalize(text: str) -> str:
    return re.sub(r"[^a-z0-9]", "", text.lower())


def _best_score(query_norm: str, names: list[str | None]) -> float:
    best = 0.0
    for name in names:
        if not name:
            continue
        candidate = _normalize(name)
        if not candidate:
            continue
        if candidate.startswith(query_norm):
            return 100.0
        best = max(best, fuzz.WRatio(query_norm, candidate))
    return best


def search_catalog(db: Session, query: str, threshold: int | None = None, limit: int | None = None) -> list[CatalogSearchItem]:
    """Fuzzy lookup across tests, panels and packages by name or short name, best matches first."""
    query_norm = _normalize(query)
    if not query_norm:
        return []
    score_threshold = threshold if threshold is not None else settings.catalog_search_threshold
    max_items = limit if limit is not None else settings.catalog_search_limit

    hits: list[CatalogSearchItem] = []
    for test in db.query(LabTest).filter(LabTest.status == "Active").all():
        score = _best_score(query_norm, [test.name, test.short_name])
        if score >= score_threshold:
            hits.append(CatalogSearchItem(id=test.id, kind="test", name=test.name, category=test.category, price=test.price, score=score))
    for panel in db.query(LabPanel).filter(LabPanel.status == "Active").all():
        score = _best_score(query_norm, [panel.name])
        if score >= score_threshold:
            hits.append(CatalogSearchItem(id=panel.id, kind="panel", name=panel.name, category=panel.category, price=panel.price, score=score))
    for package in db.query(LabPackage).all():
        score = _best_score(query_norm, [package.name])
        if score >= score_threshold:
            hits.append(CatalogSearchItem(id=package.id, kind="package", name=package.name, category=None, price=package.fee, score=score))

    hits.sort(key=lambda item: (-item.score, item.name))
    return hits[:max_items]


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------

def create_test(db: Session, payload: LabTestCreate, branch_id: str | None = None) -> LabTest:
    names = [p.name.strip().lower() for p in payload.parameters]
    if len(names) != len(set(names)):
        raise CatalogValidationError("Parameter names must be unique within a test")

    test = LabTest(branch_id=branch_id, **payload.model_dump(exclude={"parameters"}))
    test.parameters = [
        LabTestParameter(order=index, **param.model_dump())
        for index, param in enumerate(payload.parameters)
    ]
    db.add(test)
    db.commit()
    db.refresh(test)
    return test


def _parameter_name(test: LabTest, parameter_id: str | None) -> str | None:
    if parameter_id is None:
        return None
    if parameter_id == test.id:
        return test.name
    for param in test.parameters:
        if param.id == parameter_id:
            return param.name
    raise CatalogValidationError(f"Parameter {parameter_id} does not belong to test {test.id}")


def build_reference_range(test: LabTest, payload: ReferenceRangeCreate) -> ReferenceRange:
    data = payload.model_dump()
    if payload.parameter_id and not payload.parameter_name:
        data["parameter_name"] = _parameter_name(test, payload.parameter_id)
    if payload.kind == "Numeric" and payload.lower is not None and payload.upper is not None and payload.lower > payload.upper:
        raise CatalogValidationError("Lower bound must not exceed upper bound")
    if payload.kind == "Text" and not (payload.text_value or payload.display_text):
        raise CatalogValidationError("Text reference ranges need a text value or display text")
    return ReferenceRange(test_id=test.id, test_name=test.name, **data)


def _check_dependencies(db: Session, dependencies: list[FormulaDependencySpec]) -> None:
    if not dependencies:
        raise CatalogValidationError("A formula needs at least one dependency")
    for dep in dependencies:
        if dep.parameter_id is not None:
            known = db.get(LabTestParameter, dep.parameter_id) or db.get(LabTest, dep.parameter_id)
        else:
            name = dep.parameter_name.strip().lower()
            known = (
                db.query(LabTestParameter.id).filter(func.lower(LabTestParameter.name) == name).first()
                or db.query(LabTest.id).filter(func.lower(LabTest.name) == name).first()
            )
        if not known:
            raise CatalogValidationError(f"Unknown formula dependency {dep.parameter_name!r}")


def _mark_formula(db: Session, test: LabTest, parameter_id: str, flag: bool) -> None:
    if parameter_id == test.id:
        test.is_formula = flag
        return
    param = db.get(LabTestParameter, parameter_id)
    if param is not None:
        param.is_formula = flag


def create_formula(db: Session, payload: FormulaCreate, branch_id: str | None = None) -> Formula:
    test = db.get(LabTest, payload.test_id)
    if test is None:
        raise LookupError("Test not found")
    parameter_id = payload.parameter_id or test.id
    _parameter_name(test, parameter_id)
    _check_dependencies(db, payload.dependencies)
    if db.query(Formula.id).filter(Formula.parameter_id == parameter_id).first():
        raise CatalogValidationError("This parameter already has a formula")

    formula = Formula(
        parameter_id=parameter_id,
        test_id=test.id,
        test_name=test.name,
        short_name=test.short_name,
        formula_string=payload.formula_string,
        remarks=payload.remarks,
        branch_id=branch_id,
    )
    formula.dependencies = [
        FormulaDependency(position=index, parameter_id=dep.parameter_id, parameter_name=dep.parameter_name)
        for index, dep in enumerate(payload.dependencies)
    ]
    _mark_formula(db, test, parameter_id, True)
    db.add(formula)
    db.commit()
    db.refresh(formula)
    logger.info("Created formula for parameter %s of test %s", parameter_id, test.name)
    return formula


def update_formula(db: Session, formula: Formula, payload: FormulaUpdate) -> Formula:
    if payload.dependencies is not None:
        _check_dependencies(db, payload.dependencies)
    if payload.formula_string is not None:
        formula.formula_string = payload.formula_string
    if payload.remarks is not None:
        formula.remarks = payload.remarks
    if payload.status is not None:
        formula.status = payload.status
    if payload.dependencies is not None:
        formula.dependencies = [
            FormulaDependency(position=index, parameter_id=dep.parameter_id, parameter_name=dep.parameter_name)
            for index, dep in enumerate(payload.dependencies)
        ]
    db.commit()
    db.refresh(formula)
    return formula


def delete_formula(db: Session, formula: Formula) -> None:
    test = db.get(LabTest, formula.test_id)
    if test is not None:
        _mark_formula(db, test, formula.parameter_id, False)
    db.delete(formula)
    db.commit()
