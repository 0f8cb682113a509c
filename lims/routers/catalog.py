from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from lims.database import get_db
from lims.models.catalog import Formula, LabPackage, LabPanel, LabTest, ReferenceRange
from lims.routers.deps import get_branch_id
from lims.schemas.catalog import (
    FormulaCreate,
    FormulaDefinition,
    FormulaUpdate,
    LabTestCreate,
    LabTestDefinition,
    PackageCreate,
    PackageDefinition,
    PanelCreate,
    PanelDefinition,
    ReferenceRangeCreate,
    ReferenceRangeRule,
)
from lims.services.catalog_service import (
    CatalogValidationError,
    build_reference_range,
    create_formula,
    create_test,
    delete_formula,
    search_catalog,
    update_formula,
)

router = APIRouter(prefix="/api/catalog", tags=["catalog"])


def _ok(data, message: str = "Success", status_code: int = 200) -> dict:
    return {"statusCode": status_code, "message": message, "data": data}


def _get_test_or_404(db: Session, test_id: str) -> LabTest:
    test = db.get(LabTest, test_id)
    if not test:
        raise HTTPException(status_code=404, detail="Test not found")
    return test


@router.get("/search")
def search(
    q: str = Query(min_length=1),
    limit: int = Query(default=20, ge=1, le=100),
    db: Session = Depends(get_db),
):
    return _ok([item.model_dump() for item in search_catalog(db, q, limit=limit)])


# -- tests -----------------------------------------------------------------

@router.post("/tests", status_code=201)
def add_test(payload: LabTestCreate, db: Session = Depends(get_db), branch_id: str = Depends(get_branch_id)):
    try:
        test = create_test(db, payload, branch_id=branch_id)
    except CatalogValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return _ok(LabTestDefinition.model_validate(test).model_dump(), "Test created", 201)


@router.get("/tests")
def list_tests(category: str | None = None, db: Session = Depends(get_db)):
    query = db.query(LabTest).filter(LabTest.status == "Active")
    if category:
        query = query.filter(LabTest.category == category)
    tests = query.order_by(LabTest.category.asc(), LabTest.name.asc()).all()
    return _ok([LabTestDefinition.model_validate(t).model_dump() for t in tests])


@router.get("/tests/{test_id}")
def get_test(test_id: str, db: Session = Depends(get_db)):
    return _ok(LabTestDefinition.model_validate(_get_test_or_404(db, test_id)).model_dump())


# -- panels / packages -----------------------------------------------------

@router.post("/panels", status_code=201)
def add_panel(payload: PanelCreate, db: Session = Depends(get_db)):
    panel = LabPanel(**payload.model_dump())
    db.add(panel)
    db.commit()
    db.refresh(panel)
    return _ok(PanelDefinition.model_validate(panel).model_dump(), "Panel created", 201)


@router.get("/panels/{panel_id}")
def get_panel(panel_id: str, db: Session = Depends(get_db)):
    panel = db.get(LabPanel, panel_id)
    if not panel:
        raise HTTPException(status_code=404, detail="Panel not found")
    return _ok(PanelDefinition.model_validate(panel).model_dump())


@router.post("/packages", status_code=201)
def add_package(payload: PackageCreate, db: Session = Depends(get_db)):
    if db.query(LabPackage.id).filter(LabPackage.name == payload.name).first():
        raise HTTPException(status_code=400, detail="A package with this name already exists")
    package = LabPackage(**payload.model_dump())
    db.add(package)
    db.commit()
    db.refresh(package)
    return _ok(PackageDefinition.model_validate(package).model_dump(), "Package created", 201)


@router.get("/packages/{package_id}")
def get_package(package_id: str, db: Session = Depends(get_db)):
    package = db.get(LabPackage, package_id)
    if not package:
        raise HTTPException(status_code=404, detail="Package not found")
    return _ok(PackageDefinition.model_validate(package).model_dump())


# -- reference ranges ------------------------------------------------------

@router.get("/tests/{test_id}/reference-ranges")
def list_reference_ranges(test_id: str, db: Session = Depends(get_db)):
    test = _get_test_or_404(db, test_id)
    rows = sorted(test.reference_ranges, key=lambda r: r.id)
    return _ok([ReferenceRangeRule.model_validate(r).model_dump() for r in rows])


@router.post("/tests/{test_id}/reference-ranges", status_code=201)
def add_reference_ranges(test_id: str, payload: list[ReferenceRangeCreate], db: Session = Depends(get_db)):
    test = _get_test_or_404(db, test_id)
    try:
        rows = [build_reference_range(test, item) for item in payload]
    except CatalogValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    db.add_all(rows)
    db.commit()
    for row in rows:
        db.refresh(row)
    return _ok([ReferenceRangeRule.model_validate(r).model_dump() for r in rows], "Reference ranges added", 201)


@router.put("/reference-ranges/{range_id}")
def update_reference_range(range_id: int, payload: ReferenceRangeCreate, db: Session = Depends(get_db)):
    row = db.get(ReferenceRange, range_id)
    if not row:
        raise HTTPException(status_code=404, detail="Reference range not found")
    try:
        replacement = build_reference_range(row.test, payload)
    except CatalogValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    for key in ReferenceRangeCreate.model_fields:
        setattr(row, key, getattr(replacement, key))
    db.commit()
    db.refresh(row)
    return _ok(ReferenceRangeRule.model_validate(row).model_dump(), "Reference range updated")


@router.delete("/reference-ranges/{range_id}")
def delete_reference_range(range_id: int, db: Session = Depends(get_db)):
    row = db.get(ReferenceRange, range_id)
    if not row:
        raise HTTPException(status_code=404, detail="Reference range not found")
    db.delete(row)
    db.commit()
    return _ok(None, "Reference range deleted")


# -- formulas --------------------------------------------------------------

@router.post("/formulas", status_code=201)
def add_formula(payload: FormulaCreate, db: Session = Depends(get_db), branch_id: str = Depends(get_branch_id)):
    try:
        formula = create_formula(db, payload, branch_id=branch_id)
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except CatalogValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return _ok(FormulaDefinition.model_validate(formula).model_dump(), "Formula created successfully", 201)


@router.get("/formulas/{parameter_id}")
def get_formula(parameter_id: str, db: Session = Depends(get_db)):
    formula = db.query(Formula).filter(Formula.parameter_id == parameter_id).first()
    if not formula:
        raise HTTPException(status_code=404, detail="Formula not found for this parameter")
    return _ok(FormulaDefinition.model_validate(formula).model_dump())


@router.put("/formulas/{formula_id}")
def edit_formula(formula_id: int, payload: FormulaUpdate, db: Session = Depends(get_db)):
    formula = db.get(Formula, formula_id)
    if not formula:
        raise HTTPException(status_code=404, detail="Formula not found")
    try:
        formula = update_formula(db, formula, payload)
    except CatalogValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return _ok(FormulaDefinition.model_validate(formula).model_dump(), "Formula updated successfully")


@router.delete("/formulas/{formula_id}")
def remove_formula(formula_id: int, db: Session = Depends(get_db)):
    formula = db.get(Formula, formula_id)
    if not formula:
        raise HTTPException(status_code=404, detail="Formula not found")
    delete_formula(db, formula)
    return _ok(None, "Formula deleted successfully")
