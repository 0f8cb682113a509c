import logging

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import HTMLResponse
from sqlalchemy.orm import Session

from lims.database import get_db
from lims.models.case import Case
from lims.routers.deps import get_branch_id
from lims.schemas.case import PatientInfo
from lims.schemas.result import CalculateRequest, ResultCategory, ResultSubmit
from lims.services.cases import CaseNotFoundError, CaseStore, ResultStoreError, patient_info
from lims.services.catalog_resolver import CatalogResolver, refs_from_case_tests
from lims.services.catalog_store import SqlCatalogReader
from lims.services.formula_evaluator import FormulaEvaluator
from lims.services.print_settings import load_print_settings
from lims.services.reference_matcher import classify_value
from lims.services.result_tree import apply_values, collect_values, from_document, iter_parameters, to_document
from lims.services.tree_renderer import build_entry_form, render_report_html, turnaround_minutes

router = APIRouter(prefix="/api/results", tags=["results"])
logger = logging.getLogger(__name__)


def _get_case(store: CaseStore, report_id: str) -> Case:
    try:
        return store.get_case(report_id)
    except CaseNotFoundError as exc:
        raise HTTPException(status_code=404, detail="Case not found") from exc
    except ResultStoreError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc


def _saved_tree(store: CaseStore, report_id: str) -> list[ResultCategory] | None:
    try:
        return store.get_result(report_id)
    except ResultStoreError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc


def _parse_tree(document: list[dict]) -> list[ResultCategory]:
    try:
        return from_document(document)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc


def _resolve_tree(db: Session, case: Case) -> list[ResultCategory]:
    resolver = CatalogResolver(SqlCatalogReader(db))
    return resolver.resolve(refs_from_case_tests(case.tests or {}), patient_info(case))


def _flags(categories: list[ResultCategory], values: dict[str, str]) -> dict[str, str | None]:
    return {
        param.param_id: classify_value(values.get(param.param_id, param.value), param.reference)
        for param in iter_parameters(categories)
    }


def _finalize_tree(db: Session, categories: list[ResultCategory], values: dict[str, str]) -> list[ResultCategory]:
    merged = {**collect_values(categories), **values}
    computed = FormulaEvaluator(SqlCatalogReader(db)).apply(categories, merged)
    apply_values(categories, computed)
    return categories


def _result_payload(case: Case, record, categories: list[ResultCategory]) -> dict:
    return {
        "report_id": case.id,
        "report_no": record.report_no,
        "branch_id": record.branch_id,
        "patient": record.patient,
        "categories": to_document(categories),
        "status": record.status,
        "updated_at": record.updated_at.isoformat() if record.updated_at else None,
    }


@router.get("/{report_id}/entry")
def get_entry_form(
    report_id: str,
    db: Session = Depends(get_db),
    branch_id: str = Depends(get_branch_id),
):
    store = CaseStore(db, branch_id)
    case = _get_case(store, report_id)
    saved = _saved_tree(store, report_id)
    categories = saved if saved is not None else _resolve_tree(db, case)

    values = collect_values(categories)
    formula_ids = FormulaEvaluator(SqlCatalogReader(db)).formula_ids(categories)
    form = build_entry_form(categories, values, formula_ids)
    return {
        "statusCode": 200,
        "message": "Success",
        "data": {
            "report_id": case.id,
            "saved": saved is not None,
            "patient": patient_info(case).model_dump(),
            "categories": to_document(categories),
            "values": values,
            "formula_ids": sorted(formula_ids),
            "form": [section.model_dump() for section in form],
        },
    }


@router.post("/{report_id}/calculate")
def calculate_values(
    report_id: str,
    payload: CalculateRequest,
    db: Session = Depends(get_db),
    branch_id: str = Depends(get_branch_id),
):
    store = CaseStore(db, branch_id)
    case = _get_case(store, report_id)
    if payload.categories is not None:
        categories = _parse_tree(payload.categories)
    else:
        categories = _saved_tree(store, report_id) or _resolve_tree(db, case)

    merged = {**collect_values(categories), **payload.values}
    values = FormulaEvaluator(SqlCatalogReader(db)).apply(categories, merged)
    return {
        "statusCode": 200,
        "message": "Success",
        "data": {"values": values, "flags": _flags(categories, values)},
    }


@router.post("/{report_id}", status_code=201)
def create_result(
    report_id: str,
    payload: ResultSubmit,
    db: Session = Depends(get_db),
    branch_id: str = Depends(get_branch_id),
):
    store = CaseStore(db, branch_id)
    case = _get_case(store, report_id)
    if store.get_result_record(report_id) is not None:
        raise HTTPException(status_code=409, detail="Result already exists for this case")

    categories = _finalize_tree(db, _parse_tree(payload.categories), payload.values)
    try:
        record = store.save_result(report_id, categories, payload.patient)
    except ResultStoreError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    logger.info("Saved result for case %s", report_id)
    return {
        "statusCode": 201,
        "message": "Result saved successfully",
        "data": _result_payload(case, record, categories),
    }


@router.get("/{report_id}")
def get_result(
    report_id: str,
    db: Session = Depends(get_db),
    branch_id: str = Depends(get_branch_id),
):
    store = CaseStore(db, branch_id)
    case = _get_case(store, report_id)
    record = store.get_result_record(report_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Result not found")
    categories = _parse_tree(record.categories)
    return {"statusCode": 200, "message": "Success", "data": _result_payload(case, record, categories)}


@router.put("/{report_id}")
def update_result(
    report_id: str,
    payload: ResultSubmit,
    db: Session = Depends(get_db),
    branch_id: str = Depends(get_branch_id),
):
    store = CaseStore(db, branch_id)
    case = _get_case(store, report_id)
    if store.get_result_record(report_id) is None:
        raise HTTPException(status_code=404, detail="Result not found")

    categories = _finalize_tree(db, _parse_tree(payload.categories), payload.values)
    try:
        record = store.save_result(report_id, categories, payload.patient)
    except ResultStoreError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    return {
        "statusCode": 200,
        "message": "Result updated successfully",
        "data": _result_payload(case, record, categories),
    }


@router.delete("/{report_id}")
def delete_result(
    report_id: str,
    db: Session = Depends(get_db),
    branch_id: str = Depends(get_branch_id),
):
    store = CaseStore(db, branch_id)
    _get_case(store, report_id)
    if not store.delete_result(report_id):
        raise HTTPException(status_code=404, detail="Result not found")
    return {"statusCode": 200, "message": "Result deleted successfully", "data": None}


@router.get("/{report_id}/print", response_class=HTMLResponse)
def print_result(
    report_id: str,
    db: Session = Depends(get_db),
    branch_id: str = Depends(get_branch_id),
):
    store = CaseStore(db, branch_id)
    case = _get_case(store, report_id)
    record = store.get_result_record(report_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Result not found")

    # header comes from the snapshot taken at save time
    patient = PatientInfo.model_validate(record.patient) if record.patient else patient_info(case)
    categories = _parse_tree(record.categories)
    html = render_report_html(
        categories,
        patient,
        load_print_settings(db, case.branch_id),
        report_no=record.report_no,
        report_status=case.report_status,
        tat_minutes=turnaround_minutes(case.created_at, case.finalized_at),
    )
    return HTMLResponse(content=html)
