from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from lims.database import get_db
from lims.models.case import Case
from lims.routers.deps import get_branch_id
from lims.schemas.case import CaseCreate, CaseUpdate, ReportStatusUpdate
from lims.services.cases import create_case, serialize_case, set_report_status, update_case
from lims.services.tree_renderer import turnaround_minutes

router = APIRouter(prefix="/api/cases", tags=["cases"])


def _case_payload(case: Case) -> dict:
    payload = serialize_case(case)
    payload["tat_minutes"] = turnaround_minutes(case.created_at, case.finalized_at)
    return payload


def _get_case_or_404(db: Session, case_id: str, branch_id: str) -> Case:
    case = db.query(Case).filter(Case.id == case_id, Case.branch_id == branch_id).first()
    if not case:
        raise HTTPException(status_code=404, detail="Case not found")
    return case


@router.post("", status_code=201)
def add_case(payload: CaseCreate, db: Session = Depends(get_db), branch_id: str = Depends(get_branch_id)):
    case = create_case(db, branch_id, payload)
    return {"statusCode": 201, "message": "Case created successfully", "data": _case_payload(case)}


@router.get("")
def list_cases(
    report_status: str | None = None,
    limit: int = Query(default=50, ge=1, le=500),
    db: Session = Depends(get_db),
    branch_id: str = Depends(get_branch_id),
):
    query = db.query(Case).filter(Case.branch_id == branch_id)
    if report_status:
        query = query.filter(Case.report_status == report_status)
    cases = query.order_by(Case.created_at.desc()).limit(limit).all()
    return {"statusCode": 200, "message": "Success", "data": [_case_payload(case) for case in cases]}


@router.get("/{case_id}")
def get_case(case_id: str, db: Session = Depends(get_db), branch_id: str = Depends(get_branch_id)):
    return {"statusCode": 200, "message": "Success", "data": _case_payload(_get_case_or_404(db, case_id, branch_id))}


@router.put("/{case_id}")
def edit_case(
    case_id: str,
    payload: CaseUpdate,
    db: Session = Depends(get_db),
    branch_id: str = Depends(get_branch_id),
):
    case = update_case(db, _get_case_or_404(db, case_id, branch_id), payload)
    return {"statusCode": 200, "message": "Case updated successfully", "data": _case_payload(case)}


@router.patch("/{case_id}/report-status")
def change_report_status(
    case_id: str,
    payload: ReportStatusUpdate,
    db: Session = Depends(get_db),
    branch_id: str = Depends(get_branch_id),
):
    case = _get_case_or_404(db, case_id, branch_id)
    try:
        case = set_report_status(db, case, payload.report_status)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return {"statusCode": 200, "message": "Report status updated", "data": _case_payload(case)}
