import logging
import random
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from lims.models.case import Case, Counter, ResultRecord
from lims.schemas.case import CaseCreate, CaseUpdate, PatientInfo, PaymentInfo
from lims.schemas.result import ResultCategory
from lims.services.result_tree import from_document, to_document

logger = logging.getLogger(__name__)

REPORT_STATUS_FLOW = ["In Progress", "Signed Off", "Final"]


class CaseNotFoundError(LookupError):
    pass


class ResultStoreError(RuntimeError):
    pass


# ---------------------------------------------------------------------------
# Intake
# ---------------------------------------------------------------------------

def payment_balance(payment: PaymentInfo) -> float:
    return payment.total - payment.discount - payment.received


def payment_status(balance: float) -> str:
    return "due" if balance > 0 else "no due"


def normalize_tests_map(tests: dict | None) -> dict[str, list[str]]:
    if not tests:
        return {}
    return {str(key): [str(i) for i in ids] if isinstance(ids, list) else [] for key, ids in tests.items()}


def generate_reg_no(db: Session, branch_id: str) -> str:
    while True:
        reg_no = str(random.randint(700000000, 799999999))
        exists = db.query(Case.id).filter(Case.branch_id == branch_id, Case.reg_no == reg_no).first()
        if not exists:
            return reg_no


def next_dcn(db: Session) -> str:
    counter = db.get(Counter, "dcn")
    if counter is None:
        counter = Counter(name="dcn", seq=0)
        db.add(counter)
    counter.seq += 1
    db.flush()
    return f"E{counter.seq}, L{counter.seq + 5}"


def _apply_payment(case: Case, payment: PaymentInfo) -> float:
    balance = payment_balance(payment)
    case.payment_total = payment.total
    case.payment_discount = payment.discount
    case.payment_received = payment.received
    case.payment_balance = balance
    case.payment_mode = payment.mode
    case.payment_remarks = payment.remarks
    return balance


def create_case(db: Session, branch_id: str, payload: CaseCreate) -> Case:
    case = Case(
        branch_id=branch_id,
        reg_no=generate_reg_no(db, branch_id),
        dcn=next_dcn(db),
        tests=normalize_tests_map(payload.tests),
        categories=list(payload.categories),
        **payload.patient.model_dump(),
    )
    case.status = payment_status(_apply_payment(case, payload.payment))
    db.add(case)
    db.commit()
    db.refresh(case)
    logger.info("Created case %s (reg no %s) for branch %s", case.id, case.reg_no, branch_id)
    return case


def update_case(db: Session, case: Case, payload: CaseUpdate) -> Case:
    if payload.patient is not None:
        for key, value in payload.patient.model_dump().items():
            setattr(case, key, value)
    if payload.tests is not None:
        case.tests = normalize_tests_map(payload.tests)
    if payload.categories is not None:
        case.categories = list(payload.categories)
    if payload.payment is not None:
        balance = _apply_payment(case, payload.payment)
        if payload.status is None:
            case.status = payment_status(balance)
    if payload.status is not None:
        case.status = payload.status
    db.commit()
    db.refresh(case)
    return case


def set_report_status(db: Session, case: Case, status: str) -> Case:
    """Move a report along In Progress -> Signed Off -> Final. Going backwards is refused."""
    current = REPORT_STATUS_FLOW.index(case.report_status)
    target = REPORT_STATUS_FLOW.index(status)
    if target < current:
        raise ValueError(f"Cannot move report from {case.report_status!r} back to {status!r}")
    case.report_status = status
    if status == "Final" and case.finalized_at is None:
        case.finalized_at = datetime.utcnow()
    db.commit()
    db.refresh(case)
    return case


def patient_info(case: Case) -> PatientInfo:
    return PatientInfo(
        first_name=case.first_name,
        last_name=case.last_name or "",
        age=case.age,
        age_unit=case.age_unit or "Years",
        sex=case.sex,
        doctor=case.doctor or "",
        uhid=case.uhid or "",
        reg_no=case.reg_no,
    )


def serialize_case(case: Case) -> dict:
    return {
        "id": case.id,
        "branch_id": case.branch_id,
        "reg_no": case.reg_no,
        "dcn": case.dcn,
        "patient": {
            "title": case.title,
            "first_name": case.first_name,
            "last_name": case.last_name,
            "mobile": case.mobile,
            "age": case.age,
            "age_unit": case.age_unit,
            "sex": case.sex,
            "uhid": case.uhid,
            "doctor": case.doctor,
            "agent": case.agent,
            "center": case.center,
        },
        "tests": case.tests,
        "categories": case.categories,
        "payment": {
            "total": case.payment_total,
            "discount": case.payment_discount,
            "received": case.payment_received,
            "balance": case.payment_balance,
            "mode": case.payment_mode,
            "remarks": case.payment_remarks,
        },
        "status": case.status,
        "report_status": case.report_status,
        "created_at": case.created_at.isoformat(),
        "finalized_at": case.finalized_at.isoformat() if case.finalized_at else None,
    }


# ---------------------------------------------------------------------------
# Case / result store
# ---------------------------------------------------------------------------

class CaseStore:
    """Case reads and result writes, optionally confined to one branch."""

    def __init__(self, db: Session, branch_id: str | None = None):
        self.db = db
        self.branch_id = branch_id

    def get_case(self, report_id: str) -> Case:
        try:
            case = self.db.get(Case, report_id)
        except SQLAlchemyError as exc:
            logger.exception("Failed to load case %s", report_id)
            raise ResultStoreError("Failed to load case") from exc
        if case is None or (self.branch_id is not None and case.branch_id != self.branch_id):
            raise CaseNotFoundError(f"Case {report_id} not found")
        return case

    def _record(self, report_id: str) -> ResultRecord | None:
        try:
            return self.db.query(ResultRecord).filter(ResultRecord.report_id == report_id).first()
        except SQLAlchemyError as exc:
            logger.exception("Failed to load result for %s", report_id)
            raise ResultStoreError("Failed to load result") from exc

    def get_result(self, report_id: str) -> list[ResultCategory] | None:
        record = self._record(report_id)
        if record is None:
            return None
        return from_document(record.categories)

    def get_result_record(self, report_id: str) -> ResultRecord | None:
        return self._record(report_id)

    def save_result(self, report_id: str, categories: list[ResultCategory], patient: PatientInfo | None = None) -> ResultRecord:
        case = self.get_case(report_id)
        record = self._record(report_id)
        patient = patient or patient_info(case)
        if record is None:
            record = ResultRecord(report_id=report_id, report_no=case.reg_no, branch_id=case.branch_id)
            self.db.add(record)
        record.patient = patient.model_dump()
        record.categories = to_document(categories)
        record.status = "Completed"
        record.updated_at = datetime.utcnow()
        try:
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception("Failed to save result for %s", report_id)
            raise ResultStoreError("Failed to save result") from exc
        self.db.refresh(record)
        return record

    def delete_result(self, report_id: str) -> bool:
        record = self._record(report_id)
        if record is None:
            return False
        self.db.delete(record)
        self.db.commit()
        return True
