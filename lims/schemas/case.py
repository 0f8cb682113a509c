from typing import Literal

from pydantic import BaseModel, Field

from lims.schemas.catalog import AgeUnit

ReportStatus = Literal["In Progress", "Signed Off", "Final"]
PaymentStatus = Literal["due", "no due", "cancelled", "refund"]


class PatientInfo(BaseModel):
    """Patient demographics as needed by reference matching and report headers."""
    first_name: str
    last_name: str = ""
    age: float = Field(ge=0)
    age_unit: AgeUnit = "Years"
    sex: Literal["Male", "Female", "Other"]
    doctor: str = ""
    uhid: str = ""
    reg_no: str = ""


class PaymentInfo(BaseModel):
    total: float = Field(default=0, ge=0)
    discount: float = Field(default=0, ge=0)
    received: float = Field(default=0, ge=0)
    mode: Literal["cash", "card", "upi"] = "cash"
    remarks: str | None = None


class CasePatient(BaseModel):
    title: str | None = None
    first_name: str
    last_name: str = ""
    mobile: str
    age: float = Field(ge=0)
    age_unit: AgeUnit = "Years"
    sex: Literal["Male", "Female", "Other"]
    uhid: str = ""
    doctor: str = ""
    agent: str = ""
    center: str = "Main"


class CaseCreate(BaseModel):
    patient: CasePatient
    tests: dict[str, list[str]] = Field(default_factory=dict)
    categories: list[str] = Field(default_factory=list)
    payment: PaymentInfo = Field(default_factory=PaymentInfo)


class CaseUpdate(BaseModel):
    patient: CasePatient | None = None
    tests: dict[str, list[str]] | None = None
    categories: list[str] | None = None
    payment: PaymentInfo | None = None
    status: PaymentStatus | None = None


class ReportStatusUpdate(BaseModel):
    report_status: ReportStatus
