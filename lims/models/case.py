from datetime import datetime
from uuid import uuid4

from sqlalchemy import JSON, DateTime, Float, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from lims.database import Base


class Case(Base):
    __tablename__ = "cases"
    __table_args__ = (UniqueConstraint("branch_id", "reg_no", name="uq_cases_branch_id_reg_no"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))
    branch_id: Mapped[str] = mapped_column(String(36), index=True, nullable=False)
    reg_no: Mapped[str] = mapped_column(String(20), nullable=False)
    dcn: Mapped[str] = mapped_column(String(40), unique=True, nullable=False)

    title: Mapped[str | None] = mapped_column(String(20), nullable=True)
    first_name: Mapped[str] = mapped_column(String(255), nullable=False)
    last_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    mobile: Mapped[str] = mapped_column(String(20), nullable=False)
    age: Mapped[float] = mapped_column(Float, nullable=False)
    age_unit: Mapped[str] = mapped_column(String(10), nullable=False, default="Years")
    sex: Mapped[str] = mapped_column(String(10), nullable=False)
    uhid: Mapped[str] = mapped_column(String(50), nullable=False, default="")
    doctor: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    agent: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    center: Mapped[str] = mapped_column(String(100), nullable=False, default="Main")

    # category key -> ordered list of test / panel / package ids
    tests: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    categories: Mapped[list] = mapped_column(JSON, nullable=False, default=list)

    payment_total: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    payment_discount: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    payment_received: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    payment_balance: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    payment_mode: Mapped[str] = mapped_column(String(10), nullable=False, default="cash")
    payment_remarks: Mapped[str | None] = mapped_column(String(255), nullable=True)

    status: Mapped[str] = mapped_column(String(20), nullable=False, default="due")
    report_status: Mapped[str] = mapped_column(String(20), nullable=False, default="In Progress")
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
    finalized_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    result = relationship("ResultRecord", back_populates="case", uselist=False, cascade="all, delete-orphan")


class Counter(Base):
    __tablename__ = "counters"

    name: Mapped[str] = mapped_column(String(50), primary_key=True)
    seq: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class ResultRecord(Base):
    __tablename__ = "results"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    report_id: Mapped[str] = mapped_column(String(36), ForeignKey("cases.id", ondelete="CASCADE"), unique=True, index=True)
    report_no: Mapped[str] = mapped_column(String(20), nullable=False, default="")
    branch_id: Mapped[str | None] = mapped_column(String(36), index=True, nullable=True)
    patient: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    categories: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="Pending")
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)

    case = relationship("Case", back_populates="result")
