from datetime import datetime
from uuid import uuid4

from sqlalchemy import JSON, Boolean, DateTime, Float, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from lims.database import Base


def _uuid() -> str:
    return str(uuid4())


class LabTest(Base):
    __tablename__ = "tests"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    type: Mapped[str] = mapped_column(String(20), nullable=False, default="single")
    name: Mapped[str] = mapped_column(String(255), index=True, nullable=False)
    short_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    category: Mapped[str] = mapped_column(String(100), index=True, nullable=False, default="")
    unit: Mapped[str] = mapped_column(String(50), nullable=False, default="")
    price: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    input_type: Mapped[str] = mapped_column(String(20), nullable=False, default="Single Line")
    method: Mapped[str | None] = mapped_column(String(255), nullable=True)
    instrument: Mapped[str | None] = mapped_column(String(255), nullable=True)
    interpretation: Mapped[str] = mapped_column(Text, nullable=False, default="")
    default_result: Mapped[str | None] = mapped_column(String(255), nullable=True)
    display_in_report: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    is_formula: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="Active")
    branch_id: Mapped[str | None] = mapped_column(String(36), index=True, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)

    parameters = relationship(
        "LabTestParameter",
        back_populates="test",
        cascade="all, delete-orphan",
        order_by="LabTestParameter.order",
    )
    reference_ranges = relationship("ReferenceRange", back_populates="test", cascade="all, delete-orphan")


class LabTestParameter(Base):
    __tablename__ = "test_parameters"
    __table_args__ = (UniqueConstraint("test_id", "name", name="uq_test_parameters_test_id_name"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    test_id: Mapped[str] = mapped_column(String(36), ForeignKey("tests.id", ondelete="CASCADE"), index=True)
    order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    short_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    unit: Mapped[str] = mapped_column(String(50), nullable=False, default="")
    input_type: Mapped[str] = mapped_column(String(20), nullable=False, default="Single Line")
    default_result: Mapped[str | None] = mapped_column(String(255), nullable=True)
    is_optional: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_formula: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    group_by: Mapped[str] = mapped_column(String(100), nullable=False, default="")

    test = relationship("LabTest", back_populates="parameters")


class LabPanel(Base):
    __tablename__ = "test_panels"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    name: Mapped[str] = mapped_column(String(255), index=True, nullable=False)
    category: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    price: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    # ordered test ids; dangling ids are tolerated and dropped at resolution time
    test_ids: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    interpretation: Mapped[str] = mapped_column(Text, nullable=False, default="")
    hide_interpretation: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="Active")
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)


class LabPackage(Base):
    __tablename__ = "test_packages"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    name: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    fee: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    gender: Mapped[str] = mapped_column(String(10), nullable=False, default="Both")
    test_ids: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    panel_ids: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    interpretation: Mapped[str] = mapped_column(Text, nullable=False, default="")
    in_rate_list: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)


class ReferenceRange(Base):
    __tablename__ = "reference_ranges"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    test_id: Mapped[str] = mapped_column(String(36), ForeignKey("tests.id", ondelete="CASCADE"), index=True)
    test_name: Mapped[str] = mapped_column(String(255), nullable=False)
    parameter_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    parameter_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    kind: Mapped[str] = mapped_column(String(10), nullable=False, default="Numeric")
    sex: Mapped[str] = mapped_column(String(10), nullable=False, default="Any")
    min_age: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    min_unit: Mapped[str] = mapped_column(String(10), nullable=False, default="Years")
    max_age: Mapped[float | None] = mapped_column(Float, nullable=True)
    max_unit: Mapped[str] = mapped_column(String(10), nullable=False, default="Years")
    lower: Mapped[float | None] = mapped_column(Float, nullable=True)
    upper: Mapped[float | None] = mapped_column(Float, nullable=True)
    text_value: Mapped[str | None] = mapped_column(String(255), nullable=True)
    display_text: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)

    test = relationship("LabTest", back_populates="reference_ranges")


class Formula(Base):
    __tablename__ = "formulas"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    # the formula-bearing parameter; equals test_id for tests without declared parameters
    parameter_id: Mapped[str] = mapped_column(String(36), unique=True, index=True, nullable=False)
    test_id: Mapped[str] = mapped_column(String(36), ForeignKey("tests.id", ondelete="CASCADE"), index=True)
    test_name: Mapped[str] = mapped_column(String(255), nullable=False)
    short_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    formula_string: Mapped[str] = mapped_column(Text, nullable=False)
    remarks: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(10), nullable=False, default="Active")
    branch_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)

    dependencies = relationship(
        "FormulaDependency",
        back_populates="formula",
        cascade="all, delete-orphan",
        order_by="FormulaDependency.position",
    )


class FormulaDependency(Base):
    __tablename__ = "formula_dependencies"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    formula_id: Mapped[int] = mapped_column(ForeignKey("formulas.id", ondelete="CASCADE"), index=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    parameter_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    parameter_name: Mapped[str] = mapped_column(String(255), nullable=False)

    formula = relationship("Formula", back_populates="dependencies")
