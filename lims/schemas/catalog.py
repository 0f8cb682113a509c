from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

AgeUnit = Literal["Days", "Months", "Years"]
Sex = Literal["Any", "Male", "Female", "Other"]
RangeKind = Literal["Numeric", "Text"]
TestType = Literal["single", "multi", "nested", "document"]
InputType = Literal["Single Line", "Numeric", "Paragraph"]


class CatalogModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class ParameterDefinition(CatalogModel):
    """One reportable parameter of a test."""
    id: str
    name: str
    short_name: str | None = None
    unit: str = ""
    group_by: str = ""
    order: int = 0
    is_formula: bool = False
    is_optional: bool = False


class LabTestDefinition(CatalogModel):
    """A leaf diagnostic item. An empty parameter list means the test is its own single parameter."""
    id: str
    name: str
    short_name: str | None = None
    type: TestType = "single"
    category: str = ""
    unit: str = ""
    price: float = 0
    interpretation: str = ""
    display_in_report: bool = True
    is_formula: bool = False
    parameters: list[ParameterDefinition] = Field(default_factory=list)


class PanelDefinition(CatalogModel):
    id: str
    name: str
    category: str = ""
    price: float = 0
    interpretation: str = ""
    hide_interpretation: bool = False
    test_ids: list[str] = Field(default_factory=list)


class PackageDefinition(CatalogModel):
    id: str
    name: str
    fee: float = 0
    gender: Literal["Male", "Female", "Both", "Other"] = "Both"
    interpretation: str = ""
    test_ids: list[str] = Field(default_factory=list)
    panel_ids: list[str] = Field(default_factory=list)


class ReferenceRangeRule(CatalogModel):
    """A reference range scoped to one test, and optionally one named parameter of it."""
    id: int | None = None
    test_id: str
    test_name: str = ""
    parameter_id: str | None = None
    parameter_name: str | None = None
    kind: RangeKind = "Numeric"
    sex: Sex = "Any"
    min_age: float = 0
    min_unit: AgeUnit = "Years"
    max_age: float | None = None
    max_unit: AgeUnit = "Years"
    lower: float | None = None
    upper: float | None = None
    text_value: str | None = None
    display_text: str | None = None


class FormulaDependencySpec(CatalogModel):
    parameter_name: str
    parameter_id: str | None = None


class FormulaDefinition(CatalogModel):
    id: int | None = None
    parameter_id: str
    test_id: str
    test_name: str = ""
    formula_string: str
    status: Literal["Active", "Inactive"] = "Active"
    dependencies: list[FormulaDependencySpec] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Write payloads
# ---------------------------------------------------------------------------

class ParameterCreate(BaseModel):
    name: str
    short_name: str | None = None
    unit: str = ""
    group_by: str = ""
    input_type: InputType = "Single Line"
    default_result: str | None = None
    is_optional: bool = False


class LabTestCreate(BaseModel):
    name: str
    short_name: str | None = None
    type: TestType = "single"
    category: str = ""
    unit: str = ""
    price: float = Field(default=0, ge=0)
    input_type: InputType = "Single Line"
    method: str | None = None
    instrument: str | None = None
    interpretation: str = ""
    display_in_report: bool = True
    parameters: list[ParameterCreate] = Field(default_factory=list)


class PanelCreate(BaseModel):
    name: str
    category: str
    price: float = Field(default=0, ge=0)
    test_ids: list[str] = Field(default_factory=list)
    interpretation: str = ""
    hide_interpretation: bool = False


class PackageCreate(BaseModel):
    name: str
    fee: float = Field(default=0, ge=0)
    gender: Literal["Male", "Female", "Both", "Other"] = "Both"
    test_ids: list[str] = Field(default_factory=list)
    panel_ids: list[str] = Field(default_factory=list)
    interpretation: str = ""


class ReferenceRangeCreate(BaseModel):
    parameter_id: str | None = None
    parameter_name: str | None = None
    kind: RangeKind = "Numeric"
    sex: Sex = "Any"
    min_age: float = Field(default=0, ge=0)
    min_unit: AgeUnit = "Years"
    max_age: float | None = Field(default=None, ge=0)
    max_unit: AgeUnit = "Years"
    lower: float | None = None
    upper: float | None = None
    text_value: str | None = None
    display_text: str | None = None


class FormulaCreate(BaseModel):
    test_id: str
    parameter_id: str | None = None
    formula_string: str
    dependencies: list[FormulaDependencySpec] = Field(default_factory=list)
    remarks: str | None = None


class FormulaUpdate(BaseModel):
    formula_string: str | None = None
    dependencies: list[FormulaDependencySpec] | None = None
    remarks: str | None = None
    status: Literal["Active", "Inactive"] | None = None


class CatalogSearchItem(BaseModel):
    id: str
    kind: Literal["test", "panel", "package"]
    name: str
    category: str | None
    price: float
    score: float
