from __future__ import annotations

from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field

from lims.schemas.case import PatientInfo


class ResultParam(BaseModel):
    param_id: str
    name: str
    unit: str = ""
    group_by: str = ""
    value: str = ""
    reference: str = ""


class TestNode(BaseModel):
    __test__ = False

    kind: Literal["test"] = "test"
    test_name: str
    category: str = "Other"
    interpretation: str = ""
    display_in_report: bool = True
    params: list[ResultParam] = Field(default_factory=list)


class PanelNode(BaseModel):
    kind: Literal["panel"] = "panel"
    name: str
    interpretation: str = ""
    tests: list[Annotated[Union[TestNode, PanelNode], Field(discriminator="kind")]] = Field(default_factory=list)


class PackageNode(BaseModel):
    kind: Literal["package"] = "package"
    name: str
    interpretation: str = ""
    tests: list[Annotated[Union[TestNode, PanelNode], Field(discriminator="kind")]] = Field(default_factory=list)


ResultNode = Annotated[Union[TestNode, PanelNode, PackageNode], Field(discriminator="kind")]


class ResultCategory(BaseModel):
    category_name: str
    items: list[ResultNode] = Field(default_factory=list)


class ResultSubmit(BaseModel):
    """Payload for saving a result: the persisted category document plus an optional value map."""
    categories: list[dict]
    values: dict[str, str] = Field(default_factory=dict)
    patient: PatientInfo | None = None


class CalculateRequest(BaseModel):
    categories: list[dict] | None = None
    values: dict[str, str] = Field(default_factory=dict)


PanelNode.model_rebuild()
PackageNode.model_rebuild()
ResultCategory.model_rebuild()


# ---------------------------------------------------------------------------
# Editable entry form
# ---------------------------------------------------------------------------

class EntryField(BaseModel):
    param_id: str
    name: str
    unit: str = ""
    reference: str = ""
    value: str = ""
    flag: Literal["high", "low"] | None = None
    is_formula: bool = False


class EntryGroup(BaseModel):
    title: str | None = None
    fields: list[EntryField] = Field(default_factory=list)


class EntryTest(BaseModel):
    kind: Literal["test"] = "test"
    test_name: str
    interpretation: str = ""
    groups: list[EntryGroup] = Field(default_factory=list)


class EntryBlock(BaseModel):
    kind: Literal["panel", "package"]
    name: str
    interpretation: str = ""
    children: list[Annotated[Union[EntryTest, EntryBlock], Field(discriminator="kind")]] = Field(default_factory=list)


class EntrySection(BaseModel):
    category_name: str
    items: list[Annotated[Union[EntryTest, EntryBlock], Field(discriminator="kind")]] = Field(default_factory=list)


EntryBlock.model_rebuild()
EntrySection.model_rebuild()
