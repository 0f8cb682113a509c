from lims.models.case import Case, Counter, ResultRecord
from lims.models.catalog import Formula, FormulaDependency, LabPackage, LabPanel, LabTest, LabTestParameter, ReferenceRange
from lims.models.print_setting import PrintSetting

__all__ = [
    "Case",
    "Counter",
    "ResultRecord",
    "LabTest",
    "LabTestParameter",
    "LabPanel",
    "LabPackage",
    "ReferenceRange",
    "Formula",
    "FormulaDependency",
    "PrintSetting",
]
