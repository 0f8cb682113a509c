from sqlalchemy.orm import Session

from lims.database import SessionLocal
from lims.models.catalog import (
    Formula,
    FormulaDependency,
    LabPackage,
    LabPanel,
    LabTest,
    LabTestParameter,
    ReferenceRange,
)


TESTS = [
    {
        "name": "Hemoglobin",
        "short_name": "HGB",
        "category": "Haematology",
        "unit": "g/dL",
        "price": 150,
        "ranges": [
            {"sex": "Male", "min_age": 18, "max_age": 60, "lower": 13, "upper": 17},
            {"sex": "Female", "min_age": 18, "max_age": 60, "lower": 12, "upper": 15},
            {"sex": "Any", "min_age": 0, "max_age": None, "lower": 11, "upper": 16},
        ],
    },
    {
        "name": "Differential Leucocyte Count",
        "short_name": "DLC",
        "type": "multi",
        "category": "Haematology",
        "price": 200,
        "parameters": [
            {"name": "Neutrophils", "unit": "%", "group_by": "Differential Count"},
            {"name": "Lymphocytes", "unit": "%", "group_by": "Differential Count"},
            {"name": "Monocytes", "unit": "%", "group_by": "Differential Count"},
            {"name": "Eosinophils", "unit": "%", "group_by": "Differential Count"},
            {"name": "Absolute Neutrophil Count", "unit": "/cumm", "group_by": "Absolute Count"},
        ],
        "ranges": [
            {"parameter_name": "Neutrophils", "lower": 40, "upper": 80},
            {"parameter_name": "Lymphocytes", "lower": 20, "upper": 40},
            {"parameter_name": "Monocytes", "lower": 2, "upper": 10},
            {"parameter_name": "Eosinophils", "lower": 1, "upper": 6},
            {"parameter_name": "Absolute Neutrophil Count", "lower": 2000, "upper": 7000},
        ],
    },
    {
        "name": "Total Leucocyte Count",
        "short_name": "TLC",
        "category": "Haematology",
        "unit": "/cumm",
        "price": 100,
        "ranges": [{"lower": 4000, "upper": 11000}],
    },
    {
        "name": "Lipid Profile",
        "short_name": "LIPID",
        "type": "multi",
        "category": "Biochemistry",
        "price": 600,
        "interpretation": "<p>Fasting sample of 10-12 hours is recommended.</p>",
        "parameters": [
            {"name": "CHOL", "unit": "mg/dL"},
            {"name": "HDL", "unit": "mg/dL"},
            {"name": "TRIG", "unit": "mg/dL"},
            {"name": "LDLCHOL", "unit": "mg/dL"},
        ],
        "ranges": [
            {"parameter_name": "CHOL", "upper": 200},
            {"parameter_name": "HDL", "lower": 40},
            {"parameter_name": "TRIG", "upper": 150},
            {"parameter_name": "LDLCHOL", "upper": 100},
        ],
        "formulas": [
            {"parameter": "LDLCHOL", "formula_string": "CHOL - HDL - TRIG / 5", "dependencies": ["CHOL", "HDL", "TRIG"]},
        ],
    },
    {
        "name": "Body Mass Index",
        "short_name": "BMI",
        "type": "multi",
        "category": "Clinical",
        "price": 0,
        "parameters": [
            {"name": "Weight", "unit": "kg"},
            {"name": "Height", "unit": "cm"},
            {"name": "BMI", "unit": "kg/m2"},
        ],
        "ranges": [{"parameter_name": "BMI", "lower": 18.5, "upper": 24.9}],
        "formulas": [
            {"parameter": "BMI", "formula_string": "Weight / (Height/100 * Height/100)", "dependencies": ["Weight", "Height"]},
        ],
    },
    {
        "name": "Urine Colour",
        "short_name": "UCOL",
        "category": "Clinical Pathology",
        "price": 50,
        "ranges": [{"kind": "Text", "text_value": "Pale Yellow"}],
    },
]

PANELS = [
    {
        "name": "Complete Blood Count",
        "category": "Haematology",
        "price": 350,
        "tests": ["Hemoglobin", "Total Leucocyte Count", "Differential Leucocyte Count"],
        "interpretation": "<p>Values should be correlated clinically.</p>",
    },
]

PACKAGES = [
    {
        "name": "Basic Health Checkup",
        "fee": 999,
        "tests": ["Body Mass Index", "Lipid Profile"],
        "panels": ["Complete Blood Count"],
    },
]


def _upsert_test(db: Session, item: dict) -> LabTest:
    test = db.query(LabTest).filter(LabTest.name == item["name"]).first()
    if test:
        test.category = item["category"]
        test.short_name = item.get("short_name")
        return test

    test = LabTest(
        name=item["name"],
        short_name=item.get("short_name"),
        type=item.get("type", "single"),
        category=item["category"],
        unit=item.get("unit", ""),
        price=item.get("price", 0),
        interpretation=item.get("interpretation", ""),
    )
    test.parameters = [
        LabTestParameter(order=index, name=p["name"], unit=p.get("unit", ""), group_by=p.get("group_by", ""))
        for index, p in enumerate(item.get("parameters", []))
    ]
    db.add(test)
    db.flush()

    params = {p.name: p.id for p in test.parameters}
    for rule in item.get("ranges", []):
        parameter_name = rule.get("parameter_name")
        db.add(
            ReferenceRange(
                test_id=test.id,
                test_name=test.name,
                parameter_id=params.get(parameter_name) if parameter_name else None,
                parameter_name=parameter_name,
                kind=rule.get("kind", "Numeric"),
                sex=rule.get("sex", "Any"),
                min_age=rule.get("min_age", 0),
                max_age=rule.get("max_age"),
                lower=rule.get("lower"),
                upper=rule.get("upper"),
                text_value=rule.get("text_value"),
            )
        )

    for spec in item.get("formulas", []):
        parameter_id = params[spec["parameter"]]
        formula = Formula(
            parameter_id=parameter_id,
            test_id=test.id,
            test_name=test.name,
            short_name=test.short_name,
            formula_string=spec["formula_string"],
        )
        formula.dependencies = [
            FormulaDependency(position=index, parameter_id=params.get(name), parameter_name=name)
            for index, name in enumerate(spec["dependencies"])
        ]
        db.add(formula)
        for param in test.parameters:
            if param.id == parameter_id:
                param.is_formula = True
    return test


def seed_catalog(db: Session) -> None:
    test_ids = {item["name"]: _upsert_test(db, item).id for item in TESTS}
    db.flush()

    panel_ids = {}
    for item in PANELS:
        panel = db.query(LabPanel).filter(LabPanel.name == item["name"]).first()
        if not panel:
            panel = LabPanel(name=item["name"])
            db.add(panel)
        panel.category = item["category"]
        panel.price = item["price"]
        panel.interpretation = item.get("interpretation", "")
        panel.test_ids = [test_ids[name] for name in item["tests"]]
        db.flush()
        panel_ids[item["name"]] = panel.id

    for item in PACKAGES:
        package = db.query(LabPackage).filter(LabPackage.name == item["name"]).first()
        if not package:
            package = LabPackage(name=item["name"])
            db.add(package)
        package.fee = item["fee"]
        package.test_ids = [test_ids[name] for name in item["tests"]]
        package.panel_ids = [panel_ids[name] for name in item["panels"]]
    db.commit()


def seed_demo_catalog():
    db = SessionLocal()
    try:
        seed_catalog(db)
    finally:
        db.close()
