from datetime import datetime, timedelta

from lims.schemas.print_setting import PrintSettings
from lims.schemas.result import EntryBlock, PanelNode, ResultCategory, ResultParam, TestNode
from lims.services.tree_renderer import (
    build_entry_form,
    order_categories,
    render_report_html,
    turnaround_minutes,
)


def _categories() -> list[ResultCategory]:
    return [
        ResultCategory(
            category_name="Haematology",
            items=[
                TestNode(
                    test_name="Hemoglobin",
                    category="Haematology",
                    params=[ResultParam(param_id="hb", name="Hemoglobin", unit="g/dL", value="12", reference="13 - 17")],
                )
            ],
        ),
        ResultCategory(
            category_name="Panels",
            items=[
                PanelNode(
                    name="Lipid Panel",
                    interpretation="<p>Fasting sample recommended.</p>",
                    tests=[
                        TestNode(
                            test_name="Lipid Profile",
                            category="Biochemistry",
                            params=[
                                ResultParam(param_id="chol", name="CHOL", unit="mg/dL", value="180", reference="< 200"),
                                ResultParam(param_id="hdl", name="HDL", unit="mg/dL", group_by="Protective", value="", reference="> 40"),
                            ],
                        )
                    ],
                )
            ],
        ),
    ]


def test_entry_form_mirrors_tree_with_flags_and_formula_markers():
    form = build_entry_form(_categories(), {"chol": "250"}, formula_ids={"hdl"})

    assert [section.category_name for section in form] == ["Haematology", "Panels"]
    hb_field = form[0].items[0].groups[0].fields[0]
    assert hb_field.value == "12"
    assert hb_field.flag == "low"
    assert hb_field.is_formula is False

    block = form[1].items[0]
    assert isinstance(block, EntryBlock)
    assert block.kind == "panel"
    lipid = block.children[0]
    assert [group.title for group in lipid.groups] == [None, "Protective"]
    chol, hdl = lipid.groups[0].fields[0], lipid.groups[1].fields[0]
    assert chol.value == "250"
    assert chol.flag is None
    assert hdl.is_formula is True


def test_order_categories_puts_preferred_first():
    categories = _categories()

    ordered = order_categories(categories, ["panels"])

    assert [c.category_name for c in ordered] == ["Panels", "Haematology"]


def test_print_view_renders_values_references_and_markers(male_patient):
    html = render_report_html(_categories(), male_patient)

    assert "Ravi Kumar" in html
    assert "13 - 17" in html
    assert "12 ↓" in html
    assert "Lipid Panel" in html
    assert "<p>Fasting sample recommended.</p>" in html
    assert 'class="abnormal-red' not in html


def test_print_view_honours_design_and_general_settings(male_patient):
    settings = PrintSettings()
    settings.general.use_hl_markers = False
    settings.general.capitalize_tests = True
    settings.general.category_new_page = True
    settings.design.red_abnormal = True

    html = render_report_html(_categories(), male_patient, settings)

    assert "↓" not in html
    assert "HAEMATOLOGY" in html
    assert html.count('class="category page-break"') == 1
    assert 'class="abnormal-red' in html


def test_print_view_escapes_patient_fields(male_patient):
    patient = male_patient.model_copy(update={"first_name": "<script>x</script>"})

    html = render_report_html(_categories(), patient)

    assert "<script>x</script>" not in html
    assert "&lt;script&gt;" in html


def test_tat_row_only_when_enabled(male_patient):
    settings = PrintSettings()
    assert "TAT" not in render_report_html(_categories(), male_patient, settings, tat_minutes=125)

    settings.show_hide.show_tat_time = True
    assert "2h 5m" in render_report_html(_categories(), male_patient, settings, tat_minutes=125)


def test_turnaround_minutes():
    created = datetime(2026, 1, 1, 8, 0)

    assert turnaround_minutes(created, created + timedelta(hours=2, minutes=5)) == 125
    assert turnaround_minutes(created, None) is None


def test_hidden_tests_stay_on_entry_form_but_not_in_print(male_patient):
    categories = _categories()
    categories[0].items[0].display_in_report = False

    form = build_entry_form(categories)
    html = render_report_html(categories, male_patient)

    assert form[0].items[0].test_name == "Hemoglobin"
    assert "13 - 17" not in html
    assert "Lipid Panel" in html
