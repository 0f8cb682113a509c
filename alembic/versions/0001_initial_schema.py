"""initial schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-19
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = "0001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "tests",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("type", sa.String(length=20), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("short_name", sa.String(length=100), nullable=True),
        sa.Column("category", sa.String(length=100), nullable=False),
        sa.Column("unit", sa.String(length=50), nullable=False),
        sa.Column("price", sa.Float(), nullable=False),
        sa.Column("input_type", sa.String(length=20), nullable=False),
        sa.Column("method", sa.String(length=255), nullable=True),
        sa.Column("instrument", sa.String(length=255), nullable=True),
        sa.Column("interpretation", sa.Text(), nullable=False),
        sa.Column("default_result", sa.String(length=255), nullable=True),
        sa.Column("display_in_report", sa.Boolean(), nullable=False),
        sa.Column("is_formula", sa.Boolean(), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("branch_id", sa.String(length=36), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_tests_name", "tests", ["name"], unique=False)
    op.create_index("ix_tests_category", "tests", ["category"], unique=False)
    op.create_index("ix_tests_branch_id", "tests", ["branch_id"], unique=False)

    op.create_table(
        "test_parameters",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("test_id", sa.String(length=36), nullable=False),
        sa.Column("order", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("short_name", sa.String(length=100), nullable=True),
        sa.Column("unit", sa.String(length=50), nullable=False),
        sa.Column("input_type", sa.String(length=20), nullable=False),
        sa.Column("default_result", sa.String(length=255), nullable=True),
        sa.Column("is_optional", sa.Boolean(), nullable=False),
        sa.Column("is_formula", sa.Boolean(), nullable=False),
        sa.Column("group_by", sa.String(length=100), nullable=False),
        sa.ForeignKeyConstraint(["test_id"], ["tests.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("test_id", "name", name="uq_test_parameters_test_id_name"),
    )
    op.create_index("ix_test_parameters_test_id", "test_parameters", ["test_id"], unique=False)

    op.create_table(
        "test_panels",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("category", sa.String(length=100), nullable=False),
        sa.Column("price", sa.Float(), nullable=False),
        sa.Column("test_ids", sa.JSON(), nullable=False),
        sa.Column("interpretation", sa.Text(), nullable=False),
        sa.Column("hide_interpretation", sa.Boolean(), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_test_panels_name", "test_panels", ["name"], unique=False)

    op.create_table(
        "test_packages",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("fee", sa.Float(), nullable=False),
        sa.Column("gender", sa.String(length=10), nullable=False),
        sa.Column("test_ids", sa.JSON(), nullable=False),
        sa.Column("panel_ids", sa.JSON(), nullable=False),
        sa.Column("interpretation", sa.Text(), nullable=False),
        sa.Column("in_rate_list", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_test_packages_name", "test_packages", ["name"], unique=True)

    op.create_table(
        "reference_ranges",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("test_id", sa.String(length=36), nullable=False),
        sa.Column("test_name", sa.String(length=255), nullable=False),
        sa.Column("parameter_id", sa.String(length=36), nullable=True),
        sa.Column("parameter_name", sa.String(length=255), nullable=True),
        sa.Column("kind", sa.String(length=10), nullable=False),
        sa.Column("sex", sa.String(length=10), nullable=False),
        sa.Column("min_age", sa.Float(), nullable=False),
        sa.Column("min_unit", sa.String(length=10), nullable=False),
        sa.Column("max_age", sa.Float(), nullable=True),
        sa.Column("max_unit", sa.String(length=10), nullable=False),
        sa.Column("lower", sa.Float(), nullable=True),
        sa.Column("upper", sa.Float(), nullable=True),
        sa.Column("text_value", sa.String(length=255), nullable=True),
        sa.Column("display_text", sa.String(length=255), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["test_id"], ["tests.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_reference_ranges_test_id", "reference_ranges", ["test_id"], unique=False)

    op.create_table(
        "formulas",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("parameter_id", sa.String(length=36), nullable=False),
        sa.Column("test_id", sa.String(length=36), nullable=False),
        sa.Column("test_name", sa.String(length=255), nullable=False),
        sa.Column("short_name", sa.String(length=100), nullable=True),
        sa.Column("formula_string", sa.Text(), nullable=False),
        sa.Column("remarks", sa.Text(), nullable=True),
        sa.Column("status", sa.String(length=10), nullable=False),
        sa.Column("branch_id", sa.String(length=36), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["test_id"], ["tests.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_formulas_parameter_id", "formulas", ["parameter_id"], unique=True)
    op.create_index("ix_formulas_test_id", "formulas", ["test_id"], unique=False)

    op.create_table(
        "formula_dependencies",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("formula_id", sa.Integer(), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("parameter_id", sa.String(length=36), nullable=True),
        sa.Column("parameter_name", sa.String(length=255), nullable=False),
        sa.ForeignKeyConstraint(["formula_id"], ["formulas.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_formula_dependencies_formula_id", "formula_dependencies", ["formula_id"], unique=False)

    op.create_table(
        "cases",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("branch_id", sa.String(length=36), nullable=False),
        sa.Column("reg_no", sa.String(length=20), nullable=False),
        sa.Column("dcn", sa.String(length=40), nullable=False),
        sa.Column("title", sa.String(length=20), nullable=True),
        sa.Column("first_name", sa.String(length=255), nullable=False),
        sa.Column("last_name", sa.String(length=255), nullable=False),
        sa.Column("mobile", sa.String(length=20), nullable=False),
        sa.Column("age", sa.Float(), nullable=False),
        sa.Column("age_unit", sa.String(length=10), nullable=False),
        sa.Column("sex", sa.String(length=10), nullable=False),
        sa.Column("uhid", sa.String(length=50), nullable=False),
        sa.Column("doctor", sa.String(length=255), nullable=False),
        sa.Column("agent", sa.String(length=255), nullable=False),
        sa.Column("center", sa.String(length=100), nullable=False),
        sa.Column("tests", sa.JSON(), nullable=False),
        sa.Column("categories", sa.JSON(), nullable=False),
        sa.Column("payment_total", sa.Float(), nullable=False),
        sa.Column("payment_discount", sa.Float(), nullable=False),
        sa.Column("payment_received", sa.Float(), nullable=False),
        sa.Column("payment_balance", sa.Float(), nullable=False),
        sa.Column("payment_mode", sa.String(length=10), nullable=False),
        sa.Column("payment_remarks", sa.String(length=255), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("report_status", sa.String(length=20), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("finalized_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("branch_id", "reg_no", name="uq_cases_branch_id_reg_no"),
        sa.UniqueConstraint("dcn"),
    )
    op.create_index("ix_cases_branch_id", "cases", ["branch_id"], unique=False)

    op.create_table(
        "counters",
        sa.Column("name", sa.String(length=50), nullable=False),
        sa.Column("seq", sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint("name"),
    )

    op.create_table(
        "results",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("report_id", sa.String(length=36), nullable=False),
        sa.Column("report_no", sa.String(length=20), nullable=False),
        sa.Column("branch_id", sa.String(length=36), nullable=True),
        sa.Column("patient", sa.JSON(), nullable=False),
        sa.Column("categories", sa.JSON(), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["report_id"], ["cases.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_results_report_id", "results", ["report_id"], unique=True)
    op.create_index("ix_results_branch_id", "results", ["branch_id"], unique=False)

    op.create_table(
        "print_settings",
        sa.Column("branch_id", sa.String(length=36), nullable=False),
        sa.Column("with_letterhead", sa.Boolean(), nullable=False),
        sa.Column("letterhead", sa.JSON(), nullable=False),
        sa.Column("design", sa.JSON(), nullable=False),
        sa.Column("general", sa.JSON(), nullable=False),
        sa.Column("show_hide", sa.JSON(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("branch_id"),
    )


def downgrade() -> None:
    op.drop_table("print_settings")

    op.drop_index("ix_results_branch_id", table_name="results")
    op.drop_index("ix_results_report_id", table_name="results")
    op.drop_table("results")

    op.drop_table("counters")

    op.drop_index("ix_cases_branch_id", table_name="cases")
    op.drop_table("cases")

    op.drop_index("ix_formula_dependencies_formula_id", table_name="formula_dependencies")
    op.drop_table("formula_dependencies")

    op.drop_index("ix_formulas_test_id", table_name="formulas")
    op.drop_index("ix_formulas_parameter_id", table_name="formulas")
    op.drop_table("formulas")

    op.drop_index("ix_reference_ranges_test_id", table_name="reference_ranges")
    op.drop_table("reference_ranges")

    op.drop_index("ix_test_packages_name", table_name="test_packages")
    op.drop_table("test_packages")

    op.drop_index("ix_test_panels_name", table_name="test_panels")
    op.drop_table("test_panels")

    op.drop_index("ix_test_parameters_test_id", table_name="test_parameters")
    op.drop_table("test_parameters")

    op.drop_index("ix_tests_branch_id", table_name="tests")
    op.drop_index("ix_tests_category", table_name="tests")
    op.drop_index("ix_tests_name", table_name="tests")
    op.drop_table("tests")
