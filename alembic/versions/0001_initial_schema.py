"""Initial schema: centers, users, courses, fee versions, school years,
enrollments, financial plans and payments

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "0001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "centers",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("nif", sa.String(50), nullable=True),
        sa.Column("phone", sa.String(50), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_centers"),
        sa.UniqueConstraint("name", name="uq_centers_name"),
    )

    op.create_table(
        "users",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("username", sa.String(100), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("full_name", sa.String(200), nullable=False),
        sa.Column("phone", sa.String(50), nullable=True),
        sa.Column("role", sa.String(50), nullable=False),
        sa.Column("center_id", sa.BigInteger(), sa.ForeignKey("centers.id", name="fk_users_center_id_centers"), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("last_login_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_users"),
    )
    op.create_index("ix_users_username", "users", ["username"], unique=True)
    op.create_index("ix_users_role", "users", ["role"])
    op.create_index("ix_users_center_id", "users", ["center_id"])

    op.create_table(
        "otp_codes",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.BigInteger(), sa.ForeignKey("users.id", name="fk_otp_codes_user_id_users"), nullable=False),
        sa.Column("code_hash", sa.String(64), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_otp_codes"),
    )
    op.create_index("ix_otp_codes_user_id", "otp_codes", ["user_id"])
    op.create_index("ix_otp_codes_status", "otp_codes", ["status"])

    op.create_table(
        "audit_logs",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.BigInteger(), nullable=True),
        sa.Column("center_id", sa.BigInteger(), nullable=True),
        sa.Column("action", sa.String(100), nullable=False),
        sa.Column("entity_type", sa.String(100), nullable=False),
        sa.Column("entity_id", sa.BigInteger(), nullable=False),
        sa.Column("old_values", sa.JSON(), nullable=True),
        sa.Column("new_values", sa.JSON(), nullable=True),
        sa.Column("comment", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_audit_logs"),
    )
    op.create_index("ix_audit_logs_center_id", "audit_logs", ["center_id"])
    op.create_index("ix_audit_logs_action", "audit_logs", ["action"])
    op.create_index("ix_audit_logs_entity_type", "audit_logs", ["entity_type"])
    op.create_index("ix_audit_logs_created_at", "audit_logs", ["created_at"])

    op.create_table(
        "receipt_sequences",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("center_id", sa.BigInteger(), sa.ForeignKey("centers.id", name="fk_receipt_sequences_center_id_centers"), nullable=False),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("last_number", sa.Integer(), nullable=False, server_default="0"),
        sa.PrimaryKeyConstraint("id", name="pk_receipt_sequences"),
        sa.UniqueConstraint("center_id", "year", name="uq_receipt_sequences_center_year"),
    )

    op.create_table(
        "students",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("center_id", sa.BigInteger(), sa.ForeignKey("centers.id", name="fk_students_center_id_centers"), nullable=False),
        sa.Column("student_code", sa.String(50), nullable=False),
        sa.Column("full_name", sa.String(200), nullable=False),
        sa.Column("birth_date", sa.Date(), nullable=True),
        sa.Column("phone", sa.String(50), nullable=True),
        sa.Column("guardian_name", sa.String(200), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="active"),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_students"),
        sa.UniqueConstraint("center_id", "student_code", name="uq_students_center_code"),
    )
    op.create_index("ix_students_center_id", "students", ["center_id"])
    op.create_index("ix_students_status", "students", ["status"])

    op.create_table(
        "courses",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("center_id", sa.BigInteger(), sa.ForeignKey("centers.id", name="fk_courses_center_id_centers"), nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("start_date", sa.Date(), nullable=True),
        sa.Column("end_date", sa.Date(), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="active"),
        sa.Column("course_type", sa.String(20), nullable=False, server_default="on_center"),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_courses"),
    )
    op.create_index("ix_courses_center_id", "courses", ["center_id"])
    op.create_index("ix_courses_status", "courses", ["status"])

    op.create_table(
        "classes",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("center_id", sa.BigInteger(), sa.ForeignKey("centers.id", name="fk_classes_center_id_centers"), nullable=False),
        sa.Column("course_id", sa.BigInteger(), sa.ForeignKey("courses.id", name="fk_classes_course_id_courses"), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("grade", sa.String(50), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="active"),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_classes"),
    )
    op.create_index("ix_classes_center_id", "classes", ["center_id"])
    op.create_index("ix_classes_course_id", "classes", ["course_id"])

    op.create_table(
        "tuition_fees",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("course_id", sa.BigInteger(), sa.ForeignKey("courses.id", name="fk_tuition_fees_course_id_courses"), nullable=False),
        sa.Column("fee", sa.Numeric(15, 2), nullable=False),
        sa.Column("fee_fine", sa.Numeric(15, 2), nullable=False),
        sa.Column("enrollment_fee", sa.Numeric(15, 2), nullable=False),
        sa.Column("confirmation_enrollment_fee", sa.Numeric(15, 2), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="active"),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_tuition_fees"),
    )
    op.create_index("ix_tuition_fees_course_id", "tuition_fees", ["course_id"])
    op.create_index("ix_tuition_fees_created_at", "tuition_fees", ["created_at"])
    op.create_index(
        "uq_tuition_fees_one_active_per_course",
        "tuition_fees",
        ["course_id"],
        unique=True,
        postgresql_where=sa.text("status = 'active'"),
        sqlite_where=sa.text("status = 'active'"),
    )

    op.create_table(
        "school_years",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("center_id", sa.BigInteger(), sa.ForeignKey("centers.id", name="fk_school_years_center_id_centers"), nullable=False),
        sa.Column("description", sa.String(100), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("is_current", sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_school_years"),
    )
    op.create_index("ix_school_years_center_id", "school_years", ["center_id"])
    op.create_index(
        "uq_school_years_one_current_per_center",
        "school_years",
        ["center_id"],
        unique=True,
        postgresql_where=sa.text("is_current"),
        sqlite_where=sa.text("is_current = 1"),
    )

    op.create_table(
        "enrollments",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("student_id", sa.BigInteger(), sa.ForeignKey("students.id", name="fk_enrollments_student_id_students"), nullable=False),
        sa.Column("class_id", sa.BigInteger(), sa.ForeignKey("classes.id", name="fk_enrollments_class_id_classes"), nullable=False),
        sa.Column("center_id", sa.BigInteger(), sa.ForeignKey("centers.id", name="fk_enrollments_center_id_centers"), nullable=False),
        sa.Column("user_id", sa.BigInteger(), sa.ForeignKey("users.id", name="fk_enrollments_user_id_users"), nullable=True),
        sa.Column("enrollment_date", sa.Date(), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="enrolled"),
        sa.Column("tuition_fee_id", sa.BigInteger(), sa.ForeignKey("tuition_fees.id", name="fk_enrollments_tuition_fee_id_tuition_fees"), nullable=True),
        sa.Column("has_scholarship", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("has_financial_plan", sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_enrollments"),
    )
    op.create_index("ix_enrollments_student_id", "enrollments", ["student_id"])
    op.create_index("ix_enrollments_class_id", "enrollments", ["class_id"])
    op.create_index("ix_enrollments_center_id", "enrollments", ["center_id"])
    op.create_index("ix_enrollments_enrollment_date", "enrollments", ["enrollment_date"])
    op.create_index("ix_enrollments_status", "enrollments", ["status"])

    op.create_table(
        "payments",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("enrollment_id", sa.BigInteger(), sa.ForeignKey("enrollments.id", name="fk_payments_enrollment_id_enrollments"), nullable=False),
        sa.Column("center_id", sa.BigInteger(), sa.ForeignKey("centers.id", name="fk_payments_center_id_centers"), nullable=False),
        sa.Column("user_id", sa.BigInteger(), sa.ForeignKey("users.id", name="fk_payments_user_id_users"), nullable=True),
        sa.Column("receipt_number", sa.String(50), nullable=False),
        sa.Column("amount", sa.Numeric(15, 2), nullable=False),
        sa.Column("late_fee", sa.Numeric(15, 2), nullable=False, server_default="0"),
        sa.Column("payment_date", sa.Date(), nullable=False),
        sa.Column("payment_method", sa.String(30), nullable=False, server_default="cash"),
        sa.Column("status", sa.String(20), nullable=False, server_default="paid"),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_payments"),
        sa.UniqueConstraint("receipt_number", name="uq_payments_receipt_number"),
    )
    op.create_index("ix_payments_enrollment_id", "payments", ["enrollment_id"])
    op.create_index("ix_payments_center_id", "payments", ["center_id"])
    op.create_index("ix_payments_payment_date", "payments", ["payment_date"])
    op.create_index("ix_payments_status", "payments", ["status"])

    op.create_table(
        "financial_plan_entries",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("enrollment_id", sa.BigInteger(), sa.ForeignKey("enrollments.id", name="fk_financial_plan_entries_enrollment_id_enrollments"), nullable=False),
        sa.Column("center_id", sa.BigInteger(), sa.ForeignKey("centers.id", name="fk_financial_plan_entries_center_id_centers"), nullable=False),
        sa.Column("user_id", sa.BigInteger(), sa.ForeignKey("users.id", name="fk_financial_plan_entries_user_id_users"), nullable=True),
        sa.Column("school_year_id", sa.BigInteger(), sa.ForeignKey("school_years.id", name="fk_financial_plan_entries_school_year_id_school_years"), nullable=False),
        sa.Column("month", sa.String(20), nullable=False),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("due_date", sa.Date(), nullable=False),
        sa.Column("tuition_fee", sa.Numeric(15, 2), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("linked_payment_id", sa.BigInteger(), sa.ForeignKey("payments.id", name="fk_financial_plan_entries_linked_payment_id_payments"), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_financial_plan_entries"),
        sa.UniqueConstraint(
            "enrollment_id", "month", "year", name="uq_financial_plan_entries_enrollment_month_year"
        ),
    )
    op.create_index("ix_financial_plan_entries_enrollment_id", "financial_plan_entries", ["enrollment_id"])
    op.create_index("ix_financial_plan_entries_center_id", "financial_plan_entries", ["center_id"])
    op.create_index("ix_financial_plan_entries_school_year_id", "financial_plan_entries", ["school_year_id"])
    op.create_index("ix_financial_plan_entries_due_date", "financial_plan_entries", ["due_date"])
    op.create_index("ix_financial_plan_entries_status", "financial_plan_entries", ["status"])
    op.create_index("ix_financial_plan_entries_linked_payment_id", "financial_plan_entries", ["linked_payment_id"])


def downgrade() -> None:
    op.drop_table("financial_plan_entries")
    op.drop_table("payments")
    op.drop_table("enrollments")
    op.drop_index("uq_school_years_one_current_per_center", table_name="school_years")
    op.drop_table("school_years")
    op.drop_index("uq_tuition_fees_one_active_per_course", table_name="tuition_fees")
    op.drop_table("tuition_fees")
    op.drop_table("classes")
    op.drop_table("courses")
    op.drop_table("students")
    op.drop_table("receipt_sequences")
    op.drop_table("audit_logs")
    op.drop_table("otp_codes")
    op.drop_table("users")
    op.drop_table("centers")
