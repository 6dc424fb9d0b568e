"""Initial FleetCheck schema

Revision ID: 3f9c2a1d7b4e
Revises:
Create Date: 2026-10-18 09:00:00.000000

Creates the driver dashboard tables:
- profiles, certifications and schedules
- test_attempts (current test workflow) with the test_status enum
- trips, test_history and test_results, the legacy history sources
- critical_failures and audit_logs

Legacy tables keep nullable status and timestamp columns because historical
rows are incomplete; the history adapters tolerate the gaps.
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "3f9c2a1d7b4e"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

TEST_STATUS = sa.Enum(
    "pending", "in_progress", "completed", "failed", name="test_status"
)


def upgrade() -> None:
    op.create_table(
        "profiles",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(36), nullable=False),
        sa.Column("full_name", sa.String(200), nullable=False),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("phone", sa.String(50), nullable=True),
        sa.Column("employee_id", sa.String(50), nullable=True),
        sa.Column("license_number", sa.String(50), nullable=True),
        sa.Column("license_class", sa.String(20), nullable=True),
        sa.Column("license_expiry", sa.Date(), nullable=True),
        sa.Column("medical_fitness_status", sa.String(20), nullable=False),
        sa.Column("last_medical_check", sa.Date(), nullable=True),
        sa.Column("vehicle_plate", sa.String(20), nullable=True),
        sa.Column("depot_unit", sa.String(100), nullable=True),
        sa.Column("primary_route", sa.String(200), nullable=True),
        sa.Column("avatar_url", sa.String(500), nullable=True),
        sa.Column("account_status", sa.String(20), nullable=False),
        sa.Column("last_login", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index(op.f("ix_profiles_user_id"), "profiles", ["user_id"], unique=True)

    op.create_table(
        "certifications",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("driver_id", sa.String(36), nullable=False),
        sa.Column("certification_type", sa.String(100), nullable=False),
        sa.Column("certification_number", sa.String(100), nullable=True),
        sa.Column("issue_date", sa.Date(), nullable=True),
        sa.Column("expiry_date", sa.Date(), nullable=True),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("issuing_authority", sa.String(200), nullable=True),
        sa.Column("document_url", sa.String(500), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index(
        op.f("ix_certifications_driver_id"), "certifications", ["driver_id"]
    )

    op.create_table(
        "schedules",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("driver_id", sa.String(36), nullable=False),
        sa.Column("route_name", sa.String(200), nullable=False),
        sa.Column("shift_date", sa.Date(), nullable=False),
        sa.Column("start_time", sa.String(8), nullable=False),
        sa.Column("end_time", sa.String(8), nullable=False),
        sa.Column("vehicle_id", sa.String(36), nullable=True),
        sa.Column("vehicle_plate", sa.String(20), nullable=True),
        sa.Column("status", sa.String(20), nullable=False),
    )
    op.create_index(op.f("ix_schedules_driver_id"), "schedules", ["driver_id"])
    # Upcoming-shift lookup filters on driver and status, sorts on date
    op.create_index(
        "ix_schedules_driver_status_date",
        "schedules",
        ["driver_id", "status", "shift_date"],
    )

    op.create_table(
        "test_attempts",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(36), nullable=False),
        sa.Column("test_type", sa.String(100), nullable=False),
        sa.Column("status", TEST_STATUS, nullable=False),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("score", sa.Float(), nullable=True),
        sa.Column("pass", sa.Boolean(), nullable=True),
        sa.Column("answers", sa.JSON(), nullable=False),
        sa.Column("current_question", sa.Integer(), nullable=False),
        sa.Column("progress", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "progress >= 0 AND progress <= 100",
            name="ck_test_attempts_progress_range",
        ),
    )
    op.create_index(op.f("ix_test_attempts_user_id"), "test_attempts", ["user_id"])
    # Pending-attempt lookup when starting or resuming a test
    op.create_index(
        "ix_test_attempts_user_type_status",
        "test_attempts",
        ["user_id", "test_type", "status"],
    )

    op.create_table(
        "trips",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(36), nullable=True),
        sa.Column("driver_id", sa.String(36), nullable=True),
        sa.Column("status", sa.String(20), nullable=True),
        sa.Column("aggregate_score", sa.Float(), nullable=True),
        sa.Column("risk_level", sa.String(20), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index(op.f("ix_trips_user_id"), "trips", ["user_id"])
    op.create_index(op.f("ix_trips_driver_id"), "trips", ["driver_id"])

    op.create_table(
        "test_history",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("driver_id", sa.String(36), nullable=False),
        sa.Column("test_type", sa.String(100), nullable=True),
        sa.Column("status", sa.String(20), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("final_score", sa.Float(), nullable=True),
    )
    op.create_index(op.f("ix_test_history_driver_id"), "test_history", ["driver_id"])

    op.create_table(
        "test_results",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("driver_id", sa.String(36), nullable=False),
        sa.Column("test_type", sa.String(100), nullable=True),
        sa.Column("status", sa.String(20), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("score", sa.Float(), nullable=True),
        sa.Column("percentage", sa.Float(), nullable=True),
    )
    op.create_index(op.f("ix_test_results_driver_id"), "test_results", ["driver_id"])

    op.create_table(
        "critical_failures",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("driver_id", sa.String(36), nullable=False),
        sa.Column("failure_category", sa.String(100), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("severity", sa.String(20), nullable=False),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("resolved_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index(
        op.f("ix_critical_failures_driver_id"), "critical_failures", ["driver_id"]
    )
    op.create_index(
        "ix_critical_failures_driver_created",
        "critical_failures",
        ["driver_id", "created_at"],
    )

    op.create_table(
        "audit_logs",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(36), nullable=False),
        sa.Column("action", sa.String(100), nullable=False),
        sa.Column("resource_type", sa.String(50), nullable=True),
        sa.Column("resource_id", sa.String(36), nullable=True),
        sa.Column("old_values", sa.JSON(), nullable=True),
        sa.Column("new_values", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index(op.f("ix_audit_logs_user_id"), "audit_logs", ["user_id"])
    op.create_index(
        "ix_audit_logs_user_created", "audit_logs", ["user_id", "created_at"]
    )


def downgrade() -> None:
    op.drop_index("ix_audit_logs_user_created", table_name="audit_logs")
    op.drop_index(op.f("ix_audit_logs_user_id"), table_name="audit_logs")
    op.drop_table("audit_logs")

    op.drop_index("ix_critical_failures_driver_created", table_name="critical_failures")
    op.drop_index(op.f("ix_critical_failures_driver_id"), table_name="critical_failures")
    op.drop_table("critical_failures")

    op.drop_index(op.f("ix_test_results_driver_id"), table_name="test_results")
    op.drop_table("test_results")

    op.drop_index(op.f("ix_test_history_driver_id"), table_name="test_history")
    op.drop_table("test_history")

    op.drop_index(op.f("ix_trips_driver_id"), table_name="trips")
    op.drop_index(op.f("ix_trips_user_id"), table_name="trips")
    op.drop_table("trips")

    op.drop_index("ix_test_attempts_user_type_status", table_name="test_attempts")
    op.drop_index(op.f("ix_test_attempts_user_id"), table_name="test_attempts")
    op.drop_table("test_attempts")
    TEST_STATUS.drop(op.get_bind(), checkfirst=True)

    op.drop_index("ix_schedules_driver_status_date", table_name="schedules")
    op.drop_index(op.f("ix_schedules_driver_id"), table_name="schedules")
    op.drop_table("schedules")

    op.drop_index(op.f("ix_certifications_driver_id"), table_name="certifications")
    op.drop_table("certifications")

    op.drop_index(op.f("ix_profiles_user_id"), table_name="profiles")
    op.drop_table("profiles")
