"""init schema

Revision ID: 0001_init_schema
Revises:
Create Date: 2026-10-17
"""

from collections.abc import Sequence

from alembic import op
import sqlalchemy as sa


revision: str = "0001_init_schema"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _soft_delete_columns() -> list[sa.Column]:
    return [
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("deleted_by", sa.String(length=36), nullable=True),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("password_hash", sa.String(length=512), nullable=False),
        sa.Column("role", sa.String(length=32), nullable=False),
        sa.Column("school_id", sa.String(length=36), nullable=True),
        sa.Column("mfa_enabled", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("mfa_secret", sa.String(length=64), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_school_id", "users", ["school_id"], unique=False)

    op.create_table(
        "api_keys",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("user_id", sa.String(length=36), nullable=False),
        sa.Column("name", sa.String(length=60), nullable=False),
        sa.Column("key_hash", sa.String(length=64), nullable=False),
        sa.Column("last_used", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_api_keys_user_id", "api_keys", ["user_id"], unique=False)
    op.create_index("ix_api_keys_key_hash", "api_keys", ["key_hash"], unique=True)

    op.create_table(
        "schools",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("address", sa.String(length=200), nullable=False),
        sa.Column("admin_id", sa.String(length=36), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        *_soft_delete_columns(),
        sa.ForeignKeyConstraint(["admin_id"], ["users.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_schools_admin_id", "schools", ["admin_id"], unique=False)
    op.create_index("ix_schools_deleted_at", "schools", ["deleted_at"], unique=False)

    op.create_table(
        "classrooms",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("school_id", sa.String(length=36), nullable=False),
        sa.Column("capacity", sa.Integer(), nullable=False),
        sa.Column("student_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        *_soft_delete_columns(),
        sa.CheckConstraint("capacity >= 1", name="ck_classrooms_capacity_positive"),
        sa.CheckConstraint("student_count >= 0", name="ck_classrooms_student_count_non_negative"),
        sa.CheckConstraint("student_count <= capacity", name="ck_classrooms_student_count_within_capacity"),
        sa.ForeignKeyConstraint(["school_id"], ["schools.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_classrooms_school_id", "classrooms", ["school_id"], unique=False)
    op.create_index("ix_classrooms_school_id_id", "classrooms", ["school_id", "id"], unique=False)
    op.create_index("ix_classrooms_deleted_at", "classrooms", ["deleted_at"], unique=False)

    op.create_table(
        "students",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("first_name", sa.String(length=50), nullable=False),
        sa.Column("last_name", sa.String(length=50), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("school_id", sa.String(length=36), nullable=False),
        sa.Column("classroom_id", sa.String(length=36), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        *_soft_delete_columns(),
        sa.ForeignKeyConstraint(["school_id"], ["schools.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["classroom_id"], ["classrooms.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_students_school_id", "students", ["school_id"], unique=False)
    op.create_index("ix_students_classroom_id", "students", ["classroom_id"], unique=False)
    op.create_index("ix_students_school_id_id", "students", ["school_id", "id"], unique=False)
    op.create_index("ix_students_deleted_at", "students", ["deleted_at"], unique=False)
    op.create_index(
        "uq_students_school_email_active",
        "students",
        ["school_id", "email"],
        unique=True,
        sqlite_where=sa.text("deleted_at IS NULL"),
        postgresql_where=sa.text("deleted_at IS NULL"),
    )

    op.create_table(
        "audit_logs",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("action", sa.String(length=16), nullable=False),
        sa.Column("resource_type", sa.String(length=16), nullable=False),
        sa.Column("resource_id", sa.String(length=36), nullable=False),
        sa.Column("performed_by", sa.String(length=36), nullable=True),
        sa.Column("school_id", sa.String(length=36), nullable=True),
        sa.Column("changes", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_audit_logs_resource", "audit_logs", ["resource_type", "resource_id", "created_at"], unique=False)
    op.create_index("ix_audit_logs_school_created", "audit_logs", ["school_id", "created_at"], unique=False)
    op.create_index("ix_audit_logs_performed_by_created", "audit_logs", ["performed_by", "created_at"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_audit_logs_performed_by_created", table_name="audit_logs")
    op.drop_index("ix_audit_logs_school_created", table_name="audit_logs")
    op.drop_index("ix_audit_logs_resource", table_name="audit_logs")
    op.drop_table("audit_logs")

    op.drop_index("uq_students_school_email_active", table_name="students")
    op.drop_index("ix_students_deleted_at", table_name="students")
    op.drop_index("ix_students_school_id_id", table_name="students")
    op.drop_index("ix_students_classroom_id", table_name="students")
    op.drop_index("ix_students_school_id", table_name="students")
    op.drop_table("students")

    op.drop_index("ix_classrooms_deleted_at", table_name="classrooms")
    op.drop_index("ix_classrooms_school_id_id", table_name="classrooms")
    op.drop_index("ix_classrooms_school_id", table_name="classrooms")
    op.drop_table("classrooms")

    op.drop_index("ix_schools_deleted_at", table_name="schools")
    op.drop_index("ix_schools_admin_id", table_name="schools")
    op.drop_table("schools")

    op.drop_index("ix_api_keys_key_hash", table_name="api_keys")
    op.drop_index("ix_api_keys_user_id", table_name="api_keys")
    op.drop_table("api_keys")

    op.drop_index("ix_users_school_id", table_name="users")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
