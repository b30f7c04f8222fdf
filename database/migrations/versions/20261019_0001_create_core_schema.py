"""create core schema

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    faculty_role = sa.Enum("faculty", "admin", name="faculty_role")
    allocation_status = sa.Enum("pending", "approved", "rejected", name="allocation_status")

    op.create_table(
        "departments",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False, unique=True),
        sa.Column("code", sa.String(length=20), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        "faculty",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("department_id", sa.Integer(), sa.ForeignKey("departments.id"), nullable=False),
        sa.Column("role", faculty_role, nullable=False, server_default="faculty"),
        sa.Column("designation", sa.String(length=200), nullable=True),
        sa.Column("expertise", sa.JSON(), nullable=False, server_default="[]"),
        sa.Column("preferences", sa.JSON(), nullable=False, server_default="[]"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_faculty_email", "faculty", ["email"], unique=True)
    op.create_index("ix_faculty_department_id", "faculty", ["department_id"])

    op.create_table(
        "courses",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column("code", sa.String(length=50), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("department_id", sa.Integer(), sa.ForeignKey("departments.id"), nullable=False),
        sa.Column("semester", sa.Integer(), nullable=False),
        sa.Column("credits", sa.Integer(), nullable=False, server_default="3"),
        sa.Column("required_expertise", sa.JSON(), nullable=False, server_default="[]"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_courses_code", "courses", ["code"], unique=True)
    op.create_index("ix_courses_department_id", "courses", ["department_id"])
    op.create_index("ix_courses_semester", "courses", ["semester"])

    op.create_table(
        "classes",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=200), nullable=True),
        sa.Column("section", sa.String(length=50), nullable=False),
        sa.Column("semester", sa.Integer(), nullable=False),
        sa.Column("academic_year", sa.Integer(), nullable=False),
        sa.Column("department_id", sa.Integer(), sa.ForeignKey("departments.id"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_classes_semester", "classes", ["semester"])
    op.create_index("ix_classes_academic_year", "classes", ["academic_year"])
    op.create_index("ix_classes_department_id", "classes", ["department_id"])

    op.create_table(
        "allocations",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column("faculty_id", sa.Integer(), sa.ForeignKey("faculty.id", ondelete="CASCADE"), nullable=False),
        sa.Column("class_id", sa.Integer(), sa.ForeignKey("classes.id", ondelete="CASCADE"), nullable=False),
        sa.Column("course_id", sa.Integer(), sa.ForeignKey("courses.id", ondelete="CASCADE"), nullable=False),
        sa.Column("academic_year", sa.Integer(), nullable=False),
        sa.Column("semester", sa.Integer(), nullable=False),
        sa.Column("status", allocation_status, nullable=False, server_default="pending"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint(
            "faculty_id",
            "class_id",
            "course_id",
            "academic_year",
            "semester",
            name="uq_allocations_term_triple",
        ),
    )
    op.create_index("ix_allocations_faculty_id", "allocations", ["faculty_id"])
    op.create_index("ix_allocations_class_id", "allocations", ["class_id"])
    op.create_index("ix_allocations_course_id", "allocations", ["course_id"])

    op.create_table(
        "timetable",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column(
            "allocation_id",
            sa.Integer(),
            sa.ForeignKey("allocations.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("day_of_week", sa.Integer(), nullable=False),
        sa.Column("time_slot", sa.Integer(), nullable=False),
        sa.Column("room_number", sa.String(length=50), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint("day_of_week BETWEEN 1 AND 5", name="ck_timetable_day_of_week"),
        sa.CheckConstraint("time_slot BETWEEN 1 AND 8", name="ck_timetable_time_slot"),
    )
    op.create_index("ix_timetable_allocation_id", "timetable", ["allocation_id"])


def downgrade() -> None:
    op.drop_index("ix_timetable_allocation_id", table_name="timetable")
    op.drop_table("timetable")
    op.drop_index("ix_allocations_course_id", table_name="allocations")
    op.drop_index("ix_allocations_class_id", table_name="allocations")
    op.drop_index("ix_allocations_faculty_id", table_name="allocations")
    op.drop_table("allocations")
    op.drop_index("ix_classes_department_id", table_name="classes")
    op.drop_index("ix_classes_academic_year", table_name="classes")
    op.drop_index("ix_classes_semester", table_name="classes")
    op.drop_table("classes")
    op.drop_index("ix_courses_semester", table_name="courses")
    op.drop_index("ix_courses_department_id", table_name="courses")
    op.drop_index("ix_courses_code", table_name="courses")
    op.drop_table("courses")
    op.drop_index("ix_faculty_department_id", table_name="faculty")
    op.drop_index("ix_faculty_email", table_name="faculty")
    op.drop_table("faculty")
    op.drop_table("departments")
    sa.Enum(name="allocation_status").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="faculty_role").drop(op.get_bind(), checkfirst=True)
