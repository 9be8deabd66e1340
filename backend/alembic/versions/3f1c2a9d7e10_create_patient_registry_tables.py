"""create_patient_registry_tables

Revision ID: 3f1c2a9d7e10
Revises:
Create Date: 2026-10-19 09:12:44.318205

"""

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "3f1c2a9d7e10"
down_revision = None
branch_labels = None
depends_on = None


def _audit_columns():
    return [
        sa.Column("created_by", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("last_modified_by", sa.Integer(), nullable=True),
        sa.Column("last_modified_at", sa.DateTime(), nullable=True),
        sa.Column("voided", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("voided_by", sa.Integer(), nullable=True),
        sa.Column("voided_at", sa.DateTime(), nullable=True),
        sa.Column("void_reason", sa.Text(), nullable=True),
        sa.Column("uuid", sa.String(length=36), nullable=False),
    ]


def upgrade():
    op.create_table(
        "patient",
        sa.Column("patient_id", sa.Integer(), autoincrement=False, nullable=False),
        sa.Column("allergies", sa.Text(), nullable=True),
        *_audit_columns(),
        sa.PrimaryKeyConstraint("patient_id"),
        sa.UniqueConstraint("uuid"),
    )
    op.create_index("ix_patient_voided", "patient", ["voided"])

    op.create_table(
        "patient_identifier_type",
        sa.Column("patient_identifier_type_id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("format", sa.String(length=255), nullable=True),
        sa.Column("format_hint", sa.String(length=255), nullable=True),
        sa.Column("validator", sa.String(length=255), nullable=True),
        sa.Column("required", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_unique", sa.Boolean(), nullable=False, server_default=sa.false()),
        *_audit_columns(),
        sa.PrimaryKeyConstraint("patient_identifier_type_id"),
        sa.UniqueConstraint("name"),
        sa.UniqueConstraint("uuid"),
    )
    op.create_index("ix_patient_identifier_type_voided", "patient_identifier_type", ["voided"])

    op.create_table(
        "patient_identifier",
        sa.Column("patient_identifier_id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("patient_id", sa.Integer(), nullable=False),
        sa.Column("identifier_type_id", sa.Integer(), nullable=False),
        sa.Column("identifier", sa.String(length=100), nullable=False),
        sa.Column("preferred", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("location_id", sa.Integer(), nullable=True),
        *_audit_columns(),
        sa.ForeignKeyConstraint(["patient_id"], ["patient.patient_id"]),
        sa.ForeignKeyConstraint(
            ["identifier_type_id"], ["patient_identifier_type.patient_identifier_type_id"]
        ),
        sa.PrimaryKeyConstraint("patient_identifier_id"),
        sa.UniqueConstraint("identifier"),
        sa.UniqueConstraint("uuid"),
    )
    op.create_index("ix_patient_identifier_patient_id", "patient_identifier", ["patient_id"])
    op.create_index("ix_patient_identifier_voided", "patient_identifier", ["voided"])
    op.create_index(
        "patient_identifier_idx", "patient_identifier", ["identifier_type_id", "patient_id", "preferred"]
    )
    op.create_index(
        "uq_patient_identifier_preferred",
        "patient_identifier",
        ["patient_id", "identifier_type_id"],
        unique=True,
        sqlite_where=sa.text("preferred = 1 AND voided = 0"),
        postgresql_where=sa.text("preferred AND NOT voided"),
    )

    op.create_table(
        "program",
        sa.Column("program_id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=150), nullable=False),
        sa.Column("program_code", sa.String(length=50), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_audit_columns(),
        sa.PrimaryKeyConstraint("program_id"),
        sa.UniqueConstraint("name"),
        sa.UniqueConstraint("program_code"),
        sa.UniqueConstraint("uuid"),
    )
    op.create_index("ix_program_voided", "program", ["voided"])

    op.create_table(
        "patient_program",
        sa.Column("patient_program_id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("patient_id", sa.Integer(), nullable=False),
        sa.Column("program_id", sa.Integer(), nullable=False),
        sa.Column("location_id", sa.Integer(), nullable=True),
        sa.Column("date_enrolled", sa.Date(), nullable=False),
        sa.Column("date_completed", sa.Date(), nullable=True),
        sa.Column("outcome_concept_id", sa.Integer(), nullable=True),
        sa.Column("outcome_comment", sa.Text(), nullable=True),
        *_audit_columns(),
        sa.ForeignKeyConstraint(["patient_id"], ["patient.patient_id"]),
        sa.ForeignKeyConstraint(["program_id"], ["program.program_id"]),
        sa.PrimaryKeyConstraint("patient_program_id"),
        sa.UniqueConstraint("patient_id", "program_id", name="uq_patient_program"),
        sa.UniqueConstraint("uuid"),
    )
    op.create_index("ix_patient_program_patient_id", "patient_program", ["patient_id"])
    op.create_index("ix_patient_program_voided", "patient_program", ["voided"])
    op.create_index("idx_program_date", "patient_program", ["program_id", "date_enrolled"])


def downgrade():
    op.drop_table("patient_program")
    op.drop_table("program")
    op.drop_index("uq_patient_identifier_preferred", table_name="patient_identifier")
    op.drop_table("patient_identifier")
    op.drop_table("patient_identifier_type")
    op.drop_table("patient")
