"""Create form builder tables.

Creates:
- forms: lifecycle status + optimistic version counter
- form_fields: ordered, localized field definitions
- responses: one row per submission
- response_answers: per-field answers, kept in submitted order

Revision ID: 3f9a1c2b7d10
Revises:
Create Date: 2026-10-12 09:00:00.000000
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import ENUM, JSONB, UUID

revision = "3f9a1c2b7d10"
down_revision = None
branch_labels = None
depends_on = None

FIELD_TYPES = ("text", "textarea", "number", "email", "select", "radio", "checkbox", "date")


def upgrade() -> None:
    field_type = ENUM(*FIELD_TYPES, name="field_type")
    field_type.create(op.get_bind(), checkfirst=True)

    # forms
    op.create_table(
        "forms",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column(
            "status",
            sa.Enum("draft", "published", "closed", name="form_status"),
            nullable=False,
            server_default="draft",
        ),
        sa.Column("version", sa.Integer, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_forms_status", "forms", ["status"])

    # form_fields
    op.create_table(
        "form_fields",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "form_id",
            UUID(as_uuid=True),
            sa.ForeignKey("forms.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("label", JSONB, nullable=False),
        sa.Column("placeholder", JSONB, nullable=False),
        sa.Column("help_text", JSONB, nullable=False),
        sa.Column("field_type", ENUM(name="field_type", create_type=False), nullable=False),
        sa.Column("field_order", sa.Integer, nullable=False),
        sa.Column("insertion_seq", sa.Integer, nullable=False, server_default="0"),
        sa.Column("required", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("options", JSONB, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint("field_order > 0", name="ck_form_fields_field_order_positive"),
    )
    op.create_index("ix_form_fields_form_id", "form_fields", ["form_id"])
    op.create_index("ix_form_fields_form_order", "form_fields", ["form_id", "field_order", "insertion_seq"])

    # responses
    op.create_table(
        "responses",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("form_id", UUID(as_uuid=True), sa.ForeignKey("forms.id"), nullable=False),
        sa.Column("respondent", JSONB, nullable=False),
        sa.Column("status", sa.Enum("submitted", name="response_status"), nullable=False),
        sa.Column("submitted_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_responses_form_id", "responses", ["form_id"])
    op.create_index("ix_responses_form_submitted", "responses", ["form_id", "submitted_at"])

    # response_answers; field_id is deliberately not a foreign key
    op.create_table(
        "response_answers",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "response_id",
            UUID(as_uuid=True),
            sa.ForeignKey("responses.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("field_id", UUID(as_uuid=True), nullable=False),
        sa.Column("field_type", ENUM(name="field_type", create_type=False), nullable=False),
        sa.Column("value", JSONB, nullable=False),
        sa.Column("position", sa.Integer, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_response_answers_response_position", "response_answers", ["response_id", "position"])
    op.create_index("ix_response_answers_field_id", "response_answers", ["field_id"])


def downgrade() -> None:
    op.drop_index("ix_response_answers_field_id", table_name="response_answers")
    op.drop_index("ix_response_answers_response_position", table_name="response_answers")
    op.drop_table("response_answers")

    op.drop_index("ix_responses_form_submitted", table_name="responses")
    op.drop_index("ix_responses_form_id", table_name="responses")
    op.drop_table("responses")

    op.drop_index("ix_form_fields_form_order", table_name="form_fields")
    op.drop_index("ix_form_fields_form_id", table_name="form_fields")
    op.drop_table("form_fields")

    op.drop_index("ix_forms_status", table_name="forms")
    op.drop_table("forms")

    sa.Enum(name="response_status").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="form_status").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="field_type").drop(op.get_bind(), checkfirst=True)
