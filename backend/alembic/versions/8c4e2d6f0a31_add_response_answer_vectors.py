"""Add response_answer_vectors table.

Enables pgvector and stores one embedding per answer. The column has no
fixed dimension because accepted embedding models differ in size.

Revision ID: 8c4e2d6f0a31
Revises: 3f9a1c2b7d10
Create Date: 2026-10-12 09:30:00.000000
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

revision = "8c4e2d6f0a31"
down_revision = "3f9a1c2b7d10"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.execute("CREATE EXTENSION IF NOT EXISTS vector")

    op.create_table(
        "response_answer_vectors",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "response_answer_id",
            UUID(as_uuid=True),
            sa.ForeignKey("response_answers.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("model_name", sa.String(100), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("response_answer_id", name="uq_response_answer_vectors_answer"),
    )
    op.execute("ALTER TABLE response_answer_vectors ADD COLUMN embedding vector NOT NULL")


def downgrade() -> None:
    op.drop_table("response_answer_vectors")
