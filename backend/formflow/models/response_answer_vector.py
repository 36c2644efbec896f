import uuid
from datetime import datetime

from pgvector.sqlalchemy import Vector
from sqlalchemy import Column, DateTime, ForeignKey, String, UniqueConstraint, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from formflow.core.database import Base


class ResponseAnswerVector(Base):
    """Embedding of one answer, for semantic search.

    At most one vector per answer. Dimension is left open because the
    accepted models produce different sizes (768 to 3072).
    """

    __tablename__ = "response_answer_vectors"
    __table_args__ = (UniqueConstraint("response_answer_id", name="uq_response_answer_vectors_answer"),)

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    response_answer_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("response_answers.id", ondelete="CASCADE"), nullable=False
    )
    embedding = Column(Vector(), nullable=False)
    model_name: Mapped[str] = mapped_column(String(100), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    answer: Mapped["ResponseAnswer"] = relationship(back_populates="vector")

    @property
    def dimensions(self) -> int:
        return 0 if self.embedding is None else len(self.embedding)

    def __repr__(self) -> str:
        return f"<ResponseAnswerVector answer={self.response_answer_id} ({self.model_name})>"
