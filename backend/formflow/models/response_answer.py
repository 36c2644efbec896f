import uuid
from datetime import datetime

from sqlalchemy import DateTime, Enum, ForeignKey, Index, Integer, func
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from formflow.core.database import Base
from formflow.models.enums import FieldType


class ResponseAnswer(Base):
    """A respondent's value for one field within a response.

    ``field_type`` is copied from the field definition at submission time so
    the answer stays interpretable if the field is later edited or deleted;
    ``field_id`` is therefore not a foreign key.

    ``value`` is keyed by language code:
        {"en": "1"}  # select answer: option key
        {"en": "Kathmandu", "ne": "काठमाडौं"}

    ``position`` is the answer's index in the submitted list.
    """

    __tablename__ = "response_answers"
    __table_args__ = (
        Index("ix_response_answers_response_position", "response_id", "position"),
        Index("ix_response_answers_field_id", "field_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    response_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("responses.id", ondelete="CASCADE"), nullable=False
    )
    field_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    field_type: Mapped[str] = mapped_column(Enum(*FieldType.values(), name="field_type"), nullable=False)
    value: Mapped[dict] = mapped_column(JSONB, nullable=False, default=dict)
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    response: Mapped["Response"] = relationship(back_populates="answers")
    vector: Mapped["ResponseAnswerVector"] = relationship(
        back_populates="answer", cascade="all, delete-orphan", uselist=False
    )

    def get_value(self, language: str) -> str:
        value = (self.value or {}).get(language)
        if value is None:
            return ""
        return str(value)

    def set_value(self, language: str, value) -> None:
        self.value = {**(self.value or {}), language: value}

    def __repr__(self) -> str:
        return f"<ResponseAnswer response={self.response_id} #{self.position} ({self.field_type})>"
