import uuid
from datetime import datetime

from sqlalchemy import DateTime, Enum, ForeignKey, Index, func
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from formflow.core.database import Base
from formflow.models.enums import ResponseStatus


class Response(Base):
    """One end-user submission against a published form.

    ``respondent`` is free-form but expected to hold at least email and name:
        {"email": "a@b.com", "name": "Sara"}

    Written once at submission and never updated; deleting it removes its
    answers and their vectors.
    """

    __tablename__ = "responses"
    __table_args__ = (
        Index("ix_responses_form_id", "form_id"),
        Index("ix_responses_form_submitted", "form_id", "submitted_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    form_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey("forms.id"), nullable=False)
    respondent: Mapped[dict] = mapped_column(JSONB, nullable=False, default=dict)
    status: Mapped[str] = mapped_column(
        Enum(*ResponseStatus.values(), name="response_status"),
        nullable=False,
        default=ResponseStatus.SUBMITTED.value,
    )
    submitted_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    form: Mapped["Form"] = relationship(back_populates="responses")
    answers: Mapped[list["ResponseAnswer"]] = relationship(
        back_populates="response",
        cascade="all, delete-orphan",
        order_by="ResponseAnswer.position",
    )

    @property
    def email(self) -> str:
        return str((self.respondent or {}).get("email") or "")

    @property
    def name(self) -> str:
        return str((self.respondent or {}).get("name") or "")

    def set_email(self, email: str) -> None:
        self.respondent = {**(self.respondent or {}), "email": email}

    def set_name(self, name: str) -> None:
        self.respondent = {**(self.respondent or {}), "name": name}

    def __repr__(self) -> str:
        return f"<Response form={self.form_id} ({self.status})>"
