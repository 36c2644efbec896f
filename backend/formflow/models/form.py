import uuid
from datetime import datetime

from sqlalchemy import DateTime, Enum, Index, Integer, String, Text, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from formflow.core.database import Base
from formflow.models.enums import FormStatus


class Form(Base):
    """A container of field definitions with a lifecycle status.

    ``version`` is bumped by SQLAlchemy on every UPDATE and checked in the
    WHERE clause, so a publish/close racing another writer fails instead of
    silently overwriting it.
    """

    __tablename__ = "forms"
    __table_args__ = (Index("ix_forms_status", "status"),)

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    status: Mapped[str] = mapped_column(
        Enum(*FormStatus.values(), name="form_status"),
        nullable=False,
        default=FormStatus.DRAFT.value,
        server_default=FormStatus.DRAFT.value,
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    fields: Mapped[list["FormField"]] = relationship(
        back_populates="form",
        cascade="all, delete-orphan",
        order_by="[FormField.field_order, FormField.insertion_seq]",
    )
    responses: Mapped[list["Response"]] = relationship(back_populates="form", cascade="all, delete-orphan")

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self) -> str:
        return f"<Form {self.title} ({self.status})>"
