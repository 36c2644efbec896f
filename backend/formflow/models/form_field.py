import uuid
from datetime import datetime

from sqlalchemy import Boolean, CheckConstraint, DateTime, Enum, ForeignKey, Index, Integer, func
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from formflow.core.config import settings
from formflow.core.database import Base
from formflow.models.enums import FieldType


def localized_text(
    translations: dict[str, str] | None,
    language: str,
    default_language: str | None = None,
) -> str:
    """Resolve a language -> text mapping.

    Returns the ``language`` entry if present and non-empty, else the
    ``default_language`` entry, else "".
    """
    if not translations:
        return ""
    text = translations.get(language)
    if text:
        return text
    fallback = default_language or settings.DEFAULT_LANGUAGE
    return translations.get(fallback) or ""


class FormField(Base):
    """Typed, ordered, localizable question belonging to a form.

    Label, placeholder and help text are JSONB dicts keyed by language code:
        {"en": "Name", "ar": "الاسم"}

    Options map option key to option label and are only allowed (and then
    required) for select, radio and checkbox fields:
        {"1": "Option A", "2": "Option B"}
    """

    __tablename__ = "form_fields"
    __table_args__ = (
        CheckConstraint("field_order > 0", name="ck_form_fields_field_order_positive"),
        Index("ix_form_fields_form_id", "form_id"),
        Index("ix_form_fields_form_order", "form_id", "field_order", "insertion_seq"),
    )

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    form_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("forms.id", ondelete="CASCADE"), nullable=False
    )
    label: Mapped[dict] = mapped_column(JSONB, nullable=False, default=dict)
    placeholder: Mapped[dict] = mapped_column(JSONB, nullable=False, default=dict)
    help_text: Mapped[dict] = mapped_column(JSONB, nullable=False, default=dict)
    field_type: Mapped[str] = mapped_column(Enum(*FieldType.values(), name="field_type"), nullable=False)
    field_order: Mapped[int] = mapped_column(Integer, nullable=False)
    # Per-form creation counter; breaks field_order ties by insertion order.
    insertion_seq: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    required: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="false")
    options: Mapped[dict | None] = mapped_column(JSONB, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    form: Mapped["Form"] = relationship(back_populates="fields")

    def get_label(self, language: str) -> str:
        return localized_text(self.label, language)

    def get_placeholder(self, language: str) -> str:
        return localized_text(self.placeholder, language)

    def get_help_text(self, language: str) -> str:
        return localized_text(self.help_text, language)

    @property
    def requires_options(self) -> bool:
        field_type = FieldType.parse(self.field_type)
        return field_type is not None and field_type.requires_options

    @property
    def has_options(self) -> bool:
        return bool(self.options)

    def __repr__(self) -> str:
        return f"<FormField {self.field_type} #{self.field_order} form={self.form_id}>"
