import uuid
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from formflow.models.enums import FormStatus

# ---------------------------------------------------------------------------
# Form schemas
# ---------------------------------------------------------------------------


class FormCreate(BaseModel):
    title: str = Field("", max_length=255)
    description: str | None = None


class FormUpdate(BaseModel):
    title: str = Field("", max_length=255)
    description: str | None = None


class FormResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    title: str
    description: str | None
    status: FormStatus
    version: int
    created_at: datetime
    updated_at: datetime


class FormDetailResponse(FormResponse):
    field_count: int = 0
    response_count: int = 0


class FormListResponse(BaseModel):
    items: list[FormResponse]
    total: int
    page: int
    page_size: int


# ---------------------------------------------------------------------------
# Field schemas
# ---------------------------------------------------------------------------


class FieldSpec(BaseModel):
    """Field definition as sent by the form builder.

    ``field_type`` stays a plain string here; unknown types are reported by
    the field catalog as validation errors.
    """

    label: dict[str, str] = Field(default_factory=dict)
    placeholder: dict[str, str] = Field(default_factory=dict)
    help_text: dict[str, str] = Field(default_factory=dict)
    field_type: str
    field_order: int
    required: bool = False
    options: dict[str, Any] | None = None


class FieldCreate(FieldSpec):
    form_id: uuid.UUID


class LocalizedFieldText(BaseModel):
    language: str
    label: str
    placeholder: str
    help_text: str


class FieldResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    form_id: uuid.UUID
    label: dict[str, str]
    placeholder: dict[str, str]
    help_text: dict[str, str]
    field_type: str
    field_order: int
    required: bool
    options: dict[str, Any] | None
    created_at: datetime
    updated_at: datetime
    localized: LocalizedFieldText | None = None
