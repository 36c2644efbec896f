import uuid
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from formflow.models.enums import ResponseStatus

# ---------------------------------------------------------------------------
# Submission input
# ---------------------------------------------------------------------------
#
# Ids and enum-valued strings are optional here on purpose: missing or
# unknown values are rejected by the submission validator with a
# ValidationError (400), in the order it checks them.


class AnswerSubmission(BaseModel):
    """One answer in a submission.

    ``id`` may be pre-assigned by the caller so that vectors sent with the
    same submission can reference the answer.
    """

    id: uuid.UUID | None = None
    field_id: uuid.UUID | None = None
    field_type: str | None = None
    value: dict[str, Any] = Field(default_factory=dict)


class VectorSubmission(BaseModel):
    answer_id: uuid.UUID | None = None
    embedding: list[float] = Field(default_factory=list)
    model_name: str | None = None


class SubmissionCreate(BaseModel):
    id: uuid.UUID | None = None
    form_id: uuid.UUID | None = None
    respondent: dict[str, Any] = Field(default_factory=dict)
    answers: list[AnswerSubmission] = Field(default_factory=list)


class SubmissionRequest(SubmissionCreate):
    """HTTP body for ``POST /responses``: a submission plus optional vectors."""

    vectors: list[VectorSubmission] | None = None


class VectorAttachRequest(BaseModel):
    vectors: list[VectorSubmission] = Field(..., min_length=1)


# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------


class VectorResponse(BaseModel):
    id: uuid.UUID
    response_answer_id: uuid.UUID
    model_name: str
    dimensions: int
    embedding: list[float] | None = None
    created_at: datetime | None

    @classmethod
    def from_vector(cls, vector, include_embedding: bool = False) -> "VectorResponse":
        # pgvector hands back numpy arrays; never test them for truthiness.
        embedding = None
        if include_embedding and vector.embedding is not None:
            embedding = [float(x) for x in vector.embedding]
        return cls(
            id=vector.id,
            response_answer_id=vector.response_answer_id,
            model_name=vector.model_name,
            dimensions=vector.dimensions,
            embedding=embedding,
            created_at=vector.created_at,
        )


class AnswerResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    response_id: uuid.UUID
    field_id: uuid.UUID
    field_type: str
    value: dict[str, Any]
    position: int
    created_at: datetime | None
    has_vector: bool = False


class ResponseSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    form_id: uuid.UUID
    respondent: dict[str, Any]
    status: ResponseStatus
    submitted_at: datetime


class ResponseDetailSchema(ResponseSchema):
    answers: list[AnswerResponse] = Field(default_factory=list)


class SubmissionResult(ResponseDetailSchema):
    vector_count: int = 0


class ResponseListResponse(BaseModel):
    items: list[ResponseSchema]
    total: int
    page: int
    page_size: int


class VectorListResponse(BaseModel):
    items: list[VectorResponse]
