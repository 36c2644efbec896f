"""Submission validator — decides whether a submission may be written.

Every check here is pure: the caller fetches the form and its fields first
and passes them in. Checks run in a fixed order and stop at the first
failure:

    1. response structure (form id, respondent)
    2. form exists
    3. form is published
    4. form has at least one field
    5. each answer (field id, field type; optionally field membership)
    6. each vector (answer reference, embedding, model name)
    7. optionally, every required field has an answer
"""

import math
import uuid
from collections.abc import Sequence

from formflow.models.enums import EmbeddingModel, FieldType
from formflow.models.form import Form
from formflow.models.form_field import FormField
from formflow.schemas.responses import AnswerSubmission, SubmissionCreate, VectorSubmission
from formflow.services.exceptions import FormNotAcceptingResponses, NotFound, ValidationError
from formflow.services.lifecycle import can_accept_responses


def validate_response(submission: SubmissionCreate) -> None:
    if submission.form_id is None:
        raise ValidationError("missing form_id")
    if not submission.respondent:
        raise ValidationError("respondent is required")


def validate_answer(answer: AnswerSubmission, index: int = 0) -> FieldType:
    """Structural check of one answer. Returns its parsed field type."""
    if answer.field_id is None:
        raise ValidationError(f"answers[{index}]: missing field_id")
    field_type = FieldType.parse(answer.field_type)
    if field_type is None:
        raise ValidationError(f"answers[{index}]: invalid field type: {answer.field_type}")
    return field_type


def validate_vector(vector: VectorSubmission, index: int = 0) -> EmbeddingModel:
    """Structural check of one vector. Returns its parsed model name."""
    if vector.answer_id is None:
        raise ValidationError(f"vectors[{index}]: missing answer id")
    if not vector.embedding:
        raise ValidationError(f"vectors[{index}]: missing embedding")
    if not all(math.isfinite(x) for x in vector.embedding):
        raise ValidationError(f"vectors[{index}]: embedding must contain only finite numbers")
    model = EmbeddingModel.parse(vector.model_name)
    if model is None:
        raise ValidationError(f"vectors[{index}]: invalid model name: {vector.model_name}")
    return model


def has_value(value: dict | None) -> bool:
    """True when at least one language entry of an answer value is non-empty."""
    if not value:
        return False
    return any(v not in (None, "", [], {}) for v in value.values())


def _check_membership(
    answer: AnswerSubmission,
    field_type: FieldType,
    fields_by_id: dict[uuid.UUID, FormField],
    index: int,
) -> None:
    field = fields_by_id.get(answer.field_id)
    if field is None:
        raise ValidationError(f"answers[{index}]: field {answer.field_id} does not belong to this form")
    if field.field_type != field_type:
        raise ValidationError(
            f"answers[{index}]: field type {field_type.value} does not match field definition ({field.field_type})"
        )


def validate_vector_references(
    vectors: Sequence[VectorSubmission],
    answer_ids: set[uuid.UUID],
) -> None:
    """Each vector must point at a known answer, at most one vector per answer."""
    seen: set[uuid.UUID] = set()
    for index, vector in enumerate(vectors):
        validate_vector(vector, index)
        if vector.answer_id not in answer_ids:
            raise ValidationError(f"vectors[{index}]: answer {vector.answer_id} is not part of this response")
        if vector.answer_id in seen:
            raise ValidationError(f"vectors[{index}]: answer {vector.answer_id} already has a vector")
        seen.add(vector.answer_id)


def validate_submission(
    submission: SubmissionCreate,
    form: Form | None,
    fields: Sequence[FormField],
    vectors: Sequence[VectorSubmission] | None = None,
    *,
    enforce_required_fields: bool = False,
    enforce_field_membership: bool = False,
) -> None:
    validate_response(submission)

    if form is None:
        raise NotFound("Form", submission.form_id)
    if not can_accept_responses(form):
        raise FormNotAcceptingResponses(form.id, form.status)
    if not fields:
        raise ValidationError("form has no fields")

    fields_by_id = {field.id: field for field in fields}
    answer_ids: set[uuid.UUID] = set()
    for index, answer in enumerate(submission.answers):
        field_type = validate_answer(answer, index)
        if enforce_field_membership:
            _check_membership(answer, field_type, fields_by_id, index)
        if answer.id is not None:
            if answer.id in answer_ids:
                raise ValidationError(f"answers[{index}]: duplicate answer id {answer.id}")
            answer_ids.add(answer.id)

    if vectors:
        validate_vector_references(vectors, answer_ids)

    if enforce_required_fields:
        answered = {answer.field_id for answer in submission.answers if has_value(answer.value)}
        for field in fields:
            if field.required and field.id not in answered:
                raise ValidationError(f"missing answer for required field {field.id}")
