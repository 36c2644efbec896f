"""Response store — atomic submission writes, response reads and vector attachment.

A submission is fetch, validate and write inside a single transaction: the
form row is locked ``FOR SHARE`` so it cannot be closed between the status
check and the insert, and a failure at any step leaves nothing behind.
"""

import logging
import uuid
from collections.abc import Sequence
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from formflow.core.config import settings
from formflow.core.database import run_in_transaction
from formflow.models.enums import EmbeddingModel, FieldType, ResponseStatus
from formflow.models.response import Response
from formflow.models.response_answer import ResponseAnswer
from formflow.models.response_answer_vector import ResponseAnswerVector
from formflow.schemas.responses import SubmissionCreate, VectorSubmission
from formflow.services import repositories
from formflow.services.exceptions import NotFound, ValidationError
from formflow.services.metrics import StoreMetrics
from formflow.services.repositories import (  # noqa: F401
    create_answer,
    create_response,
    create_vectors_bulk,
    get_form_by_id,
    list_fields_by_form_id,
    update_form_row,
)
from formflow.services.validator import validate_submission, validate_vector_references

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Write path
# ---------------------------------------------------------------------------


def _build_vectors(vectors: Sequence[VectorSubmission]) -> list[ResponseAnswerVector]:
    return [
        ResponseAnswerVector(
            id=uuid.uuid4(),
            response_answer_id=vector.answer_id,
            embedding=list(vector.embedding),
            model_name=EmbeddingModel.parse(vector.model_name).value,
        )
        for vector in vectors
    ]


def _check_supplied_ids(db: Session, submission: SubmissionCreate) -> None:
    """Reject caller-supplied response or answer ids that are already stored."""
    if submission.id is not None and repositories.response_exists(db, submission.id):
        raise ValidationError(f"response id already exists: {submission.id}")

    supplied = [item.id for item in submission.answers if item.id is not None]
    taken = repositories.existing_answer_ids(db, supplied)
    for index, item in enumerate(submission.answers):
        if item.id is not None and item.id in taken:
            raise ValidationError(f"answers[{index}]: id already exists: {item.id}")


def write_submission(
    db: Session,
    submission: SubmissionCreate,
    vectors: Sequence[VectorSubmission] | None = None,
) -> tuple[Response, list[ResponseAnswer], list[ResponseAnswerVector]]:
    """Persist an already-validated submission. Flushes, does not commit.

    The response is written first, then its answers one by one in input
    order, then any vectors in one bulk insert.
    """
    now = datetime.now(timezone.utc)
    response = Response(
        id=submission.id or uuid.uuid4(),
        form_id=submission.form_id,
        respondent=dict(submission.respondent),
        status=ResponseStatus.SUBMITTED.value,
        submitted_at=now,
        created_at=now,
    )
    create_response(db, response)

    answers: list[ResponseAnswer] = []
    for position, item in enumerate(submission.answers):
        answer = ResponseAnswer(
            id=item.id or uuid.uuid4(),
            response_id=response.id,
            field_id=item.field_id,
            field_type=FieldType.parse(item.field_type).value,
            value=dict(item.value),
            position=position,
            created_at=now,
        )
        create_answer(db, answer)
        answers.append(answer)

    written_vectors: list[ResponseAnswerVector] = []
    if vectors:
        written_vectors = _build_vectors(vectors)
        create_vectors_bulk(db, written_vectors)

    return response, answers, written_vectors


def submit_response(
    db: Session,
    submission: SubmissionCreate,
    vectors: Sequence[VectorSubmission] | None = None,
    *,
    metrics: StoreMetrics | None = None,
    enforce_required_fields: bool | None = None,
    enforce_field_membership: bool | None = None,
) -> tuple[Response, int]:
    """Validate and store a submission as one transaction.

    Returns the persisted response and the number of vectors written.
    Raises ValidationError, NotFound, FormNotAcceptingResponses or
    StoreError; on any of them nothing is persisted.
    """
    if enforce_required_fields is None:
        enforce_required_fields = settings.ENFORCE_REQUIRED_FIELDS
    if enforce_field_membership is None:
        enforce_field_membership = settings.ENFORCE_FIELD_MEMBERSHIP

    def work(session: Session) -> tuple[Response, int]:
        form = None
        fields = []
        if submission.form_id is not None:
            form = get_form_by_id(session, submission.form_id, lock="share")
            if form is not None:
                fields = list_fields_by_form_id(session, form.id)

        validate_submission(
            submission,
            form,
            fields,
            vectors,
            enforce_required_fields=enforce_required_fields,
            enforce_field_membership=enforce_field_membership,
        )
        _check_supplied_ids(session, submission)
        response, _, written_vectors = write_submission(session, submission, vectors)
        return response, len(written_vectors)

    response, vector_count = run_in_transaction(db, work, metrics=metrics)
    db.refresh(response)
    logger.info(
        "Response %s submitted to form %s (%d answers, %d vectors)",
        response.id,
        response.form_id,
        len(submission.answers),
        vector_count,
    )
    return response, vector_count


# ---------------------------------------------------------------------------
# Reads & deletes
# ---------------------------------------------------------------------------


def get_response(db: Session, response_id: uuid.UUID) -> tuple[Response, list[ResponseAnswer]]:
    """A response with its answers in submitted order."""
    response = repositories.get_response_by_id(db, response_id)
    if response is None:
        raise NotFound("Response", response_id)
    return response, repositories.list_answers_by_response_id(db, response_id)


def list_responses(
    db: Session,
    form_id: uuid.UUID,
    page: int = 1,
    page_size: int = 20,
) -> tuple[list[Response], int]:
    if repositories.get_form_by_id(db, form_id) is None:
        raise NotFound("Form", form_id)
    return repositories.list_responses_by_form_id(db, form_id, page=page, page_size=page_size)


def delete_response(db: Session, response_id: uuid.UUID, *, metrics: StoreMetrics | None = None) -> None:
    """Delete a response together with its answers and their vectors."""

    def work(session: Session) -> None:
        response = repositories.get_response_by_id(session, response_id)
        if response is None:
            raise NotFound("Response", response_id)
        repositories.delete_response_row(session, response)

    run_in_transaction(db, work, metrics=metrics)
    logger.info("Response %s deleted", response_id)


# ---------------------------------------------------------------------------
# Vector attachment
# ---------------------------------------------------------------------------


def attach_vectors(
    db: Session,
    response_id: uuid.UUID,
    vectors: Sequence[VectorSubmission],
    *,
    metrics: StoreMetrics | None = None,
) -> list[ResponseAnswerVector]:
    """Bulk-attach embeddings to answers of an existing response.

    Every vector must reference an answer of this response that has no
    vector yet. All or none are written.
    """
    if not vectors:
        raise ValidationError("no vectors supplied")

    def work(session: Session) -> list[ResponseAnswerVector]:
        response = repositories.get_response_by_id(session, response_id)
        if response is None:
            raise NotFound("Response", response_id)
        answer_ids = {a.id for a in repositories.list_answers_by_response_id(session, response_id)}
        validate_vector_references(vectors, answer_ids)

        taken = repositories.answer_ids_with_vectors(session, [v.answer_id for v in vectors])
        if taken:
            raise ValidationError(f"answer {sorted(taken, key=str)[0]} already has a vector")

        written = _build_vectors(vectors)
        create_vectors_bulk(session, written)
        return written

    written = run_in_transaction(db, work, metrics=metrics)
    for vector in written:
        db.refresh(vector)
    logger.info("Attached %d vectors to response %s", len(written), response_id)
    return written


def get_vector_for_answer(db: Session, answer_id: uuid.UUID) -> ResponseAnswerVector:
    vector = repositories.get_vector_by_answer_id(db, answer_id)
    if vector is None:
        raise NotFound("Vector for answer", answer_id)
    return vector


def delete_vector(db: Session, vector_id: uuid.UUID, *, metrics: StoreMetrics | None = None) -> None:
    def work(session: Session) -> None:
        vector = repositories.get_vector_by_id(session, vector_id)
        if vector is None:
            raise NotFound("Vector", vector_id)
        repositories.delete_vector_row(session, vector)

    run_in_transaction(db, work, metrics=metrics)
    logger.info("Vector %s deleted", vector_id)
