"""Response API — submission, retrieval, deletion, and vector attachment."""

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from formflow.api.deps import get_store_metrics
from formflow.api.v1.errors import to_http_exception
from formflow.core.database import get_db
from formflow.models.response import Response
from formflow.models.response_answer import ResponseAnswer
from formflow.schemas.responses import (
    AnswerResponse,
    ResponseDetailSchema,
    SubmissionRequest,
    SubmissionResult,
    VectorAttachRequest,
    VectorListResponse,
    VectorResponse,
)
from formflow.services import repositories, response_store
from formflow.services.exceptions import FormflowError
from formflow.services.metrics import StoreMetrics

router = APIRouter()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _answers_out(db: Session, answers: list[ResponseAnswer]) -> list[AnswerResponse]:
    with_vectors = repositories.answer_ids_with_vectors(db, [a.id for a in answers])
    items = []
    for answer in answers:
        item = AnswerResponse.model_validate(answer)
        item.has_vector = answer.id in with_vectors
        items.append(item)
    return items


def _response_fields(response: Response) -> dict:
    return {
        "id": response.id,
        "form_id": response.form_id,
        "respondent": response.respondent,
        "status": response.status,
        "submitted_at": response.submitted_at,
    }


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@router.post("/", response_model=SubmissionResult, status_code=201)
def submit_response(
    payload: SubmissionRequest,
    db: Session = Depends(get_db),
    metrics: StoreMetrics = Depends(get_store_metrics),
):
    try:
        response, vector_count = response_store.submit_response(db, payload, payload.vectors, metrics=metrics)
    except FormflowError as exc:
        raise to_http_exception(exc, not_found_status=400) from exc

    answers = repositories.list_answers_by_response_id(db, response.id)
    return SubmissionResult(
        **_response_fields(response),
        answers=_answers_out(db, answers),
        vector_count=vector_count,
    )


@router.get("/{response_id}", response_model=ResponseDetailSchema)
def get_response(response_id: uuid.UUID, db: Session = Depends(get_db)):
    try:
        response, answers = response_store.get_response(db, response_id)
    except FormflowError as exc:
        raise to_http_exception(exc) from exc

    return ResponseDetailSchema(
        **_response_fields(response),
        answers=_answers_out(db, answers),
    )


@router.delete("/{response_id}", status_code=204)
def delete_response(
    response_id: uuid.UUID,
    db: Session = Depends(get_db),
    metrics: StoreMetrics = Depends(get_store_metrics),
):
    try:
        response_store.delete_response(db, response_id, metrics=metrics)
    except FormflowError as exc:
        raise to_http_exception(exc) from exc


@router.post("/{response_id}/vectors", response_model=VectorListResponse, status_code=201)
def attach_vectors(
    response_id: uuid.UUID,
    payload: VectorAttachRequest,
    db: Session = Depends(get_db),
    metrics: StoreMetrics = Depends(get_store_metrics),
):
    try:
        vectors = response_store.attach_vectors(db, response_id, payload.vectors, metrics=metrics)
    except FormflowError as exc:
        raise to_http_exception(exc) from exc

    return VectorListResponse(items=[VectorResponse.from_vector(v) for v in vectors])
