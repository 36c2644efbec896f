"""Vector API — look up and remove answer embeddings."""

import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from formflow.api.deps import get_store_metrics
from formflow.api.v1.errors import to_http_exception
from formflow.core.database import get_db
from formflow.schemas.responses import VectorResponse
from formflow.services import response_store
from formflow.services.exceptions import FormflowError
from formflow.services.metrics import StoreMetrics

router = APIRouter()


@router.get("/answers/{answer_id}", response_model=VectorResponse)
def get_vector_for_answer(
    answer_id: uuid.UUID,
    include_embedding: bool = Query(False),
    db: Session = Depends(get_db),
):
    try:
        vector = response_store.get_vector_for_answer(db, answer_id)
    except FormflowError as exc:
        raise to_http_exception(exc) from exc
    return VectorResponse.from_vector(vector, include_embedding=include_embedding)


@router.delete("/{vector_id}", status_code=204)
def delete_vector(
    vector_id: uuid.UUID,
    db: Session = Depends(get_db),
    metrics: StoreMetrics = Depends(get_store_metrics),
):
    try:
        response_store.delete_vector(db, vector_id, metrics=metrics)
    except FormflowError as exc:
        raise to_http_exception(exc) from exc
