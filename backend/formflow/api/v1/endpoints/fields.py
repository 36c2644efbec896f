"""Field API — create, read, update and delete a form's field definitions."""

import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from formflow.api.deps import get_store_metrics
from formflow.api.v1.errors import to_http_exception
from formflow.core.database import get_db
from formflow.schemas.forms import FieldCreate, FieldResponse, FieldSpec, LocalizedFieldText
from formflow.services import field_catalog
from formflow.services.exceptions import FormflowError
from formflow.services.metrics import StoreMetrics

router = APIRouter()


@router.post("/", response_model=FieldResponse, status_code=201)
def create_field(
    payload: FieldCreate,
    db: Session = Depends(get_db),
    metrics: StoreMetrics = Depends(get_store_metrics),
):
    try:
        return field_catalog.create_field(db, payload.form_id, payload, metrics=metrics)
    except FormflowError as exc:
        raise to_http_exception(exc) from exc


@router.get("/{field_id}", response_model=FieldResponse)
def get_field(
    field_id: uuid.UUID,
    lang: str | None = Query(None, min_length=2, max_length=16),
    db: Session = Depends(get_db),
):
    try:
        field = field_catalog.get_field(db, field_id)
    except FormflowError as exc:
        raise to_http_exception(exc) from exc

    item = FieldResponse.model_validate(field)
    if lang:
        item.localized = LocalizedFieldText(**field_catalog.localize_field(field, lang))
    return item


@router.put("/{field_id}", response_model=FieldResponse)
def update_field(
    field_id: uuid.UUID,
    payload: FieldSpec,
    db: Session = Depends(get_db),
    metrics: StoreMetrics = Depends(get_store_metrics),
):
    try:
        return field_catalog.update_field(db, field_id, payload, metrics=metrics)
    except FormflowError as exc:
        raise to_http_exception(exc) from exc


@router.delete("/{field_id}", status_code=204)
def delete_field(
    field_id: uuid.UUID,
    db: Session = Depends(get_db),
    metrics: StoreMetrics = Depends(get_store_metrics),
):
    try:
        field_catalog.delete_field(db, field_id, metrics=metrics)
    except FormflowError as exc:
        raise to_http_exception(exc) from exc
