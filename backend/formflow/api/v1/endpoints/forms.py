"""Form API — CRUD, lifecycle transitions, and per-form field/response listings."""

import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from formflow.api.deps import get_store_metrics
from formflow.api.v1.errors import to_http_exception
from formflow.core.database import get_db
from formflow.schemas.forms import (
    FieldResponse,
    FormCreate,
    FormDetailResponse,
    FormListResponse,
    FormResponse,
    FormUpdate,
    LocalizedFieldText,
)
from formflow.schemas.responses import ResponseListResponse
from formflow.services import field_catalog, lifecycle, repositories, response_store
from formflow.services.exceptions import FormflowError
from formflow.services.metrics import StoreMetrics

router = APIRouter()


# ---------------------------------------------------------------------------
# Form CRUD
# ---------------------------------------------------------------------------


@router.post("/", response_model=FormResponse, status_code=201)
def create_form(
    payload: FormCreate,
    db: Session = Depends(get_db),
    metrics: StoreMetrics = Depends(get_store_metrics),
):
    try:
        return lifecycle.create_form(db, payload.title, payload.description, metrics=metrics)
    except FormflowError as exc:
        raise to_http_exception(exc) from exc


@router.get("/", response_model=FormListResponse)
def list_forms(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    status: str | None = Query(None),
    db: Session = Depends(get_db),
):
    try:
        forms, total = lifecycle.list_forms(db, status=status, page=page, page_size=page_size)
    except FormflowError as exc:
        raise to_http_exception(exc) from exc

    return FormListResponse(
        items=forms,
        total=total,
        page=page,
        page_size=page_size,
    )


@router.get("/{form_id}", response_model=FormDetailResponse)
def get_form(form_id: uuid.UUID, db: Session = Depends(get_db)):
    try:
        form = lifecycle.get_form(db, form_id)
    except FormflowError as exc:
        raise to_http_exception(exc) from exc

    return FormDetailResponse(
        id=form.id,
        title=form.title,
        description=form.description,
        status=form.status,
        version=form.version,
        created_at=form.created_at,
        updated_at=form.updated_at,
        field_count=repositories.count_fields(db, form.id),
        response_count=repositories.count_responses(db, form.id),
    )


@router.put("/{form_id}", response_model=FormResponse)
def update_form(
    form_id: uuid.UUID,
    payload: FormUpdate,
    db: Session = Depends(get_db),
    metrics: StoreMetrics = Depends(get_store_metrics),
):
    try:
        return lifecycle.update_form(db, form_id, payload.title, payload.description, metrics=metrics)
    except FormflowError as exc:
        raise to_http_exception(exc) from exc


@router.delete("/{form_id}", status_code=204)
def delete_form(
    form_id: uuid.UUID,
    cascade: bool = Query(False),
    db: Session = Depends(get_db),
    metrics: StoreMetrics = Depends(get_store_metrics),
):
    try:
        lifecycle.delete_form(db, form_id, cascade=cascade, metrics=metrics)
    except FormflowError as exc:
        raise to_http_exception(exc) from exc


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------


@router.post("/{form_id}/publish", response_model=FormResponse)
def publish_form(
    form_id: uuid.UUID,
    db: Session = Depends(get_db),
    metrics: StoreMetrics = Depends(get_store_metrics),
):
    try:
        return lifecycle.publish_form(db, form_id, metrics=metrics)
    except FormflowError as exc:
        raise to_http_exception(exc) from exc


@router.post("/{form_id}/close", response_model=FormResponse)
def close_form(
    form_id: uuid.UUID,
    db: Session = Depends(get_db),
    metrics: StoreMetrics = Depends(get_store_metrics),
):
    try:
        return lifecycle.close_form(db, form_id, metrics=metrics)
    except FormflowError as exc:
        raise to_http_exception(exc) from exc


# ---------------------------------------------------------------------------
# Fields & responses of a form
# ---------------------------------------------------------------------------


@router.get("/{form_id}/fields", response_model=list[FieldResponse])
def list_form_fields(
    form_id: uuid.UUID,
    lang: str | None = Query(None, min_length=2, max_length=16),
    db: Session = Depends(get_db),
):
    try:
        fields = field_catalog.list_fields(db, form_id)
    except FormflowError as exc:
        raise to_http_exception(exc) from exc

    items = []
    for field in fields:
        item = FieldResponse.model_validate(field)
        if lang:
            item.localized = LocalizedFieldText(**field_catalog.localize_field(field, lang))
        items.append(item)
    return items


@router.get("/{form_id}/responses", response_model=ResponseListResponse)
def list_form_responses(
    form_id: uuid.UUID,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
):
    try:
        responses, total = response_store.list_responses(db, form_id, page=page, page_size=page_size)
    except FormflowError as exc:
        raise to_http_exception(exc) from exc

    return ResponseListResponse(
        items=responses,
        total=total,
        page=page,
        page_size=page_size,
    )
