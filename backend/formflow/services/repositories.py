"""Store collaborators — row-level reads and writes over a SQLAlchemy session.

These helpers hold no business rules. They only flush; committing is the
caller's job (see ``run_in_transaction``), so a sequence of writes can share
one transaction.

If the session carries a metrics sink in ``db.info["store_metrics"]``, every
statement is counted against it.
"""

import uuid
from typing import Literal

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from formflow.core.database import METRICS_KEY
from formflow.models.form import Form
from formflow.models.form_field import FormField
from formflow.models.response import Response
from formflow.models.response_answer import ResponseAnswer
from formflow.models.response_answer_vector import ResponseAnswerVector

LockMode = Literal["share", "update"]


def _record_query(db: Session, count: int = 1) -> None:
    metrics = db.info.get(METRICS_KEY)
    if metrics is not None:
        metrics.query(count)


# ---------------------------------------------------------------------------
# Forms
# ---------------------------------------------------------------------------


def get_form_by_id(db: Session, form_id: uuid.UUID, lock: LockMode | None = None) -> Form | None:
    """Load a form, optionally taking a row lock for the rest of the transaction.

    ``share`` blocks concurrent status updates (FOR SHARE); ``update`` blocks
    other writers and lockers (FOR UPDATE).
    """
    stmt = select(Form).where(Form.id == form_id)
    if lock == "share":
        stmt = stmt.with_for_update(read=True)
    elif lock == "update":
        stmt = stmt.with_for_update()
    if lock is not None:
        stmt = stmt.execution_options(populate_existing=True)
    _record_query(db)
    return db.execute(stmt).scalar_one_or_none()


def create_form_row(db: Session, form: Form) -> None:
    db.add(form)
    _record_query(db)
    db.flush()


def update_form_row(db: Session, form: Form) -> None:
    _record_query(db)
    db.flush()


def delete_form_row(db: Session, form: Form) -> None:
    db.delete(form)
    _record_query(db)
    db.flush()


def list_form_rows(
    db: Session,
    status: str | None = None,
    page: int = 1,
    page_size: int = 20,
) -> tuple[list[Form], int]:
    query = select(Form)
    count_query = select(func.count()).select_from(Form)
    if status is not None:
        query = query.where(Form.status == status)
        count_query = count_query.where(Form.status == status)

    _record_query(db, 2)
    total = db.execute(count_query).scalar_one()
    offset = (page - 1) * page_size
    forms = db.execute(query.order_by(Form.created_at.desc()).offset(offset).limit(page_size)).scalars().all()
    return list(forms), total


# ---------------------------------------------------------------------------
# Fields
# ---------------------------------------------------------------------------


def list_fields_by_form_id(db: Session, form_id: uuid.UUID) -> list[FormField]:
    """Fields of a form by ascending field_order, ties in insertion order.

    Returns an empty list, not an error, when the form has none.
    """
    _record_query(db)
    return list(
        db.execute(
            select(FormField)
            .where(FormField.form_id == form_id)
            .order_by(FormField.field_order.asc(), FormField.insertion_seq.asc())
        )
        .scalars()
        .all()
    )


def get_field_by_id(db: Session, field_id: uuid.UUID) -> FormField | None:
    _record_query(db)
    return db.get(FormField, field_id)


def next_field_insertion_seq(db: Session, form_id: uuid.UUID) -> int:
    _record_query(db)
    current = db.execute(
        select(func.max(FormField.insertion_seq)).where(FormField.form_id == form_id)
    ).scalar_one()
    return (current or 0) + 1


def create_field_row(db: Session, field: FormField) -> None:
    db.add(field)
    _record_query(db)
    db.flush()


def update_field_row(db: Session, field: FormField) -> None:
    _record_query(db)
    db.flush()


def delete_field_row(db: Session, field: FormField) -> None:
    db.delete(field)
    _record_query(db)
    db.flush()


def count_fields(db: Session, form_id: uuid.UUID) -> int:
    _record_query(db)
    return db.execute(
        select(func.count()).select_from(FormField).where(FormField.form_id == form_id)
    ).scalar_one()


# ---------------------------------------------------------------------------
# Responses & answers
# ---------------------------------------------------------------------------


def create_response(db: Session, response: Response) -> None:
    db.add(response)
    _record_query(db)
    db.flush()


def create_answer(db: Session, answer: ResponseAnswer) -> None:
    db.add(answer)
    _record_query(db)
    db.flush()


def response_exists(db: Session, response_id: uuid.UUID) -> bool:
    _record_query(db)
    return db.get(Response, response_id) is not None


def existing_answer_ids(db: Session, answer_ids: list[uuid.UUID]) -> set[uuid.UUID]:
    if not answer_ids:
        return set()
    _record_query(db)
    return set(
        db.execute(select(ResponseAnswer.id).where(ResponseAnswer.id.in_(answer_ids))).scalars().all()
    )


def get_response_by_id(db: Session, response_id: uuid.UUID) -> Response | None:
    _record_query(db)
    return db.get(Response, response_id)


def count_responses(db: Session, form_id: uuid.UUID) -> int:
    _record_query(db)
    return db.execute(
        select(func.count()).select_from(Response).where(Response.form_id == form_id)
    ).scalar_one()


def list_responses_by_form_id(
    db: Session,
    form_id: uuid.UUID,
    page: int = 1,
    page_size: int = 20,
) -> tuple[list[Response], int]:
    total = count_responses(db, form_id)
    offset = (page - 1) * page_size
    _record_query(db)
    responses = (
        db.execute(
            select(Response)
            .where(Response.form_id == form_id)
            .order_by(Response.submitted_at.desc())
            .offset(offset)
            .limit(page_size)
        )
        .scalars()
        .all()
    )
    return list(responses), total


def list_answers_by_response_id(db: Session, response_id: uuid.UUID) -> list[ResponseAnswer]:
    _record_query(db)
    return list(
        db.execute(
            select(ResponseAnswer)
            .where(ResponseAnswer.response_id == response_id)
            .order_by(ResponseAnswer.position.asc())
        )
        .scalars()
        .all()
    )


def delete_response_row(db: Session, response: Response) -> None:
    db.delete(response)
    _record_query(db)
    db.flush()


# ---------------------------------------------------------------------------
# Vectors
# ---------------------------------------------------------------------------


def create_vectors_bulk(db: Session, vectors: list[ResponseAnswerVector]) -> None:
    if not vectors:
        return
    db.add_all(vectors)
    _record_query(db)
    db.flush()


def get_vector_by_id(db: Session, vector_id: uuid.UUID) -> ResponseAnswerVector | None:
    _record_query(db)
    return db.get(ResponseAnswerVector, vector_id)


def get_vector_by_answer_id(db: Session, answer_id: uuid.UUID) -> ResponseAnswerVector | None:
    _record_query(db)
    return db.execute(
        select(ResponseAnswerVector).where(ResponseAnswerVector.response_answer_id == answer_id)
    ).scalar_one_or_none()


def answer_ids_with_vectors(db: Session, answer_ids: list[uuid.UUID]) -> set[uuid.UUID]:
    if not answer_ids:
        return set()
    _record_query(db)
    return set(
        db.execute(
            select(ResponseAnswerVector.response_answer_id).where(
                ResponseAnswerVector.response_answer_id.in_(answer_ids)
            )
        )
        .scalars()
        .all()
    )


def delete_vector_row(db: Session, vector: ResponseAnswerVector) -> None:
    db.delete(vector)
    _record_query(db)
    db.flush()
