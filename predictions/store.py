"""
Durable prediction lifecycle store.

Single source of truth for asynchronous jobs. Both writers (the poll
fallback and the webhook) go through record_prediction_state(), a
single-statement upsert keyed on prediction_id, so concurrent terminal
writes converge on one row without locking.
"""
import logging
from datetime import datetime, timedelta
from typing import Any, Optional

from sqlalchemy import and_, or_
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from predictions.models import (
    PredictionRecord,
    PredictionStatus,
    TERMINAL_STATUSES,
    FAILURE_STATUSES,
)
from synthesis.base import extract_output_url

logger = logging.getLogger(__name__)

DEFAULT_FAILURE_MESSAGE = "Image generation failed."
DEFAULT_CANCELED_MESSAGE = "Prediction was canceled."


def _insert(db: Session):
    """Dialect-specific INSERT construct supporting ON CONFLICT."""
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        return postgresql.insert(PredictionRecord)
    if dialect == "sqlite":
        return sqlite.insert(PredictionRecord)
    raise NotImplementedError(f"Upsert not supported for dialect '{dialect}'")


def create_prediction(
    db: Session,
    prediction_id: str,
    prediction_type: str,
    input_data: Any,
    user_id: str,
) -> PredictionRecord:
    """
    Record a newly submitted job with status "starting".

    If a row for prediction_id already exists because the webhook arrived
    before this insert, only the ownership fields are filled in and its
    status is left alone. A duplicate submit for an owned row is ignored.

    Args:
        db: Database session
        prediction_id: Provider-assigned prediction identifier
        prediction_type: JobKind value
        input_data: The input payload sent to the provider
        user_id: Owner of the job

    Returns:
        PredictionRecord: The stored record
    """
    now = datetime.utcnow()
    stmt = _insert(db).values(
        prediction_id=prediction_id,
        prediction_type=str(getattr(prediction_type, "value", prediction_type)),
        status=PredictionStatus.STARTING.value,
        input_data=input_data,
        user_id=user_id,
        created_at=now,
        updated_at=now,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=[PredictionRecord.prediction_id],
        set_={
            "prediction_type": stmt.excluded.prediction_type,
            "input_data": stmt.excluded.input_data,
            "user_id": stmt.excluded.user_id,
        },
        where=PredictionRecord.user_id.is_(None),
    )
    db.execute(stmt)
    db.commit()

    logger.info(f"Stored prediction {prediction_id} ({prediction_type}) for user {user_id}")
    return get_prediction(db, prediction_id)


def get_prediction(db: Session, prediction_id: str) -> Optional[PredictionRecord]:
    """Retrieve a prediction regardless of owner."""
    return db.query(PredictionRecord).filter(
        PredictionRecord.prediction_id == prediction_id
    ).first()


def get_user_prediction(db: Session, prediction_id: str, user_id: str) -> Optional[PredictionRecord]:
    """Retrieve a prediction only if it belongs to user_id."""
    return db.query(PredictionRecord).filter(
        PredictionRecord.prediction_id == prediction_id,
        PredictionRecord.user_id == user_id,
    ).first()


def record_prediction_state(
    db: Session,
    prediction_id: str,
    status: str,
    output: Any = None,
    error: Optional[str] = None,
) -> PredictionRecord:
    """
    Upsert the observed provider state for prediction_id.

    Output is kept only for "succeeded" and an error message only for
    "failed"/"canceled" (a default is used if the provider sent none).
    A "succeeded" write must carry a usable image URL; otherwise nothing
    is written. Rows that are already terminal are never modified, so the
    first terminal write wins and repeats are no-ops. The one exception is
    a "succeeded" row stored without output, which a later success repairs.

    Args:
        db: Database session
        prediction_id: Provider-assigned prediction identifier
        status: Status reported by the provider
        output: Provider output, if any
        error: Provider error message, if any

    Returns:
        PredictionRecord: The record after the write

    Raises:
        NoSynthesisOutput, InvalidSynthesisOutput: For a "succeeded" status
        without a usable output
    """
    status = str(getattr(status, "value", status))
    succeeded = status == PredictionStatus.SUCCEEDED.value
    if succeeded:
        extract_output_url(output)
    output_data = output if succeeded else None
    error_message = None
    if status in FAILURE_STATUSES:
        if error:
            error_message = str(error)
        elif status == PredictionStatus.CANCELED.value:
            error_message = DEFAULT_CANCELED_MESSAGE
        else:
            error_message = DEFAULT_FAILURE_MESSAGE

    now = datetime.utcnow()
    stmt = _insert(db).values(
        prediction_id=prediction_id,
        status=status,
        output_data=output_data,
        error_message=error_message,
        created_at=now,
        updated_at=now,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=[PredictionRecord.prediction_id],
        set_={
            "status": stmt.excluded.status,
            "output_data": stmt.excluded.output_data,
            "error_message": stmt.excluded.error_message,
            "updated_at": stmt.excluded.updated_at,
        },
        where=or_(
            PredictionRecord.status.notin_(TERMINAL_STATUSES),
            and_(
                PredictionRecord.status == PredictionStatus.SUCCEEDED.value,
                PredictionRecord.output_data.is_(None),
                stmt.excluded.status == PredictionStatus.SUCCEEDED.value,
            ),
        ),
    )
    db.execute(stmt)
    db.commit()

    logger.info(f"Recorded status '{status}' for prediction {prediction_id}")
    return get_prediction(db, prediction_id)


def cleanup_old_predictions(db: Session, days: int = 7) -> int:
    """
    Delete predictions created more than `days` days ago.

    Returns:
        Number of deleted rows
    """
    cutoff = datetime.utcnow() - timedelta(days=days)
    deleted = db.query(PredictionRecord).filter(
        PredictionRecord.created_at < cutoff
    ).delete(synchronize_session=False)
    db.commit()

    logger.info(f"Deleted {deleted} predictions older than {days} days")
    return deleted
