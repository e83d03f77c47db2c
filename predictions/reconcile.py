"""
Status reconciliation for asynchronous predictions.

A poll first consults the local record (the webhook may already have
resolved it) and only falls back to a direct provider read when the
record is missing or still in flight. Terminal states observed on the
fallback path are written back through the same upsert the webhook uses.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.orm import Session

from core.errors import PredictionNotFound, StudioError
from inference.client import ReplicateClient
from predictions.models import PredictionRecord, PredictionStatus, FAILURE_STATUSES
from predictions.store import (
    get_prediction,
    get_user_prediction,
    record_prediction_state,
    DEFAULT_FAILURE_MESSAGE,
)
from synthesis.base import extract_output_url

logger = logging.getLogger(__name__)


@dataclass
class PredictionView:
    """Caller-facing status of a prediction."""
    status: str
    image_url: Optional[str] = None
    message: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "status": self.status,
            "image_url": self.image_url,
            "message": self.message
        }


def _terminal_view(record: PredictionRecord) -> Optional[PredictionView]:
    """
    View for a terminal record, None while it is still in flight.

    A success stored without a usable output also yields None so the
    caller re-reads the provider.
    """
    if record.status == PredictionStatus.SUCCEEDED.value:
        try:
            image_url = extract_output_url(record.output_data)
        except StudioError as e:
            logger.warning(f"Prediction {record.prediction_id} stored as succeeded without output: {e.message}")
            return None
        return PredictionView(status=record.status, image_url=image_url)
    if record.status in FAILURE_STATUSES:
        return PredictionView(
            status=record.status,
            message=record.error_message or DEFAULT_FAILURE_MESSAGE,
        )
    return None


async def reconcile_prediction(
    db: Session,
    client: ReplicateClient,
    prediction_id: str,
    user_id: str,
) -> PredictionView:
    """
    Current status of prediction_id as seen by user_id.

    Args:
        db: Database session
        client: Inference client used for the fallback status read
        prediction_id: Provider-assigned prediction identifier
        user_id: Requesting user; local records are only read if owned

    Returns:
        PredictionView: succeeded + image_url, failed/canceled + message,
        or the raw in-flight status

    Raises:
        PredictionNotFound: If the prediction belongs to another user
        StudioError: Provider errors from the fallback read propagate
    """
    local = get_user_prediction(db, prediction_id, user_id)
    if local is not None:
        view = _terminal_view(local)
        if view is not None:
            logger.info(f"Prediction {prediction_id} resolved locally ({view.status})")
            return view
    else:
        # Rows without an owner come from a webhook that beat the submit insert
        existing = get_prediction(db, prediction_id)
        if existing is not None and existing.user_id is not None:
            logger.warning(f"User {user_id} polled prediction {prediction_id} owned by another user")
            raise PredictionNotFound()

    result = await client.get_prediction(prediction_id)
    status = result.get("status") or "unknown"

    if status == PredictionStatus.SUCCEEDED.value:
        record = record_prediction_state(db, prediction_id, status, output=result.get("output"))
        return _terminal_view(record)

    if status in FAILURE_STATUSES:
        record = record_prediction_state(db, prediction_id, status, error=result.get("error"))
        view = _terminal_view(record)
        if view is None:
            view = PredictionView(status=status, message=result.get("error") or DEFAULT_FAILURE_MESSAGE)
        return view

    logger.info(f"Prediction {prediction_id} still in flight ({status})")
    return PredictionView(status=status)
