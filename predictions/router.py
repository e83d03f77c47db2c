from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from auth.models import get_db
from core.config import WEBHOOK_PATH
from core.errors import InvalidPayload, StudioError
from predictions.store import record_prediction_state
import logging

logger = logging.getLogger(__name__)

router = APIRouter(tags=["webhooks"])


@router.post(WEBHOOK_PATH)
async def replicate_webhook(request: Request, db: Session = Depends(get_db)):
    """
    Completion push from Replicate.

    Public: the unguessable prediction id is the only credential, and the
    record is updated by that id alone. Safe to receive more than once.

    Payload: {"id": str, "status": str, "output"?: any, "error"?: str}
    """
    try:
        body = await request.json()
    except ValueError:
        body = None

    if not isinstance(body, dict) or not body.get("id"):
        error = InvalidPayload()
        logger.warning(f"Rejected webhook: {error.message}")
        return JSONResponse(status_code=error.status_code, content={"error": error.message})

    prediction_id = str(body["id"]).strip()
    status = str(body.get("status") or "unknown").strip()
    error = body.get("error")

    try:
        record_prediction_state(
            db,
            prediction_id,
            status,
            output=body.get("output"),
            error=str(error) if error else None,
        )
    except StudioError as e:
        # Nothing is written; polling still resolves the job from the provider
        logger.warning(f"Rejected webhook for prediction {prediction_id}: {e.message}")
        invalid = InvalidPayload()
        return JSONResponse(status_code=invalid.status_code, content={"error": invalid.message})

    logger.info(f"Webhook processed for prediction {prediction_id} ({status})")

    return {"success": True}
