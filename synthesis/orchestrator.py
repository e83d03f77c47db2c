"""
Image synthesis orchestration.

Two entry families, each for one or two participants:

- synthesize_*: blocking; returns the final image URL
- submit_*:     non-blocking; submits with the completion webhook, records
                the job in the prediction store and returns its handle
"""
import logging
from typing import Callable, Optional

from sqlalchemy.orm import Session

from core.config import SYNTHESIS_MODEL, SYNC_TIMEOUT, webhook_url as configured_webhook_url
from core.errors import NoSynthesisJobId
from inference.client import ReplicateClient
from predictions.models import JobKind, PredictionStatus
from predictions.store import create_prediction
from synthesis.base import SubmittedJob, build_single_input, build_dual_input, extract_output_url

logger = logging.getLogger(__name__)


class ImageSynthesisOrchestrator:

    def __init__(
        self,
        client: ReplicateClient,
        model: str = SYNTHESIS_MODEL,
        webhook_url: Callable[[], Optional[str]] = configured_webhook_url,
    ):
        self.client = client
        self.model = model
        self.webhook_url = webhook_url

    # ================================
    # SYNC
    # ================================

    async def synthesize_single(
        self, identity_url: str, outfit_url: str, background_url: str, pose_prompt: str
    ) -> str:
        model_input = build_single_input(identity_url, outfit_url, background_url, pose_prompt)
        return await self._run(model_input)

    async def synthesize_dual(
        self,
        identity_a_url: str,
        outfit_a_url: str,
        identity_b_url: str,
        outfit_b_url: str,
        background_url: str,
        pose_prompt: str,
    ) -> str:
        model_input = build_dual_input(
            identity_a_url, outfit_a_url, identity_b_url, outfit_b_url, background_url, pose_prompt
        )
        return await self._run(model_input)

    async def _run(self, model_input: dict) -> str:
        result = await self.client.run(self.model, model_input, timeout=SYNC_TIMEOUT)
        image_url = extract_output_url(result.get("output"))
        logger.info(f"Synthesis finished: {image_url}")
        return image_url

    # ================================
    # ASYNC
    # ================================

    async def submit_single(
        self,
        db: Session,
        identity_url: str,
        outfit_url: str,
        background_url: str,
        pose_prompt: str,
        user_id: str,
    ) -> SubmittedJob:
        model_input = build_single_input(identity_url, outfit_url, background_url, pose_prompt)
        return await self._submit(db, model_input, JobKind.SYNTHESIS_SINGLE, user_id)

    async def submit_dual(
        self,
        db: Session,
        identity_a_url: str,
        outfit_a_url: str,
        identity_b_url: str,
        outfit_b_url: str,
        background_url: str,
        pose_prompt: str,
        user_id: str,
    ) -> SubmittedJob:
        model_input = build_dual_input(
            identity_a_url, outfit_a_url, identity_b_url, outfit_b_url, background_url, pose_prompt
        )
        return await self._submit(db, model_input, JobKind.SYNTHESIS_DUAL, user_id)

    async def _submit(self, db: Session, model_input: dict, kind: JobKind, user_id: str) -> SubmittedJob:
        result = await self.client.submit(self.model, model_input, webhook_url=self.webhook_url())

        prediction_id = result.get("id")
        if not prediction_id:
            logger.error(f"SYNTHESIS ERROR: provider returned no prediction id: {str(result)[:500]}")
            raise NoSynthesisJobId()

        create_prediction(db, prediction_id, kind.value, model_input, user_id)

        status = result.get("status") or PredictionStatus.STARTING.value
        logger.info(f"Started {kind.value} job {prediction_id} for user {user_id}")
        return SubmittedJob(prediction_id=prediction_id, status=status)
