import logging
from typing import List, Optional

from core.config import CHOREOGRAPHER_MODEL, CHOREOGRAPHER_TIMEOUT
from inference.client import ReplicateClient
from poses.parsing import parse_poses
from poses.prompts import (
    build_system_prompt,
    build_dual_system_prompt,
    build_user_prompt,
    build_dual_user_prompt,
    choreographer_input,
)

logger = logging.getLogger(__name__)


class PoseChoreographer:
    """
    Proposes pose descriptions grounded in a background (and optional
    outfit) image. Always synchronous: one blocking choreographer call
    per request.
    """

    def __init__(self, client: ReplicateClient, model: str = CHOREOGRAPHER_MODEL,
                 timeout: float = CHOREOGRAPHER_TIMEOUT):
        self.client = client
        self.model = model
        self.timeout = timeout

    async def propose_poses(
        self,
        background_url: str,
        gender: str,
        preset: str,
        outfit_url: Optional[str] = None,
    ) -> List[str]:
        """Five pose prompts for a single model."""
        has_outfit = bool(outfit_url)
        model_input = choreographer_input(
            build_system_prompt(gender, preset, has_outfit),
            build_user_prompt(has_outfit),
            background_url,
            outfit_url,
        )
        return await self._choreograph(model_input)

    async def propose_dual_poses(
        self,
        background_url: str,
        gender_a: str,
        gender_b: str,
        preset: str,
        outfit_a_url: Optional[str] = None,
        outfit_b_url: Optional[str] = None,
    ) -> List[str]:
        """Five coordinated pose prompts for two models."""
        has_outfits = bool(outfit_a_url) or bool(outfit_b_url)
        model_input = choreographer_input(
            build_dual_system_prompt(gender_a, gender_b, preset, bool(outfit_a_url), bool(outfit_b_url)),
            build_dual_user_prompt(has_outfits),
            background_url,
            outfit_a_url,
            outfit_b_url,
        )
        return await self._choreograph(model_input)

    async def propose(
        self,
        participant_count: int,
        background_url: str,
        genders: List[str],
        preset: str,
        outfit_urls: Optional[List[Optional[str]]] = None,
    ) -> List[str]:
        """Dispatch on participant count (1 or 2)."""
        if participant_count in (1, 2) and len(genders) < participant_count:
            raise ValueError(f"Expected {participant_count} genders, got {len(genders)}")
        outfit_urls = list(outfit_urls or [])
        outfit_urls += [None] * (participant_count - len(outfit_urls))
        if participant_count == 1:
            return await self.propose_poses(background_url, genders[0], preset, outfit_urls[0])
        if participant_count == 2:
            return await self.propose_dual_poses(
                background_url, genders[0], genders[1], preset, outfit_urls[0], outfit_urls[1]
            )
        raise ValueError(f"Unsupported participant count: {participant_count}")

    async def _choreograph(self, model_input: dict) -> List[str]:
        result = await self.client.run(self.model, model_input, timeout=self.timeout)
        logger.debug(f"Choreographer response: {str(result)[:2000]}")
        poses = parse_poses(result)
        logger.info(f"Choreographer returned {len(poses)} poses")
        return poses
