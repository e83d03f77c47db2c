from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from auth.models import User, get_db
from auth.deps import verify_request
from core.config import (
    SYNTHESIS_MODELS,
    SYNTHESIS_MODEL,
    ASYNC_MODE,
    POLL_INTERVAL_MS,
    MAX_POLL_ATTEMPTS,
)
from core.errors import StudioError
from inference.client import ReplicateClient
from inference.factory import get_replicate_client
from media.base import MediaStore
from media.factory import get_media_store
from poses.choreographer import PoseChoreographer
from poses.prompts import POSE_PRESETS, GENDER_OPTIONS
from predictions.reconcile import reconcile_prediction
from synthesis.orchestrator import ImageSynthesisOrchestrator
from studio.schemas import (
    PoseRequest,
    DualPoseRequest,
    SynthesisRequest,
    DualSynthesisRequest,
    PosesResponse,
    ImageResponse,
    SubmittedJobResponse,
    SaveMediaRequest,
    SavedMediaResponse,
    PredictionStatusResponse,
    OptionsResponse,
)
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/studio", tags=["studio"])


def get_choreographer(client: ReplicateClient = Depends(get_replicate_client)) -> PoseChoreographer:
    return PoseChoreographer(client)


def get_orchestrator(client: ReplicateClient = Depends(get_replicate_client)) -> ImageSynthesisOrchestrator:
    return ImageSynthesisOrchestrator(client)


def _http_error(error: StudioError, context: str) -> HTTPException:
    logger.error(f"{context} failed: {error.message} {error.debug or ''}")
    return HTTPException(status_code=error.status_code, detail=error.to_detail())


@router.get("/options", response_model=OptionsResponse)
async def get_options():
    """Choices and polling parameters for the UI."""
    return OptionsResponse(
        pose_presets=POSE_PRESETS,
        gender_options=GENDER_OPTIONS,
        synthesis_models=SYNTHESIS_MODELS,
        synthesis_model=SYNTHESIS_MODEL,
        async_mode=ASYNC_MODE,
        poll_interval_ms=POLL_INTERVAL_MS,
        max_poll_attempts=MAX_POLL_ATTEMPTS,
    )


@router.post("/poses", response_model=PosesResponse)
async def generate_poses(
    req: PoseRequest,
    current_user: User = Depends(verify_request),
    choreographer: PoseChoreographer = Depends(get_choreographer),
):
    """Five pose suggestions for a single model."""
    try:
        poses = await choreographer.propose_poses(
            req.background_url, req.gender, req.pose_preset, req.outfit_url
        )
    except StudioError as e:
        raise _http_error(e, "Pose generation")
    return PosesResponse(poses=poses)


@router.post("/poses/dual", response_model=PosesResponse)
async def generate_dual_poses(
    req: DualPoseRequest,
    current_user: User = Depends(verify_request),
    choreographer: PoseChoreographer = Depends(get_choreographer),
):
    """Five pose suggestions for two models."""
    try:
        poses = await choreographer.propose_dual_poses(
            req.background_url,
            req.gender_a,
            req.gender_b,
            req.pose_preset,
            req.outfit_a_url,
            req.outfit_b_url,
        )
    except StudioError as e:
        raise _http_error(e, "Dual pose generation")
    return PosesResponse(poses=poses)


@router.post("/synthesize", response_model=ImageResponse)
async def synthesize_image(
    req: SynthesisRequest,
    current_user: User = Depends(verify_request),
    orchestrator: ImageSynthesisOrchestrator = Depends(get_orchestrator),
):
    """
    Render a single-model image and wait for it.

    Blocks for up to the synchronous timeout; prefer /synthesize/async
    where request time is limited.
    """
    try:
        image_url = await orchestrator.synthesize_single(
            req.identity_url, req.outfit_url, req.background_url, req.pose_prompt
        )
    except StudioError as e:
        raise _http_error(e, "Synthesis")
    return ImageResponse(image_url=image_url)


@router.post("/synthesize/dual", response_model=ImageResponse)
async def synthesize_dual_image(
    req: DualSynthesisRequest,
    current_user: User = Depends(verify_request),
    orchestrator: ImageSynthesisOrchestrator = Depends(get_orchestrator),
):
    try:
        image_url = await orchestrator.synthesize_dual(
            req.identity_a_url,
            req.outfit_a_url,
            req.identity_b_url,
            req.outfit_b_url,
            req.background_url,
            req.pose_prompt,
        )
    except StudioError as e:
        raise _http_error(e, "Dual synthesis")
    return ImageResponse(image_url=image_url)


@router.post("/synthesize/async", response_model=SubmittedJobResponse)
async def synthesize_image_async(
    req: SynthesisRequest,
    current_user: User = Depends(verify_request),
    orchestrator: ImageSynthesisOrchestrator = Depends(get_orchestrator),
    db: Session = Depends(get_db),
):
    """
    Start a single-model render and return its prediction id.

    Poll GET /studio/predictions/{prediction_id} until it is terminal.
    """
    try:
        job = await orchestrator.submit_single(
            db,
            req.identity_url,
            req.outfit_url,
            req.background_url,
            req.pose_prompt,
            current_user.id,
        )
    except StudioError as e:
        raise _http_error(e, "Synthesis submit")
    return job.to_dict()


@router.post("/synthesize/dual/async", response_model=SubmittedJobResponse)
async def synthesize_dual_image_async(
    req: DualSynthesisRequest,
    current_user: User = Depends(verify_request),
    orchestrator: ImageSynthesisOrchestrator = Depends(get_orchestrator),
    db: Session = Depends(get_db),
):
    try:
        job = await orchestrator.submit_dual(
            db,
            req.identity_a_url,
            req.outfit_a_url,
            req.identity_b_url,
            req.outfit_b_url,
            req.background_url,
            req.pose_prompt,
            current_user.id,
        )
    except StudioError as e:
        raise _http_error(e, "Dual synthesis submit")
    return job.to_dict()


@router.get("/predictions/{prediction_id}", response_model=PredictionStatusResponse)
async def poll_prediction(
    prediction_id: str,
    current_user: User = Depends(verify_request),
    client: ReplicateClient = Depends(get_replicate_client),
    db: Session = Depends(get_db),
):
    """
    Get the status of an asynchronous prediction.

    Returns:
    {
        "status": "starting" | "processing" | "succeeded" | "failed" | "canceled",
        "image_url": string | null,
        "message": string | null
    }
    """
    try:
        view = await reconcile_prediction(db, client, prediction_id, current_user.id)
    except StudioError as e:
        raise _http_error(e, f"Polling prediction {prediction_id}")
    return view.to_dict()


@router.post("/media", response_model=SavedMediaResponse)
async def save_to_media(
    req: SaveMediaRequest,
    current_user: User = Depends(verify_request),
    store: MediaStore = Depends(get_media_store),
):
    """
    Keep a durable copy of a generated image.

    Provider output URLs expire; the returned url is served by this app.
    """
    try:
        asset = await store.save_remote_image(req.image_url, current_user.id)
    except StudioError as e:
        raise _http_error(e, "Saving to media library")
    return asset.to_dict()
