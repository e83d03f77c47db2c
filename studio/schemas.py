from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Dict, List, Literal, Optional

Gender = Literal["male", "female", "nonbinary"]
PosePreset = Literal[
    "casual", "editorial", "commercial", "lifestyle",
    "power", "romantic", "athletic", "seated",
]


class StudioRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)


class PoseRequest(StudioRequest):
    background_url: str = Field(..., min_length=1)
    outfit_url: Optional[str] = None  # optional for pose generation
    gender: Gender = "female"
    pose_preset: PosePreset = "casual"

    @field_validator("outfit_url")
    @classmethod
    def blank_as_missing(cls, v):
        return v or None


class DualPoseRequest(StudioRequest):
    background_url: str = Field(..., min_length=1)
    outfit_a_url: Optional[str] = None
    outfit_b_url: Optional[str] = None
    gender_a: Gender = "female"
    gender_b: Gender = "male"
    pose_preset: PosePreset = "casual"

    @field_validator("outfit_a_url", "outfit_b_url")
    @classmethod
    def blank_as_missing(cls, v):
        return v or None


class SynthesisRequest(StudioRequest):
    identity_url: str = Field(..., min_length=1)
    outfit_url: str = Field(..., min_length=1)
    background_url: str = Field(..., min_length=1)
    pose_prompt: str = Field(..., min_length=1)


class DualSynthesisRequest(StudioRequest):
    identity_a_url: str = Field(..., min_length=1)
    outfit_a_url: str = Field(..., min_length=1)
    identity_b_url: str = Field(..., min_length=1)
    outfit_b_url: str = Field(..., min_length=1)
    background_url: str = Field(..., min_length=1)
    pose_prompt: str = Field(..., min_length=1)


class SaveMediaRequest(StudioRequest):
    image_url: str = Field(..., min_length=1)


class PosesResponse(BaseModel):
    poses: List[str]


class ImageResponse(BaseModel):
    image_url: str


class SubmittedJobResponse(BaseModel):
    prediction_id: str
    status: str


class SavedMediaResponse(BaseModel):
    asset_id: str
    url: str


class PredictionStatusResponse(BaseModel):
    status: str  # "starting" | "processing" | "succeeded" | "failed" | "canceled"
    image_url: Optional[str] = None
    message: Optional[str] = None


class OptionsResponse(BaseModel):
    pose_presets: Dict[str, str]
    gender_options: Dict[str, str]
    synthesis_models: Dict[str, str]
    synthesis_model: str
    async_mode: bool
    poll_interval_ms: int
    max_poll_attempts: int
