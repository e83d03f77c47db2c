from dataclasses import dataclass
from typing import Any

from core.errors import NoSynthesisOutput, InvalidSynthesisOutput

# Sent with every synthesis request; not user-adjustable
GENERATION_PARAMS = {
    "size": "4K",
    "width": 2048,
    "height": 2048,
    "max_images": 1,
    "aspect_ratio": "4:3",
    "enhance_prompt": True,
    "sequential_image_generation": "disabled",
}

SINGLE_IDENTITY_INSTRUCTION = "Maintain the identity from Image 1 and the clothing details from Image 2."
DUAL_IDENTITY_INSTRUCTION = (
    "Maintain identity of Model A from Image 1 with clothing from Image 2, "
    "and identity of Model B from Image 3 with clothing from Image 4."
)


@dataclass
class SubmittedJob:
    """
    Handle returned by an asynchronous synthesis submission.
    """
    prediction_id: str
    status: str

    def to_dict(self) -> dict:
        """Convert SubmittedJob to dictionary for API responses."""
        return {
            "prediction_id": self.prediction_id,
            "status": self.status
        }


def build_single_input(identity_url: str, outfit_url: str, background_url: str, pose_prompt: str) -> dict:
    """Image order: identity, outfit, background."""
    return {
        "prompt": f"{pose_prompt} {SINGLE_IDENTITY_INSTRUCTION}",
        "image_input": [identity_url, outfit_url, background_url],
        **GENERATION_PARAMS,
    }


def build_dual_input(
    identity_a_url: str,
    outfit_a_url: str,
    identity_b_url: str,
    outfit_b_url: str,
    background_url: str,
    pose_prompt: str,
) -> dict:
    """Image order: identity A, outfit A, identity B, outfit B, background."""
    return {
        "prompt": f"{pose_prompt} {DUAL_IDENTITY_INSTRUCTION}",
        "image_input": [identity_a_url, outfit_a_url, identity_b_url, outfit_b_url, background_url],
        **GENERATION_PARAMS,
    }


def extract_output_url(output: Any) -> str:
    """
    Image URL from a synthesis output: a bare string, or the first entry
    of a non-empty list.

    Raises:
        NoSynthesisOutput: If output is missing
        InvalidSynthesisOutput: For any other shape
    """
    if output is None:
        raise NoSynthesisOutput()
    if isinstance(output, str) and output:
        return output
    if isinstance(output, list) and output and isinstance(output[0], str) and output[0]:
        return output[0]
    raise InvalidSynthesisOutput()
