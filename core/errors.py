"""
Error taxonomy for the studio core.

Every failure the core can surface to a caller is a StudioError subclass.
None of them are retried inside the core; routers turn them into
HTTPException responses via to_detail().
"""
from typing import Any, Dict, Iterable, Optional

RAW_SNIPPET_LIMIT = 500


class StudioError(Exception):
    """Base class. `message` is user-facing, `debug` is for developers only."""

    code = "studio_error"
    status_code = 500
    default_message = "Unexpected error."

    def __init__(self, message: Optional[str] = None, debug: Optional[Dict[str, Any]] = None):
        self.message = message or self.default_message
        self.debug = debug or {}
        super().__init__(self.message)

    def to_detail(self) -> dict:
        detail = {"error": self.code, "message": self.message}
        if self.debug:
            detail["debug"] = self.debug
        return detail


# ================================
# PROVIDER / GATEWAY
# ================================

class NoApiKey(StudioError):
    code = "no_api_key"
    status_code = 500
    default_message = "Replicate API key not configured."


class ProviderHttpError(StudioError):
    code = "api_error"
    status_code = 502
    default_message = "API request failed."

    def __init__(self, message: Optional[str] = None, provider_status: Optional[int] = None):
        super().__init__(message, {"provider_status": provider_status} if provider_status else None)
        self.provider_status = provider_status


class ProviderUnavailable(StudioError):
    code = "provider_unavailable"
    status_code = 502
    default_message = "Could not reach the inference provider."


class InvalidResponse(StudioError):
    code = "json_error"
    status_code = 502
    default_message = "Invalid JSON response from API."


class PredictionFailed(StudioError):
    code = "prediction_failed"
    status_code = 502
    default_message = "Prediction failed."


class PredictionCanceled(StudioError):
    code = "prediction_canceled"
    status_code = 502
    default_message = "Prediction was canceled."


# ================================
# CHOREOGRAPHER
# ================================

class NoChoreographerOutput(StudioError):
    code = "no_output"
    status_code = 502

    def __init__(self, fields: Iterable[str]):
        self.fields = list(fields)
        available = ", ".join(self.fields) if self.fields else "none"
        super().__init__(
            f"No output from choreographer. Available fields: {available}",
            {"available_fields": self.fields},
        )


class PoseParseError(StudioError):
    code = "parse_error"
    status_code = 502
    default_message = "Could not parse pose suggestions."

    def __init__(self, raw_output: str = "", message: Optional[str] = None):
        self.raw_output = (raw_output or "")[:RAW_SNIPPET_LIMIT]
        super().__init__(message, {"raw_output": self.raw_output})


# ================================
# SYNTHESIS
# ================================

class NoSynthesisOutput(StudioError):
    code = "no_output"
    status_code = 502
    default_message = "No output from image generator."


class InvalidSynthesisOutput(StudioError):
    code = "invalid_output"
    status_code = 502
    default_message = "Invalid output format from image generator."


class NoSynthesisJobId(StudioError):
    code = "no_prediction_id"
    status_code = 502
    default_message = "Failed to start image generation."


# ================================
# MEDIA
# ================================

class MediaSaveFailed(StudioError):
    code = "media_error"
    status_code = 502
    default_message = "Failed to save image to the media library."


# ================================
# BOUNDARY
# ================================

class InvalidPayload(StudioError):
    code = "invalid_payload"
    status_code = 400
    default_message = "Invalid payload"


class AuthenticationFailed(StudioError):
    code = "authentication_failed"
    status_code = 401
    default_message = "Authentication required."


class PermissionDenied(StudioError):
    code = "permission_denied"
    status_code = 403
    default_message = "Permission denied."


class PredictionNotFound(StudioError):
    code = "not_found"
    status_code = 404
    default_message = "Prediction not found."


class PollTimeout(StudioError):
    code = "poll_timeout"
    status_code = 504
    default_message = "Generation timed out."
