"""
Inference client factory.

Centralizes client creation so routers and tests can swap the client
through FastAPI dependency overrides.
"""
import logging
from core.config import REPLICATE_API_TOKEN, REPLICATE_API_BASE
from inference.client import ReplicateClient

logger = logging.getLogger(__name__)

if not REPLICATE_API_TOKEN:
    logger.warning("REPLICATE_API_TOKEN not set - generation requests will fail")


def get_replicate_client() -> ReplicateClient:
    """
    Get the configured Replicate client.

    A missing token is reported per request (NoApiKey), not at startup.

    Returns:
        ReplicateClient: Client bound to the configured token and base URL
    """
    return ReplicateClient(api_token=REPLICATE_API_TOKEN, base_url=REPLICATE_API_BASE)
