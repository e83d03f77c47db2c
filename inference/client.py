"""
Replicate inference gateway.

Stateless HTTP client for the three provider operations the studio needs:

- run():            blocking prediction (Prefer: wait), returns the finished response
- submit():         fire-and-forget prediction, optionally with a completion webhook
- get_prediction(): direct status read for a previously submitted prediction

All failures are raised as core.errors.StudioError subclasses; nothing is
retried here.
"""
import logging
from typing import Any, Dict, Optional

import httpx

from core.config import REPLICATE_API_BASE, SYNC_TIMEOUT, ASYNC_TIMEOUT
from core.errors import (
    NoApiKey,
    ProviderHttpError,
    ProviderUnavailable,
    InvalidResponse,
    PredictionFailed,
    PredictionCanceled,
)

logger = logging.getLogger(__name__)


class ReplicateClient:
    """
    Thin async client for the Replicate predictions API.

    `transport` exists so tests can plug in httpx.MockTransport.
    """

    def __init__(
        self,
        api_token: str,
        base_url: str = REPLICATE_API_BASE,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_token = api_token
        self.base_url = base_url.rstrip("/")
        self.transport = transport

    def _headers(self) -> Dict[str, str]:
        if not self.api_token:
            raise NoApiKey()
        return {
            "Authorization": f"Bearer {self.api_token}",
            "Content-Type": "application/json",
        }

    async def _send(self, method: str, path: str, timeout: float, **kwargs) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        try:
            async with httpx.AsyncClient(timeout=timeout, transport=self.transport) as client:
                response = await client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"REPLICATE ERROR: {method} {path} failed: {str(e)}", exc_info=True)
            raise ProviderUnavailable() from e

        try:
            data = response.json()
        except ValueError:
            data = None

        if response.status_code >= 400:
            detail = data.get("detail") if isinstance(data, dict) else None
            logger.error(
                f"REPLICATE ERROR: {path} returned status {response.status_code}: "
                f"{detail or response.text[:500]}"
            )
            raise ProviderHttpError(str(detail) if detail else None, provider_status=response.status_code)

        if not isinstance(data, dict):
            logger.error(f"REPLICATE ERROR: invalid response body from {path}: {response.text[:500]}")
            raise InvalidResponse()

        return data

    async def run(self, model_ref: str, model_input: Dict[str, Any], timeout: float = SYNC_TIMEOUT) -> Dict[str, Any]:
        """
        Create a prediction and wait for it to finish.

        Args:
            model_ref: Model in "owner/name" form
            model_input: Model input payload
            timeout: Seconds to wait for the provider

        Returns:
            The provider's prediction response

        Raises:
            NoApiKey, ProviderUnavailable, ProviderHttpError, InvalidResponse,
            PredictionFailed, PredictionCanceled
        """
        headers = self._headers()
        headers["Prefer"] = "wait"

        logger.info(f"Running {model_ref} synchronously (timeout {timeout}s)")
        data = await self._send(
            "POST",
            f"/models/{model_ref}/predictions",
            timeout,
            headers=headers,
            json={"input": model_input},
        )

        status = data.get("status")
        if status == "failed":
            raise PredictionFailed(data.get("error") or None)
        if status == "canceled":
            raise PredictionCanceled()

        return data

    async def submit(
        self,
        model_ref: str,
        model_input: Dict[str, Any],
        webhook_url: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Create a prediction without waiting for it.

        When webhook_url is given the provider pushes to it once, on
        completion only.

        Returns:
            The provider's initial prediction response (id, status, ...)
        """
        headers = self._headers()

        body: Dict[str, Any] = {"input": model_input}
        if webhook_url:
            body["webhook"] = webhook_url
            body["webhook_events_filter"] = ["completed"]

        data = await self._send(
            "POST",
            f"/models/{model_ref}/predictions",
            ASYNC_TIMEOUT,
            headers=headers,
            json=body,
        )
        logger.info(f"Submitted {model_ref} prediction {data.get('id')} (status: {data.get('status')})")
        return data

    async def get_prediction(self, prediction_id: str) -> Dict[str, Any]:
        """Fetch the current provider view of a prediction."""
        headers = self._headers()
        return await self._send(
            "GET",
            f"/predictions/{prediction_id}",
            ASYNC_TIMEOUT,
            headers={"Authorization": headers["Authorization"]},
        )
