"""
Client-side polling for asynchronous predictions.

The service never waits on a job itself: callers re-check the status at a
fixed interval and give up after a bounded number of attempts. Giving up
does not cancel the provider job.
"""
import asyncio
import logging
from typing import Awaitable, Callable, Dict, Optional

import httpx

from core.config import POLL_INTERVAL_MS, MAX_POLL_ATTEMPTS
from core.errors import PollTimeout
from predictions.models import is_terminal

logger = logging.getLogger(__name__)

StatusCheck = Callable[[], Awaitable[dict]]


async def poll_until_complete(
    check: StatusCheck,
    interval: float = POLL_INTERVAL_MS / 1000,
    max_attempts: int = MAX_POLL_ATTEMPTS,
    on_progress: Optional[Callable[[str, int], None]] = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> dict:
    """
    Call `check` until it reports a terminal status.

    Args:
        check: Coroutine function returning {"status", "image_url", "message"}
        interval: Seconds between checks
        max_attempts: Checks before giving up
        on_progress: Called with (status, attempt) after each in-flight check
        sleep: Awaitable sleep, replaceable in tests

    Returns:
        The first terminal status payload

    Raises:
        PollTimeout: If no terminal status was seen within max_attempts
    """
    for attempt in range(1, max_attempts + 1):
        view = await check()
        status = view.get("status", "unknown")
        if is_terminal(status):
            logger.info(f"Prediction reached '{status}' after {attempt} check(s)")
            return view

        if on_progress:
            on_progress(status, attempt)
        if attempt < max_attempts:
            await sleep(interval)

    logger.warning(f"Gave up polling after {max_attempts} attempts")
    raise PollTimeout()


def http_status_check(
    client: httpx.AsyncClient,
    prediction_id: str,
    headers: Optional[Dict[str, str]] = None,
) -> StatusCheck:
    """StatusCheck that calls GET /studio/predictions/{prediction_id}."""

    async def check() -> dict:
        response = await client.get(f"/studio/predictions/{prediction_id}", headers=headers)
        response.raise_for_status()
        return response.json()

    return check
