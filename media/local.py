"""
Filesystem media library.

Images are written under MEDIA_DIR and served by the app's /static mount.
"""
import logging
import time
from datetime import datetime
from pathlib import Path
from typing import Optional

import httpx

from core.errors import MediaSaveFailed
from media.base import MediaStore, SavedAsset

logger = logging.getLogger(__name__)

FILENAME_PREFIX = "ai-influencer-"
DOWNLOAD_TIMEOUT = 60.0


class LocalMediaStore(MediaStore):
    """
    Saves downloaded images as ai-influencer-<unix time>.png.

    `transport` exists so tests can plug in httpx.MockTransport.
    """

    def __init__(
        self,
        media_dir: Path,
        url_prefix: str,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = DOWNLOAD_TIMEOUT,
    ):
        self.media_dir = Path(media_dir)
        self.url_prefix = url_prefix.rstrip("/")
        self.transport = transport
        self.timeout = timeout

    async def save_remote_image(self, image_url: str, user_id: Optional[str] = None) -> SavedAsset:
        image_bytes = await self._download(image_url)

        self.media_dir.mkdir(parents=True, exist_ok=True)
        file_path = self._next_path()
        try:
            file_path.write_bytes(image_bytes)
        except OSError as e:
            logger.error(f"Failed to write {file_path}: {str(e)}", exc_info=True)
            raise MediaSaveFailed(debug={"reason": "write_failed"}) from e

        asset = SavedAsset(
            asset_id=file_path.stem,
            url=f"{self.url_prefix}/{file_path.name}",
            filename=file_path.name,
            source_url=image_url,
            created_at=datetime.utcnow(),
            user_id=user_id,
        )
        logger.info(f"Saved {image_url} as {asset.filename} for user {user_id} ({len(image_bytes)} bytes)")
        return asset

    async def _download(self, image_url: str) -> bytes:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport, follow_redirects=True) as client:
                response = await client.get(image_url)
        except httpx.HTTPError as e:
            logger.error(f"Download of {image_url} failed: {str(e)}")
            raise MediaSaveFailed(debug={"reason": "download_failed"}) from e

        if response.status_code >= 400:
            logger.error(f"Download of {image_url} returned status {response.status_code}")
            raise MediaSaveFailed(debug={"source_status": response.status_code})

        content_type = response.headers.get("Content-Type", "")
        if content_type and not content_type.startswith("image/"):
            logger.error(f"Download of {image_url} is not an image ({content_type})")
            raise MediaSaveFailed("Downloaded file is not an image.", debug={"content_type": content_type})

        if not response.content:
            raise MediaSaveFailed("Downloaded image is empty.")
        return response.content

    def _next_path(self) -> Path:
        # Same-second saves get a numeric suffix
        stem = f"{FILENAME_PREFIX}{int(time.time())}"
        file_path = self.media_dir / f"{stem}.png"
        n = 1
        while file_path.exists():
            file_path = self.media_dir / f"{stem}-{n}.png"
            n += 1
        return file_path
