from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass
class SavedAsset:
    """
    A generated image copied into the studio's own media library.
    """
    asset_id: str
    url: str
    filename: str
    source_url: str
    created_at: datetime
    user_id: Optional[str] = None

    def to_dict(self) -> dict:
        """Convert SavedAsset to dictionary for API responses."""
        return {
            "asset_id": self.asset_id,
            "url": self.url
        }


class MediaStore(ABC):
    """
    Abstract interface for media libraries.

    Provider output URLs are temporary; a store keeps a durable copy.
    """

    @abstractmethod
    async def save_remote_image(self, image_url: str, user_id: Optional[str] = None) -> SavedAsset:
        """
        Download image_url and keep it in the library.

        Args:
            image_url: Location of the generated image
            user_id: Owner of the saved copy

        Returns:
            SavedAsset: The stored copy

        Raises:
            MediaSaveFailed: If the image cannot be fetched or written
        """
        pass
