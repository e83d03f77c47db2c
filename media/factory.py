"""
Media store factory.

Routers resolve the store through this dependency so tests can override it.
"""
from core.config import MEDIA_DIR, media_url_prefix
from media.base import MediaStore
from media.local import LocalMediaStore


def get_media_store() -> MediaStore:
    return LocalMediaStore(MEDIA_DIR, media_url_prefix())
