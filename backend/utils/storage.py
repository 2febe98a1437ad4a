# backend/utils/storage.py
import logging
import secrets
import time
from pathlib import Path
from typing import Optional

from config import settings

logger = logging.getLogger(__name__)


class StorageError(Exception):
    pass


class LocalBlobStorage:
    """Uploads kept on local disk and served as static files under a URL prefix."""

    def __init__(self, root: str, url_prefix: str = "/uploads"):
        self.root = Path(root)
        self.url_prefix = url_prefix.rstrip("/")

    def _resolve(self, path: str) -> Path:
        target = (self.root / path).resolve()
        if self.root.resolve() not in target.parents:
            raise StorageError(f"Invalid storage path: {path}")
        return target

    def upload(self, path: str, data: bytes, content_type: Optional[str] = None) -> str:
        target = self._resolve(path)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            with open(target, "wb") as buffer:
                buffer.write(data)
        except OSError as e:
            raise StorageError(f"File save error: {e}") from e
        logger.info("Stored %s (%s, %d bytes)", path, content_type or "unknown", len(data))
        return self.public_url(path)

    def public_url(self, path: str) -> str:
        return f"{self.url_prefix}/{path.lstrip('/')}"

    def exists(self, path: str) -> bool:
        return self._resolve(path).exists()


IMAGE_EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
}


def image_extension(content_type: Optional[str]) -> str:
    """File extension for an accepted image content type; the client filename is never used."""
    try:
        return IMAGE_EXTENSIONS[(content_type or "").lower()]
    except KeyError:
        raise StorageError(f"Unsupported image type: {content_type}")


def slip_path(content_type: Optional[str]) -> str:
    # Millisecond timestamp plus a random suffix keeps concurrent uploads apart
    return f"bank-slips/{int(time.time() * 1000)}-{secrets.token_hex(3)}.{image_extension(content_type)}"


def product_image_path(slug: str, label: str, content_type: Optional[str]) -> str:
    return f"products/{slug}/{label}-{int(time.time() * 1000)}.{image_extension(content_type)}"


blob_storage = LocalBlobStorage(settings.UPLOAD_DIR, settings.UPLOAD_URL_PREFIX)

def get_storage() -> LocalBlobStorage:
    return blob_storage
