"""Upload service - stores supporting documents on local disk.

Files are written under settings.UPLOAD_DIR with a generated name and served
back as static files under settings.UPLOAD_URL_PREFIX.
"""

import logging
import os
import uuid
from dataclasses import dataclass
from typing import BinaryIO

from insurance_portal.core.config import settings

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024


class UploadError(Exception):
    """Base exception for upload failures."""

    pass


class UploadTooLargeError(UploadError):
    """File exceeds settings.MAX_UPLOAD_BYTES (413)."""

    def __init__(self, limit: int):
        self.limit = limit
        super().__init__(f"File size exceeds {limit / (1024 * 1024):.0f} MB limit")


@dataclass
class StoredUpload:
    name: str
    storage_key: str
    file_url: str
    size: int


def get_upload_dir() -> str:
    """Get local upload directory path, creating it if needed."""
    path = settings.UPLOAD_DIR
    os.makedirs(path, exist_ok=True)
    return path


def generate_storage_key(original_name: str) -> str:
    """
    Collision-resistant file name that keeps the original extension.

    Only the extension is taken from the client-supplied name.
    """
    _, ext = os.path.splitext(os.path.basename(original_name or ""))
    ext = ext.lower()
    if not ext[1:].isalnum():
        ext = ""
    return f"{uuid.uuid4().hex}{ext}"


def public_url(storage_key: str) -> str:
    return f"{settings.UPLOAD_URL_PREFIX.rstrip('/')}/{storage_key}"


def store_upload(original_name: str, file: BinaryIO) -> StoredUpload:
    """
    Copy an uploaded file to disk in chunks.

    Raises:
        UploadTooLargeError: more than MAX_UPLOAD_BYTES were sent
        OSError: the file could not be written
    """
    storage_key = generate_storage_key(original_name)
    path = os.path.join(get_upload_dir(), storage_key)
    limit = settings.MAX_UPLOAD_BYTES
    size = 0
    try:
        with open(path, "wb") as out:
            for chunk in iter(lambda: file.read(CHUNK_SIZE), b""):
                size += len(chunk)
                if size > limit:
                    raise UploadTooLargeError(limit)
                out.write(chunk)
    except Exception:
        if os.path.exists(path):
            os.remove(path)
        raise

    logger.info("Stored upload %s (%d bytes)", storage_key, size)
    return StoredUpload(
        name=original_name,
        storage_key=storage_key,
        file_url=public_url(storage_key),
        size=size,
    )
