"""Disk storage for uploaded laundry photos.

Every upload in a batch is validated (image MIME type, per-file size cap,
batch size) before the first byte is written, so a rejected file never leaves
siblings behind. Stored names are ``laundry-<ms>-<random><ext>``; files are
served back from ``/uploads/photos/<name>``.
"""
import logging
import secrets
import time
from pathlib import Path
from typing import Any, Iterable, Optional

from fastapi import UploadFile

from laundromat.config import settings
from laundromat.errors import StorageFailure, ValidationError

logger = logging.getLogger(__name__)

PHOTO_SUBDIR = "photos"
PUBLIC_PREFIX = "/uploads"


def photo_dir() -> Path:
    return Path(settings.UPLOAD_DIR) / PHOTO_SUBDIR


def unique_filename(original_name: str) -> str:
    suffix = Path(original_name or "").suffix.lower()
    return f"laundry-{int(time.time() * 1000)}-{secrets.randbelow(10 ** 9)}{suffix}"


def _present(uploads: Optional[Iterable[UploadFile]]) -> list[UploadFile]:
    # Browsers send an empty part when the file input is left blank
    return [u for u in (uploads or []) if u is not None and u.filename]


def _read_validated(upload: UploadFile) -> bytes:
    content_type = upload.content_type or ""
    if not content_type.startswith("image/"):
        raise ValidationError(
            f"Only image files are allowed ('{upload.filename}' is {content_type or 'unknown'})",
            field="photos",
        )

    limit = settings.MAX_UPLOAD_BYTES
    content = upload.file.read(limit + 1)
    if len(content) > limit:
        raise ValidationError(
            f"'{upload.filename}' exceeds the upload limit of {limit} bytes",
            field="photos",
        )
    return content


def store_uploads(uploads: Optional[Iterable[UploadFile]]) -> list[dict[str, Any]]:
    """Validate then persist a batch of uploads; returns their photo references."""
    files = _present(uploads)
    if not files:
        return []
    if len(files) > settings.MAX_PHOTOS_PER_REQUEST:
        raise ValidationError(
            f"At most {settings.MAX_PHOTOS_PER_REQUEST} photos may be uploaded at once",
            field="photos",
        )

    contents = [(upload, _read_validated(upload)) for upload in files]

    target_dir = photo_dir()
    stored: list[dict[str, Any]] = []
    try:
        target_dir.mkdir(parents=True, exist_ok=True)
        for upload, content in contents:
            filename = unique_filename(upload.filename)
            (target_dir / filename).write_bytes(content)
            stored.append({
                "filename": filename,
                "original_name": upload.filename,
                "path": f"{PUBLIC_PREFIX}/{PHOTO_SUBDIR}/{filename}",
                "size": len(content),
            })
    except OSError:
        logger.exception("Failed writing photo uploads to %s", target_dir)
        remove_stored(stored)
        raise StorageFailure("Failed to store uploaded photos")

    logger.info("Stored %d photo(s) in %s", len(stored), target_dir)
    return stored


def remove_stored(photos: Iterable[dict[str, Any]]) -> None:
    """Delete files written by ``store_uploads`` (used when the owning row fails)."""
    for photo in photos:
        path = photo_dir() / photo["filename"]
        try:
            path.unlink(missing_ok=True)
        except OSError:
            logger.warning("Could not remove orphaned upload %s", path)
