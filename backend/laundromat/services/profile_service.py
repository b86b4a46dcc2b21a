"""Profile upsert and saved-photo bookkeeping."""
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable, Optional

from fastapi import UploadFile
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from laundromat.database import commit_or_fail
from laundromat.errors import NotFound, StorageFailure, ValidationError
from laundromat.models.profile import Profile
from laundromat.models.saved_photo import SavedPhoto
from laundromat.schemas.profile import ProfileCreate
from laundromat.services import photo_storage

logger = logging.getLogger(__name__)

PROFILE_FIELDS = ("name", "surname", "contact", "commune", "room")
STUDENT_ID_MAX = 20


def get_profile(db: Session, student_id: str) -> Profile:
    profile = db.query(Profile).filter(Profile.student_id == student_id).first()
    if not profile:
        raise NotFound("Profile not found")
    return profile


def _apply(profile: Profile, payload: ProfileCreate) -> None:
    for field in PROFILE_FIELDS:
        setattr(profile, field, getattr(payload, field).strip())
    profile.updated_at = datetime.now(timezone.utc)


def upsert_profile(db: Session, payload: ProfileCreate) -> tuple[Profile, bool]:
    """Create the profile for ``payload.student_id`` or overwrite it.

    Returns ``(profile, is_new)``. Two first-time saves racing on the same
    student id collapse into one row: the loser of the unique-constraint race
    re-reads and updates instead.
    """
    student_id = payload.student_id.strip()
    if not student_id:
        raise ValidationError("student_id is required", field="student_id")
    for field in PROFILE_FIELDS:
        if not getattr(payload, field).strip():
            raise ValidationError(f"{field} is required", field=field)

    profile = db.query(Profile).filter(Profile.student_id == student_id).first()
    is_new = profile is None
    if is_new:
        profile = Profile(student_id=student_id)
        db.add(profile)
    _apply(profile, payload)

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        if not is_new:
            logger.exception("Integrity error updating profile %s", student_id)
            raise StorageFailure("Failed to save profile")
        logger.info("Profile %s created concurrently, updating instead", student_id)
        profile = get_profile(db, student_id)
        _apply(profile, payload)
        is_new = False
        commit_or_fail(db, "save profile")
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Database error saving profile %s", student_id)
        raise StorageFailure("Failed to save profile")

    db.refresh(profile)
    logger.info("%s profile for student %s", "Created" if is_new else "Updated", student_id)
    return profile, is_new


def save_photos(db: Session, student_id: str, uploads: Optional[Iterable[UploadFile]]) -> list[SavedPhoto]:
    """Store uploads and remember them for reuse by ``student_id``."""
    if len(student_id) > STUDENT_ID_MAX:
        raise ValidationError(f"student_id must be at most {STUDENT_ID_MAX} characters", field="student_id")
    stored = photo_storage.store_uploads(uploads)
    if not stored:
        raise ValidationError("No photos uploaded", field="photos")

    rows = [
        SavedPhoto(
            student_id=student_id,
            photo_name=photo["original_name"][:100],
            photo_path=photo["path"],
            photo_data=photo,
        )
        for photo in stored
    ]
    db.add_all(rows)
    try:
        commit_or_fail(db, "save photos")
    except StorageFailure:
        photo_storage.remove_stored(stored)
        raise

    for row in rows:
        db.refresh(row)
    logger.info("Saved %d photo(s) for student %s", len(rows), student_id)
    return rows


def list_photos(db: Session, student_id: str) -> list[SavedPhoto]:
    return (
        db.query(SavedPhoto)
        .filter(SavedPhoto.student_id == student_id)
        .order_by(SavedPhoto.created_at.desc(), SavedPhoto.id.desc())
        .all()
    )


def resolve_saved_photos(db: Session, student_id: str, photo_ids: list[int]) -> list[dict[str, Any]]:
    """Return photo references for ``photo_ids``, all of which must belong to ``student_id``."""
    rows = (
        db.query(SavedPhoto)
        .filter(SavedPhoto.student_id == student_id, SavedPhoto.id.in_(photo_ids))
        .all()
    )
    by_id = {row.id: row for row in rows}
    missing = [pid for pid in photo_ids if pid not in by_id]
    if missing:
        raise NotFound(f"Saved photo(s) {missing} not found for student {student_id}")

    refs = []
    for pid in dict.fromkeys(photo_ids):
        row = by_id[pid]
        refs.append(row.photo_data or {
            "filename": Path(row.photo_path).name,
            "original_name": row.photo_name,
            "path": row.photo_path,
            "size": 0,
        })
    return refs
