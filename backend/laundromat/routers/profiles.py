"""Profile and saved-photo API routes."""
import logging
from fastapi import APIRouter, Depends, File, UploadFile, status
from sqlalchemy.orm import Session

from laundromat.database import get_db
from laundromat.schemas.profile import ProfileCreate, ProfileOut, ProfileSaved, SavedPhotoOut
from laundromat.services import profile_service

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/", response_model=ProfileSaved)
def save_profile(payload: ProfileCreate, db: Session = Depends(get_db)):
    """Create or overwrite the profile for a student id."""
    profile, is_new = profile_service.upsert_profile(db, payload)
    return ProfileSaved(profile=ProfileOut.model_validate(profile), is_new=is_new)


@router.get("/{student_id}", response_model=ProfileOut)
def get_profile(student_id: str, db: Session = Depends(get_db)):
    """Fetch a profile by student id."""
    return profile_service.get_profile(db, student_id)


@router.post("/{student_id}/photos", response_model=list[SavedPhotoOut], status_code=status.HTTP_201_CREATED)
def save_photos(
    student_id: str,
    photos: list[UploadFile] = File(...),
    db: Session = Depends(get_db),
):
    """Upload photos and keep them for future quick submissions."""
    rows = profile_service.save_photos(db, student_id, photos)
    return [SavedPhotoOut.from_row(row) for row in rows]


@router.get("/{student_id}/photos", response_model=list[SavedPhotoOut])
def list_photos(student_id: str, db: Session = Depends(get_db)):
    """Saved photos for a student, newest first."""
    return [SavedPhotoOut.from_row(row) for row in profile_service.list_photos(db, student_id)]
