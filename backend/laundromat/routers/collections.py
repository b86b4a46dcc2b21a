"""Collection record routes: requests that have been handed over."""
import logging
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from laundromat.database import get_db
from laundromat.schemas.laundry import CollectionRecordOut
from laundromat.services import laundry_service

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/", response_model=list[CollectionRecordOut])
def list_collections(db: Session = Depends(get_db)):
    """All collected requests, most recent hand-over first."""
    return laundry_service.list_collections(db)


@router.get("/my", response_model=list[CollectionRecordOut])
def list_my_collections(
    student_id: str = Query(..., min_length=1, description="Student whose collections to list"),
    db: Session = Depends(get_db),
):
    """Collected requests submitted under one student id."""
    return laundry_service.list_collections(db, student_id=student_id)
