"""Laundry request API routes: delegates to laundry_service for lifecycle rules."""
import json
import logging
from typing import Optional
from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from sqlalchemy.orm import Session

from laundromat.database import get_db
from laundromat.errors import ValidationError
from laundromat.models.laundry_request import LaundryStatus
from laundromat.schemas.laundry import (
    CollectionCreate,
    DeliveryOut,
    LaundryRequestOut,
    StatusTransitionOut,
    StatusUpdate,
    StatusUpdateOut,
)
from laundromat.services import laundry_service
from laundromat.services.notifications import NotificationChannel, get_channel

logger = logging.getLogger(__name__)
router = APIRouter()


def _parse_photo_ids(raw: Optional[str]) -> list[int]:
    """Accept a JSON array (``[1, 2]``) or a comma list (``1,2``) of saved photo ids."""
    if raw is None or not raw.strip():
        return []
    try:
        value = json.loads(raw)
    except json.JSONDecodeError:
        value = [part.strip() for part in raw.split(",") if part.strip()]
    if not isinstance(value, list):
        value = [value]
    ids = []
    for v in value:
        # JSON true and 1.5 are not ids
        if isinstance(v, bool) or (isinstance(v, float) and not v.is_integer()):
            raise ValidationError("selected_photo_ids must be a list of integers", field="selected_photo_ids")
        try:
            ids.append(int(v))
        except (TypeError, ValueError):
            raise ValidationError("selected_photo_ids must be a list of integers", field="selected_photo_ids")
    return ids


@router.post("/", response_model=LaundryRequestOut, status_code=status.HTTP_201_CREATED)
def create_laundry_request(
    name: str = Form(...),
    surname: str = Form(...),
    contact: str = Form(...),
    commune: str = Form(...),
    clothes_count: int = Form(...),
    room: Optional[str] = Form(None),
    photos: Optional[list[UploadFile]] = File(None),
    db: Session = Depends(get_db),
):
    """Register a drop-off from the full form, with optional photo uploads."""
    return laundry_service.create_request(
        db=db,
        name=name,
        surname=surname,
        contact=contact,
        commune=commune,
        clothes_count=clothes_count,
        room=room,
        uploads=photos,
    )


@router.post("/quick", response_model=LaundryRequestOut, status_code=status.HTTP_201_CREATED)
def quick_laundry_request(
    student_id: str = Form(...),
    clothes_count: int = Form(...),
    use_saved_photos: bool = Form(False),
    selected_photo_ids: Optional[str] = Form(None),
    photos: Optional[list[UploadFile]] = File(None),
    db: Session = Depends(get_db),
):
    """Register a drop-off using a saved profile and saved or fresh photos."""
    photo_ids = _parse_photo_ids(selected_photo_ids) if use_saved_photos else []
    return laundry_service.quick_submit(
        db=db,
        student_id=student_id,
        clothes_count=clothes_count,
        saved_photo_ids=photo_ids,
        uploads=photos,
    )


@router.get("/", response_model=list[LaundryRequestOut])
def list_laundry_requests(
    status_filter: Optional[LaundryStatus] = Query(None, alias="status"),
    limit: Optional[int] = Query(None, ge=1, le=500),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
):
    """List requests, newest first, optionally filtered by status."""
    return laundry_service.list_requests(db, status=status_filter, limit=limit, offset=offset)


@router.get("/verify/{reference}", response_model=LaundryRequestOut)
def verify_reference(reference: str, db: Session = Depends(get_db)):
    """Look up a reference number that is ready for collection."""
    return laundry_service.verify_reference(db, reference)


@router.post("/collect", response_model=LaundryRequestOut)
def complete_collection(payload: CollectionCreate, db: Session = Depends(get_db)):
    """Record the hand-over of a Completed request (collector details + signature)."""
    return laundry_service.complete_collection(
        db=db,
        request_id=payload.laundry_id,
        name=payload.name,
        contact=payload.contact,
        signature=payload.signature,
        id_number=payload.id_number,
    )


@router.get("/{request_id}", response_model=LaundryRequestOut)
def get_laundry_request(request_id: int, db: Session = Depends(get_db)):
    """Fetch a single request by id."""
    return laundry_service.get_request(db, request_id)


@router.get("/{request_id}/transitions", response_model=list[StatusTransitionOut])
def list_transitions(request_id: int, db: Session = Depends(get_db)):
    """Status history of a request, oldest first."""
    return laundry_service.list_transitions(db, request_id)


@router.put("/{request_id}", response_model=StatusUpdateOut)
def update_status(
    request_id: int,
    payload: StatusUpdate,
    db: Session = Depends(get_db),
    channel: NotificationChannel = Depends(get_channel),
):
    """Staff status change; entering Completed sends the ready notification."""
    result = laundry_service.transition_status(
        db=db,
        request_id=request_id,
        target=payload.status,
        actor=payload.actor,
        channel=channel,
    )
    delivery = None
    if result.delivery:
        delivery = DeliveryOut(
            message_id=result.delivery.message_id,
            destination=result.delivery.destination,
            link=result.delivery.link,
        )
    return StatusUpdateOut(
        request=LaundryRequestOut.model_validate(result.request),
        notification_triggered=result.notification_triggered,
        delivery=delivery,
    )
