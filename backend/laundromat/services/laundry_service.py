"""Laundry request lifecycle: creation, status transitions and collection.

Responsibilities:
- Record creation (direct form and profile-backed quick submission)
- Status transitions among Pending / In Progress / Completed, each written
  to the StatusTransition ledger with its actor
- Ready notification on entry into Completed (best effort, after commit)
- Collection: reference verification and a single conditional UPDATE that
  moves Completed → Collected at most once
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Iterable, Optional

from fastapi import UploadFile
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from laundromat.database import commit_or_fail
from laundromat.errors import Conflict, InvalidTarget, NotFound, StorageFailure, ValidationError
from laundromat.models.laundry_request import LaundryRequest, LaundryStatus, STAFF_TARGETS
from laundromat.models.profile import Profile
from laundromat.models.status_transition import StatusTransition
from laundromat.services import notifications, photo_storage, profile_service
from laundromat.services.notifications import ChannelError, Delivery, MessageType, NotificationChannel
from laundromat.services.reference_codes import generate_reference_number

logger = logging.getLogger(__name__)

INSERT_ATTEMPTS = 3
COLLECTION_FIELDS = (
    "collection_name",
    "collection_contact",
    "collection_id_number",
    "collection_signature",
    "collection_date",
)


@dataclass
class StatusUpdateResult:
    request: LaundryRequest
    notification_triggered: bool = False
    delivery: Optional[Delivery] = None


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _snapshot(request: LaundryRequest) -> dict[str, Any]:
    """Serialize the lifecycle-relevant fields to a JSON-safe dict for the ledger."""
    return {
        "id": request.id,
        "reference_number": request.reference_number,
        "status": request.status.value if request.status else None,
        "date_completed": _iso(request.date_completed),
        "notification_sent": bool(request.notification_sent),
        "collection_name": request.collection_name,
        "collection_contact": request.collection_contact,
        "collection_id_number": request.collection_id_number,
        "collection_signature": request.collection_signature,
        "collection_date": _iso(request.collection_date),
    }


def _check_length(field: str, value: str, max_length: Optional[int]) -> str:
    if max_length is not None and len(value) > max_length:
        raise ValidationError(f"{field} must be at most {max_length} characters", field=field)
    return value


def _require(field: str, value: Optional[str], max_length: Optional[int] = None) -> str:
    value = (value or "").strip()
    if not value:
        raise ValidationError(f"{field} is required", field=field)
    return _check_length(field, value, max_length)


def _optional(field: str, value: Optional[str], max_length: int) -> Optional[str]:
    value = (value or "").strip()
    return _check_length(field, value, max_length) if value else None


def _require_count(clothes_count: Optional[int]) -> int:
    if clothes_count is None or clothes_count < 1:
        raise ValidationError("clothes_count must be a positive integer", field="clothes_count")
    return clothes_count


def _insert_request(db: Session, fields: dict[str, Any]) -> LaundryRequest:
    """Insert a Pending request under a fresh reference number.

    The reference is checked before insert; a unique-constraint hit at commit
    (another request took the same code in between) regenerates and retries.
    """
    for attempt in range(1, INSERT_ATTEMPTS + 1):
        request = LaundryRequest(
            reference_number=generate_reference_number(db),
            status=LaundryStatus.pending,
            notification_sent=False,
            **fields,
        )
        db.add(request)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            logger.warning(
                "Reference %s collided on insert (attempt %d/%d)",
                request.reference_number, attempt, INSERT_ATTEMPTS,
            )
            continue
        except SQLAlchemyError:
            db.rollback()
            logger.exception("Database error creating laundry request")
            raise StorageFailure("Failed to create request")
        db.refresh(request)
        return request

    raise StorageFailure("Failed to create request")


def get_request(db: Session, request_id: int) -> LaundryRequest:
    request = db.query(LaundryRequest).filter(LaundryRequest.id == request_id).first()
    if not request:
        raise NotFound("Request not found")
    return request


def list_requests(
    db: Session,
    status: Optional[LaundryStatus] = None,
    limit: Optional[int] = None,
    offset: int = 0,
) -> list[LaundryRequest]:
    query = db.query(LaundryRequest)
    if status:
        query = query.filter(LaundryRequest.status == status)
    query = query.order_by(LaundryRequest.date_submitted.desc(), LaundryRequest.id.desc())
    if offset:
        query = query.offset(offset)
    if limit:
        query = query.limit(limit)
    return query.all()


def create_request(
    db: Session,
    name: str,
    surname: str,
    contact: str,
    commune: str,
    clothes_count: int,
    room: Optional[str] = None,
    uploads: Optional[Iterable[UploadFile]] = None,
) -> LaundryRequest:
    """Direct drop-off: submitter details typed in, photos uploaded with the form."""
    fields = {
        "name": _require("name", name, 50),
        "surname": _require("surname", surname, 50),
        "contact": _require("contact", contact, 20),
        "commune": _require("commune", commune, 50),
        "room": _optional("room", room, 20),
        "clothes_count": _require_count(clothes_count),
    }

    photos = photo_storage.store_uploads(uploads)
    try:
        request = _insert_request(db, {**fields, "photos": photos})
    except StorageFailure:
        photo_storage.remove_stored(photos)
        raise

    logger.info(
        "Registered drop-off %s (%s) for %s %s: %d items, %d photo(s)",
        request.reference_number, request.id, request.name, request.surname,
        request.clothes_count, len(photos),
    )
    return request


def quick_submit(
    db: Session,
    student_id: str,
    clothes_count: int,
    saved_photo_ids: Optional[list[int]] = None,
    uploads: Optional[Iterable[UploadFile]] = None,
) -> LaundryRequest:
    """Profile-backed drop-off: details copied from the student's saved profile.

    Saved photos win over fresh uploads when ids are given. The profile is
    resolved before any upload is written, so an unknown student leaves no
    files and no record behind.
    """
    student_id = _require("student_id", student_id, 20)
    clothes_count = _require_count(clothes_count)

    profile = db.query(Profile).filter(Profile.student_id == student_id).first()
    if not profile:
        raise NotFound("Profile not found. Please create a profile first.")

    fresh: list[dict[str, Any]] = []
    if saved_photo_ids:
        photos = profile_service.resolve_saved_photos(db, student_id, saved_photo_ids)
    else:
        fresh = photo_storage.store_uploads(uploads)
        photos = fresh

    fields = {
        "student_id": student_id,
        "name": profile.name,
        "surname": profile.surname,
        "contact": profile.contact,
        "commune": profile.commune,
        "room": profile.room,
        "clothes_count": clothes_count,
        "photos": photos,
    }
    try:
        request = _insert_request(db, fields)
    except StorageFailure:
        photo_storage.remove_stored(fresh)
        raise

    logger.info(
        "Quick drop-off %s (%s) for student %s: %d items, %d photo(s)",
        request.reference_number, request.id, student_id, clothes_count, len(photos),
    )
    return request


def _clear_collection(request: LaundryRequest) -> None:
    for field in COLLECTION_FIELDS:
        setattr(request, field, None)


def transition_status(
    db: Session,
    request_id: int,
    target: str,
    actor: str = "staff",
    channel: Optional[NotificationChannel] = None,
) -> StatusUpdateResult:
    """Move a request to Pending, In Progress or Completed.

    Any of the three may follow any state, so staff can correct mistakes; the
    ledger records who did what. Entering Completed stamps ``date_completed``
    and, once the status write is committed, sends the ready notification.
    Leaving Completed clears ``date_completed`` and ``notification_sent`` so
    the next entry notifies again. A Collected request moved back loses its
    collection fields (the ledger's before-snapshot keeps them).
    """
    allowed = [s.value for s in STAFF_TARGETS]
    try:
        target_status = LaundryStatus(target)
    except ValueError:
        raise InvalidTarget(str(target), allowed)
    if target_status not in STAFF_TARGETS:
        raise InvalidTarget(target_status.value, allowed)
    actor = _optional("actor", actor, 100) or "staff"

    request = get_request(db, request_id)
    previous = request.status
    before = _snapshot(request)
    already_notified = previous == LaundryStatus.completed and request.notification_sent

    request.status = target_status
    if target_status == LaundryStatus.completed:
        request.date_completed = datetime.now(timezone.utc)
    else:
        request.date_completed = None
        request.notification_sent = False
    if previous == LaundryStatus.collected:
        _clear_collection(request)

    db.add(StatusTransition(
        request_id=request.id,
        from_status=previous.value,
        to_status=target_status.value,
        actor=actor,
        before_snapshot=before,
        after_snapshot=_snapshot(request),
    ))
    commit_or_fail(db, "update request")
    db.refresh(request)
    logger.info(
        "Request %s (%s): %s -> %s by %s",
        request.reference_number, request.id, previous.value, target_status.value, actor,
    )

    result = StatusUpdateResult(request=request)
    if target_status == LaundryStatus.completed and not already_notified:
        result.notification_triggered = True
        result.delivery = send_ready_notification(db, request, channel or notifications.get_channel())
    return result


def send_ready_notification(
    db: Session,
    request: LaundryRequest,
    channel: NotificationChannel,
    message_type: MessageType = MessageType.collection,
) -> Optional[Delivery]:
    """Best-effort send; failures are logged and never undo the status write."""
    try:
        delivery = notifications.dispatch(channel, request, message_type)
    except ChannelError as exc:
        logger.warning("Notification for %s not delivered: %s", request.reference_number, exc)
        return None
    except Exception:
        logger.exception("Notification channel crashed for %s", request.reference_number)
        return None

    request.notification_sent = True
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Could not flag notification as sent for request %s", request.id)
        return delivery
    db.refresh(request)
    return delivery


def verify_reference(db: Session, reference_number: str) -> LaundryRequest:
    """Return the request only if it exists *and* is ready for collection.

    Unknown codes and codes of requests that are not Completed get the same
    answer, so the endpoint says nothing about requests still in the wash.
    """
    code = (reference_number or "").strip().upper()
    request = (
        db.query(LaundryRequest)
        .filter(
            LaundryRequest.reference_number == code,
            LaundryRequest.status == LaundryStatus.completed,
        )
        .first()
    )
    if not request:
        raise NotFound("Invalid reference number or laundry not ready for collection")
    return request


def complete_collection(
    db: Session,
    request_id: int,
    name: str,
    contact: str,
    signature: str,
    id_number: Optional[str] = None,
) -> LaundryRequest:
    """Hand the laundry over: Completed → Collected in one conditional UPDATE.

    The status check lives in the WHERE clause, so two collectors racing on
    the same request cannot both succeed; the loser gets Conflict.
    """
    name = _require("name", name, 100)
    contact = _require("contact", contact, 20)
    signature = _require("signature", signature)
    id_number = _optional("id_number", id_number, 20)
    collected_at = datetime.now(timezone.utc)

    try:
        updated = (
            db.query(LaundryRequest)
            .filter(
                LaundryRequest.id == request_id,
                LaundryRequest.status == LaundryStatus.completed,
            )
            .update(
                {
                    LaundryRequest.status: LaundryStatus.collected,
                    LaundryRequest.collection_name: name,
                    LaundryRequest.collection_contact: contact,
                    LaundryRequest.collection_id_number: id_number,
                    LaundryRequest.collection_signature: signature,
                    LaundryRequest.collection_date: collected_at,
                },
                synchronize_session=False,
            )
        )
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Database error completing collection for request %s", request_id)
        raise StorageFailure("Failed to complete collection")

    if updated == 0:
        db.rollback()
        exists = db.query(LaundryRequest.id).filter(LaundryRequest.id == request_id).first()
        if exists is None:
            raise NotFound("Laundry request not found")
        raise Conflict("Laundry is not ready for collection or has already been collected")

    request = db.query(LaundryRequest).populate_existing().filter(LaundryRequest.id == request_id).one()
    after = _snapshot(request)
    before = {**after, "status": LaundryStatus.completed.value, **{f: None for f in COLLECTION_FIELDS}}
    db.add(StatusTransition(
        request_id=request_id,
        from_status=LaundryStatus.completed.value,
        to_status=LaundryStatus.collected.value,
        actor=name,
        before_snapshot=before,
        after_snapshot=after,
    ))
    commit_or_fail(db, "complete collection")
    db.refresh(request)
    logger.info("Request %s (%s) collected by %s", request.reference_number, request_id, name)
    return request


def list_collections(db: Session, student_id: Optional[str] = None) -> list[LaundryRequest]:
    """Collected requests, most recent hand-over first; optionally one student's."""
    query = db.query(LaundryRequest).filter(LaundryRequest.status == LaundryStatus.collected)
    if student_id:
        query = query.filter(LaundryRequest.student_id == student_id)
    return query.order_by(LaundryRequest.collection_date.desc(), LaundryRequest.id.desc()).all()


def list_transitions(db: Session, request_id: int) -> list[StatusTransition]:
    get_request(db, request_id)
    return (
        db.query(StatusTransition)
        .filter(StatusTransition.request_id == request_id)
        .order_by(StatusTransition.id)
        .all()
    )
