"""Notification routes: channel readiness, link preview and manual send."""
import logging
from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from laundromat.database import commit_or_fail, get_db
from laundromat.errors import ValidationError
from laundromat.services import laundry_service, notifications
from laundromat.services.notifications import ChannelError, MessageType, NotificationChannel, get_channel

logger = logging.getLogger(__name__)
router = APIRouter()


class SendPayload(BaseModel):
    message_type: MessageType = MessageType.collection


@router.get("/status")
def channel_status(channel: NotificationChannel = Depends(get_channel)):
    """Report whether the outbound channel can take messages right now."""
    ready = channel.is_ready()
    return {
        "channel": channel.name,
        "ready": ready,
        "status": "Ready" if ready else "Not ready",
    }


@router.get("/link/{request_id}")
def preview_link(
    request_id: int,
    message_type: MessageType = Query(MessageType.collection),
    db: Session = Depends(get_db),
):
    """Render a message and its click-to-chat link without sending anything."""
    request = laundry_service.get_request(db, request_id)
    message = notifications.render_message(request, message_type)
    try:
        link = notifications.build_link(request.contact, message)
    except ValueError:
        raise ValidationError("Request contact has no usable phone number", field="contact")
    return {
        "request_id": request.id,
        "message_type": message_type.value,
        "message": message,
        "link": link,
    }


@router.post("/{request_id}")
def send_notification(
    request_id: int,
    payload: SendPayload,
    db: Session = Depends(get_db),
    channel: NotificationChannel = Depends(get_channel),
):
    """Manually (re)send a notification for a request."""
    request = laundry_service.get_request(db, request_id)
    try:
        delivery = notifications.dispatch(channel, request, payload.message_type)
    except ChannelError as exc:
        logger.warning("Manual notification for %s failed: %s", request.reference_number, exc)
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Failed to send notification: {exc}",
        )

    if payload.message_type == MessageType.collection:
        request.notification_sent = True
        commit_or_fail(db, "record notification")
    return {
        "success": True,
        "message_id": delivery.message_id,
        "destination": delivery.destination,
        "link": delivery.link,
    }
