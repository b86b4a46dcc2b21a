"""Pydantic schemas for laundry requests, status updates and collection."""
from __future__ import annotations
from datetime import datetime
from typing import Optional
from pydantic import BaseModel

from laundromat.models.laundry_request import LaundryStatus


class PhotoRef(BaseModel):
    filename: str
    original_name: str
    path: str
    size: int


class LaundryRequestOut(BaseModel):
    id: int
    reference_number: str
    student_id: Optional[str] = None
    name: str
    surname: str
    contact: str
    commune: str
    room: Optional[str] = None
    clothes_count: int
    photos: list[PhotoRef] = []
    status: LaundryStatus
    date_submitted: Optional[datetime] = None
    date_completed: Optional[datetime] = None
    notification_sent: bool
    collection_name: Optional[str] = None
    collection_contact: Optional[str] = None
    collection_id_number: Optional[str] = None
    collection_signature: Optional[str] = None
    collection_date: Optional[datetime] = None

    model_config = {"from_attributes": True}


class StatusUpdate(BaseModel):
    status: str  # Pending, In Progress, Completed
    actor: str = "staff"


class DeliveryOut(BaseModel):
    message_id: str
    destination: str
    link: Optional[str] = None


class StatusUpdateOut(BaseModel):
    request: LaundryRequestOut
    notification_triggered: bool
    delivery: Optional[DeliveryOut] = None


class CollectionCreate(BaseModel):
    laundry_id: int
    name: str
    contact: str
    signature: str
    id_number: Optional[str] = None


class CollectionRecordOut(BaseModel):
    id: int
    reference_number: str
    student_id: Optional[str] = None
    name: str
    surname: str
    contact: str
    clothes_count: int
    collection_name: Optional[str] = None
    collection_contact: Optional[str] = None
    collection_signature: Optional[str] = None
    collection_date: Optional[datetime] = None
    date_submitted: Optional[datetime] = None
    date_completed: Optional[datetime] = None

    model_config = {"from_attributes": True}


class StatusTransitionOut(BaseModel):
    id: int
    request_id: int
    from_status: str
    to_status: str
    actor: str
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
