"""LaundryRequest ORM model: one row per drop-off."""
import enum
from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, JSON, Enum as SAEnum
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from laundromat.database import Base


class LaundryStatus(str, enum.Enum):
    pending = "Pending"
    in_progress = "In Progress"
    completed = "Completed"
    collected = "Collected"


# Targets staff may set directly; Collected is only reachable through collection.
STAFF_TARGETS = (LaundryStatus.pending, LaundryStatus.in_progress, LaundryStatus.completed)


class LaundryRequest(Base):
    __tablename__ = "laundry_requests"

    id = Column(Integer, primary_key=True, autoincrement=True)
    reference_number = Column(String(20), nullable=False, unique=True, index=True)
    student_id = Column(String(20), nullable=True, index=True)
    name = Column(String(50), nullable=False)
    surname = Column(String(50), nullable=False)
    contact = Column(String(20), nullable=False)
    commune = Column(String(50), nullable=False)
    room = Column(String(20), nullable=True)
    clothes_count = Column(Integer, nullable=False)
    photos = Column(JSON, nullable=False, default=list)
    status = Column(SAEnum(LaundryStatus), nullable=False, default=LaundryStatus.pending)
    date_submitted = Column(DateTime(timezone=True), server_default=func.now())
    date_completed = Column(DateTime(timezone=True), nullable=True)
    notification_sent = Column(Boolean, nullable=False, default=False)

    # Populated only once the request is Collected
    collection_name = Column(String(100), nullable=True)
    collection_contact = Column(String(20), nullable=True)
    collection_id_number = Column(String(20), nullable=True)
    collection_signature = Column(Text, nullable=True)
    collection_date = Column(DateTime(timezone=True), nullable=True)

    transitions = relationship(
        "StatusTransition",
        back_populates="request",
        cascade="all, delete-orphan",
        order_by="StatusTransition.id",
    )
