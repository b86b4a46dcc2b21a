"""SavedPhoto ORM model: images kept for reuse across submissions."""
from sqlalchemy import Column, Integer, String, DateTime, JSON
from sqlalchemy.sql import func
from laundromat.database import Base


class SavedPhoto(Base):
    __tablename__ = "saved_photos"

    id = Column(Integer, primary_key=True, autoincrement=True)
    student_id = Column(String(20), nullable=False, index=True)  # not a FK: photos may predate a profile
    photo_name = Column(String(100), nullable=False)
    photo_path = Column(String(200), nullable=False)
    photo_data = Column(JSON, nullable=True)  # the stored photo reference
    created_at = Column(DateTime(timezone=True), server_default=func.now())
