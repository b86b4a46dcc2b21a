"""Profile ORM model: saved submitter details, one per student id."""
from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.sql import func
from laundromat.database import Base


class Profile(Base):
    __tablename__ = "user_profiles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    student_id = Column(String(20), nullable=False, unique=True, index=True)
    name = Column(String(50), nullable=False)
    surname = Column(String(50), nullable=False)
    contact = Column(String(20), nullable=False)
    commune = Column(String(50), nullable=False)
    room = Column(String(20), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
