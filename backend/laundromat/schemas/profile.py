"""Pydantic schemas for profiles and saved photos."""
from __future__ import annotations
from datetime import datetime
from typing import Any, Optional
from pydantic import BaseModel, Field


class ProfileCreate(BaseModel):
    student_id: str = Field(min_length=1, max_length=20)
    name: str = Field(min_length=1, max_length=50)
    surname: str = Field(min_length=1, max_length=50)
    contact: str = Field(min_length=1, max_length=20)
    commune: str = Field(min_length=1, max_length=50)
    room: str = Field(min_length=1, max_length=20)


class ProfileOut(BaseModel):
    id: int
    student_id: str
    name: str
    surname: str
    contact: str
    commune: str
    room: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class ProfileSaved(BaseModel):
    profile: ProfileOut
    is_new: bool


class SavedPhotoOut(BaseModel):
    id: int
    student_id: str
    name: str
    path: str
    data: Optional[dict[str, Any]] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row) -> "SavedPhotoOut":
        return cls(
            id=row.id,
            student_id=row.student_id,
            name=row.photo_name,
            path=row.photo_path,
            data=row.photo_data,
            created_at=row.created_at,
        )
