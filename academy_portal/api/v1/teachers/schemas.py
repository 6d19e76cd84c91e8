"""Teacher schemas."""

from datetime import date, datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class TeacherCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    username: str = Field(..., min_length=1, max_length=100)
    password: str = Field(..., min_length=6)
    assigned_batches: List[UUID] = Field(default_factory=list)


class TeacherUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    username: Optional[str] = Field(None, min_length=1, max_length=100)
    password: Optional[str] = Field(None, min_length=6)
    assigned_batches: Optional[List[UUID]] = None


class TeacherResponse(BaseModel):
    id: UUID
    academy_id: UUID
    name: str
    username: str
    assigned_batches: List[UUID]
    created_at: datetime


class TeacherBatchItem(BaseModel):
    """A batch as seen from the teacher's own dashboard."""

    id: UUID
    name: str
    start_date: date
    end_date: date
    days: List[str]
    time_slot: Optional[str] = None
    location: Optional[str] = None
    student_count: int
