"""Student schemas."""

from datetime import date, datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class StudentCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    dob: Optional[date] = None
    parent_name: str = Field(..., min_length=1, max_length=255)
    parent_phone: str = Field(..., min_length=1, max_length=50)
    photo: Optional[str] = Field(None, max_length=1024)
    join_date: Optional[date] = Field(None, description="Defaults to today")
    batches: List[UUID] = Field(default_factory=list)


class StudentUpdate(BaseModel):
    """Partial update. `batches`, when given, replaces the student's whole batch set."""

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    dob: Optional[date] = None
    parent_name: Optional[str] = Field(None, min_length=1, max_length=255)
    parent_phone: Optional[str] = Field(None, min_length=1, max_length=50)
    photo: Optional[str] = Field(None, max_length=1024)
    join_date: Optional[date] = None
    batches: Optional[List[UUID]] = None


class StudentResponse(BaseModel):
    id: UUID
    academy_id: UUID
    name: str
    dob: Optional[date] = None
    parent_name: str
    parent_phone: str
    photo: Optional[str] = None
    join_date: date
    batches: List[UUID]
    created_at: datetime
