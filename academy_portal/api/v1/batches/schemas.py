"""Batch schemas."""

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from academy_portal.core.schedule import normalize_weekdays


class BatchCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    start_date: date
    end_date: date
    days: List[str] = Field(default_factory=list, description="Weekday names, e.g. Monday")
    time_slot: Optional[str] = Field(None, max_length=100)
    location: Optional[str] = Field(None, max_length=255)
    fee: Optional[Decimal] = Field(None, gt=0, description="Monthly fee; defaults to DEFAULT_BATCH_FEE")
    teachers: List[UUID] = Field(default_factory=list, description="Ordered teacher ids")
    students: List[UUID] = Field(default_factory=list)

    @field_validator("days")
    @classmethod
    def _weekdays(cls, v: List[str]) -> List[str]:
        return normalize_weekdays(v)


class BatchUpdate(BaseModel):
    """Partial update. Omitted fields keep their value; teachers/students replace the whole list."""

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    days: Optional[List[str]] = None
    time_slot: Optional[str] = Field(None, max_length=100)
    location: Optional[str] = Field(None, max_length=255)
    fee: Optional[Decimal] = Field(None, gt=0)
    teachers: Optional[List[UUID]] = None
    students: Optional[List[UUID]] = None

    @field_validator("days")
    @classmethod
    def _weekdays(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        return None if v is None else normalize_weekdays(v)


class BatchResponse(BaseModel):
    id: UUID
    academy_id: UUID
    name: str
    start_date: date
    end_date: date
    days: List[str]
    time_slot: Optional[str] = None
    location: Optional[str] = None
    fee: Decimal
    teachers: List[UUID]
    students: List[UUID]
    created_at: datetime
    updated_at: datetime


class RosterMember(BaseModel):
    id: UUID
    name: str


class BatchDetailResponse(BatchResponse):
    """Batch with teacher and student names resolved."""

    teacher_details: List[RosterMember] = Field(default_factory=list)
    student_details: List[RosterMember] = Field(default_factory=list)


class SessionDatesResponse(BaseModel):
    batch_id: UUID
    today: date
    dates: List[date]


class GenerateMissingFeesResponse(BaseModel):
    created: int
    message: str
