"""Attendance schemas."""

from datetime import date, datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from academy_portal.core.enums import AttendanceState
from academy_portal.core.schedule import normalize_date


class AttendanceMark(BaseModel):
    student_id: UUID
    present: bool


class AttendanceSubmitRequest(BaseModel):
    """One session of a batch. `date` may carry a time; it is stored as the calendar day."""

    date: date
    teacher_id: Optional[UUID] = Field(None, description="Defaults to the calling teacher")
    attendance: List[AttendanceMark] = Field(default_factory=list)
    notes: str = Field(..., min_length=1)

    @field_validator("date", mode="before")
    @classmethod
    def _strip_time(cls, v):
        try:
            return normalize_date(v)
        except ValueError:
            # Let the date field report the malformed value
            return v

    @field_validator("notes")
    @classmethod
    def _notes_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("notes must not be blank")
        return v.strip()


class AttendanceEntryResponse(BaseModel):
    student_id: UUID
    student_name: Optional[str] = None
    present: bool


class AttendanceRecordResponse(BaseModel):
    id: UUID
    academy_id: UUID
    batch_id: UUID
    teacher_id: Optional[UUID] = None
    teacher_username: Optional[str] = None
    date: date
    notes: str
    attendance: List[AttendanceEntryResponse]
    created_at: datetime


class AttendanceDayResponse(BaseModel):
    """Lookup for one (batch, date). `record` is set only when state is recorded."""

    batch_id: UUID
    date: date
    state: AttendanceState
    record: Optional[AttendanceRecordResponse] = None


class AttendancePercentage(BaseModel):
    name: str
    student_id: UUID
    percentage: str = Field(..., description="Two decimals with a percent sign, e.g. 50.00%")
