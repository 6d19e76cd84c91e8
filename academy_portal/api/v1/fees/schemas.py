"""Fee record schemas."""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from academy_portal.core.enums import FeeStatus


class FeeRecordCreate(BaseModel):
    """Manual entry for one (student, batch, month). Amount defaults to the batch fee."""

    student_id: UUID
    batch_id: UUID
    month: str = Field(..., min_length=1, description='Month label, e.g. "June 2025"')
    amount: Optional[Decimal] = Field(None, gt=0)
    status: FeeStatus = FeeStatus.pending
    paid_on: Optional[date] = None
    mode: Optional[str] = Field(None, max_length=20, description="cash, UPI, card, other")
    remarks: Optional[str] = Field(None, max_length=500)


class FeeRecordUpdate(BaseModel):
    amount: Optional[Decimal] = Field(None, gt=0)
    status: Optional[FeeStatus] = None
    paid_on: Optional[date] = None
    mode: Optional[str] = Field(None, max_length=20)
    remarks: Optional[str] = Field(None, max_length=500)


class FeeRecordResponse(BaseModel):
    id: UUID
    academy_id: UUID
    student_id: UUID
    student_name: Optional[str] = None
    batch_id: UUID
    batch_name: Optional[str] = None
    time_slot: Optional[str] = None
    month: str
    period_start: date
    amount: Decimal
    status: FeeStatus
    paid_on: Optional[date] = None
    mode: Optional[str] = None
    remarks: Optional[str] = None
    created_at: datetime
    updated_at: datetime
