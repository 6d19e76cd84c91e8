"""Monthly fee obligation: one row per (student, batch, calendar month)."""

import uuid
from datetime import datetime

from sqlalchemy import CheckConstraint, Column, Date, DateTime, ForeignKey, Numeric, String, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID

from academy_portal.core.enums import FeeStatus
from academy_portal.db.session import Base


class FeeRecord(Base):
    __tablename__ = "fee_records"
    __table_args__ = (
        UniqueConstraint("student_id", "batch_id", "month", name="uq_fee_student_batch_month"),
        CheckConstraint("status IN ('pending','paid')", name="chk_fee_record_status"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    academy_id = Column(UUID(as_uuid=True), ForeignKey("academies.id"), nullable=False, index=True)
    student_id = Column(UUID(as_uuid=True), ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True)
    batch_id = Column(UUID(as_uuid=True), ForeignKey("batches.id", ondelete="CASCADE"), nullable=False, index=True)
    # Human-readable label, e.g. "June 2025"
    month = Column(String(32), nullable=False)
    # First day of that month; used for ordering
    period_start = Column(Date, nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    status = Column(String(20), nullable=False, default=FeeStatus.pending.value)
    paid_on = Column(Date, nullable=True)
    mode = Column(String(20), nullable=True)  # cash, UPI, card, other
    remarks = Column(String(500), nullable=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
