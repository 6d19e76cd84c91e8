"""Batches and their roster link tables. The link rows are the single source for both
Batch.teachers/students and the Teacher.assignedBatches / Student.batches back-references."""

import uuid
from datetime import datetime

from sqlalchemy import (
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    JSON,
    Numeric,
    String,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from academy_portal.db.session import Base


class Batch(Base):
    """A recurring class offering: schedule, fee and roster. start_date <= end_date."""

    __tablename__ = "batches"
    __table_args__ = (
        UniqueConstraint("academy_id", "name", name="uq_batch_academy_name"),
        CheckConstraint("start_date <= end_date", name="chk_batch_date_range"),
        CheckConstraint("fee > 0", name="chk_batch_fee_positive"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    academy_id = Column(UUID(as_uuid=True), ForeignKey("academies.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    # Weekday names, e.g. ["Monday", "Wednesday"]
    days = Column(JSON, nullable=False, default=list)
    time_slot = Column(String(100), nullable=True)
    location = Column(String(255), nullable=True)
    fee = Column(Numeric(12, 2), nullable=False)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    academy = relationship("Academy")


class BatchTeacher(Base):
    """Ordered teacher list of a batch."""

    __tablename__ = "batch_teachers"
    __table_args__ = (
        UniqueConstraint("batch_id", "teacher_id", name="uq_batch_teacher"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    batch_id = Column(UUID(as_uuid=True), ForeignKey("batches.id", ondelete="CASCADE"), nullable=False, index=True)
    teacher_id = Column(UUID(as_uuid=True), ForeignKey("teachers.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)


class BatchStudent(Base):
    """Student roster of a batch (set semantics)."""

    __tablename__ = "batch_students"
    __table_args__ = (
        UniqueConstraint("batch_id", "student_id", name="uq_batch_student"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    batch_id = Column(UUID(as_uuid=True), ForeignKey("batches.id", ondelete="CASCADE"), nullable=False, index=True)
    student_id = Column(UUID(as_uuid=True), ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
