import uuid
from datetime import date, datetime

from sqlalchemy import Column, Date, DateTime, ForeignKey, String, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID

from academy_portal.db.session import Base


class Student(Base):
    """Academy-scoped student. (name, parent_name, dob) identifies a student within an academy."""

    __tablename__ = "students"
    __table_args__ = (
        UniqueConstraint("academy_id", "name", "parent_name", "dob", name="uq_student_identity"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    academy_id = Column(UUID(as_uuid=True), ForeignKey("academies.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    dob = Column(Date, nullable=True)
    parent_name = Column(String(255), nullable=False)
    parent_phone = Column(String(50), nullable=False)
    photo = Column(String(1024), nullable=True)  # URL / storage key; upload handled elsewhere
    join_date = Column(Date, nullable=False, default=date.today)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
