import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID

from academy_portal.db.session import Base


class Teacher(Base):
    __tablename__ = "teachers"
    __table_args__ = (
        # Username is stored lower-cased and unique per academy
        UniqueConstraint("academy_id", "username", name="uq_teacher_academy_username"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    academy_id = Column(UUID(as_uuid=True), ForeignKey("academies.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    username = Column(String(100), nullable=False)
    password_hash = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
