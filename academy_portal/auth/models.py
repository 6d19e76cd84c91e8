import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID

from academy_portal.db.session import Base


class Admin(Base):
    """Academy administrator. Created by the registration flow or the seed script."""

    __tablename__ = "admins"
    __table_args__ = (
        UniqueConstraint("academy_id", "username", name="uq_admin_academy_username"),
        UniqueConstraint("academy_id", "email", name="uq_admin_academy_email"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    # Nullable so a half-provisioned admin is reported as a configuration problem, not a crash
    academy_id = Column(UUID(as_uuid=True), ForeignKey("academies.id"), nullable=True, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False)
    phone = Column(String(50), nullable=False)
    username = Column(String(100), nullable=False)
    password_hash = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
