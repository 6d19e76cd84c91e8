import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, Index, String, func
from sqlalchemy.dialects.postgresql import UUID

from academy_portal.db.session import Base


class Academy(Base):
    """
    Tenant root. Every batch, student, teacher, fee and attendance row carries academy_id.
    Never mutated by child operations; registration lives outside this service.
    """

    __tablename__ = "academies"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False)
    phone = Column(String(50), nullable=False)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)


# Names are unique regardless of case
Index("uq_academy_name_lower", func.lower(Academy.name), unique=True)
