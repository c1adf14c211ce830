import uuid

from sqlalchemy import Column, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.DB.base import Base

STUDENT = "student"
DISTRICT_ADMIN = "district_admin"
MASTER_ADMIN = "master_admin"
ROLES = (STUDENT, DISTRICT_ADMIN, MASTER_ADMIN)


def _uuid() -> str:
    return str(uuid.uuid4())


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=_uuid)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    role = Column(String(32), nullable=False, server_default=STUDENT, index=True)
    class_level = Column(String(32), nullable=True, index=True)  # e.g. "6th"
    school = Column(String(255), nullable=True)
    district_id = Column(String(36), ForeignKey("districts.id", ondelete="SET NULL"), nullable=True, index=True)
    last_active_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    district = relationship("District", back_populates="users")

    def __repr__(self) -> str:
        return f"<User id={self.id} email={self.email} role={self.role}>"
