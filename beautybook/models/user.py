"""User model definitions."""

from sqlalchemy import Boolean, Column, DateTime, Integer, String

from beautybook.database import Base, utcnow
from beautybook.models.enums import ApprovalStatus, UserRole


class User(Base):
    """Represents a marketplace account: client, artist or admin."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    first_name = Column(String, nullable=False, default='')
    last_name = Column(String, nullable=False, default='')
    phone = Column(String, nullable=False, default='')
    hashed_password = Column(String, nullable=False, default='')
    role = Column(String, nullable=False, default=UserRole.CLIENT.value)  # client/artist/admin
    is_active = Column(Boolean, nullable=False, default=True)
    approval_status = Column(String, nullable=False, default=ApprovalStatus.PENDING.value)
    rejection_reason = Column(String, nullable=False, default='')
    created_at = Column(DateTime, nullable=False, default=utcnow)

    @property
    def full_name(self) -> str:
        return f'{self.first_name} {self.last_name}'.strip()
