"""Service catalog model definitions."""

from sqlalchemy import Boolean, Column, ForeignKey, Integer, Numeric, String

from beautybook.database import Base
from beautybook.models.enums import ServiceType


class Service(Base):
    """An artist's priced catalog entry. Read-only from the scheduling side."""
    __tablename__ = "services"

    id = Column(Integer, primary_key=True)
    artist_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    service_name = Column(String(100), nullable=False)
    service_description = Column(String(200), nullable=False, default='')
    service_type = Column(String, nullable=False, default=ServiceType.OTHER.value)
    price = Column(Numeric(10, 2), nullable=False)
    currency = Column(String(3), nullable=False, default='AED')
    duration = Column(String, nullable=False, default='1h')  # free-form label, e.g. "1h 30m"
    is_active = Column(Boolean, nullable=False, default=True)
