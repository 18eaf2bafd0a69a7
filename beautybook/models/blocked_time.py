"""Blocked time and vacation model definitions."""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String

from beautybook.database import Base, utcnow


class BlockedTime(Base):
    """An artist-declared unavailable interval, either a blocked slot or a vacation."""
    __tablename__ = "blocked_times"

    id = Column(Integer, primary_key=True)
    artist_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    type = Column(String, nullable=False, index=True)  # blocked_time/vacation
    start_date = Column(DateTime, nullable=False)
    end_date = Column(DateTime, nullable=False)
    start_time = Column(String)
    duration = Column(String)
    reason = Column(String(500), nullable=False, default='')
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
