"""Day-level availability for an artist.

A day is unavailable as soon as the artist has one pending/confirmed
appointment, one active blocked slot or one active vacation touching it. The
requested time of day is echoed back but does not narrow the check.
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta

from sqlalchemy.orm import Session

from beautybook.core.errors import NotFound
from beautybook.models.appointment import Appointment
from beautybook.models.blocked_time import BlockedTime
from beautybook.models.enums import BlockedTimeType, UserRole
from beautybook.models.user import User
from beautybook.scheduling.lifecycle import ACTIVE_STATUSES


@dataclass(frozen=True)
class AvailabilityConflicts:
    appointments: int
    blocked_time: int
    vacations: int


@dataclass(frozen=True)
class AvailabilityResult:
    date: date
    time: str | None
    available: bool
    conflicts: AvailabilityConflicts


def day_bounds(day: date) -> tuple[datetime, datetime]:
    start = datetime.combine(day, time(0, 0))
    return start, start + timedelta(days=1)


def get_artist(db: Session, artist_id: int) -> User:
    artist = db.query(User).filter(User.id == artist_id).first()
    if artist is None or artist.role != UserRole.ARTIST.value:
        raise NotFound('Artist not found')
    return artist


def count_active_appointments(db: Session, artist_id: int, day: date) -> int:
    return db.query(Appointment).filter(
        Appointment.artist_id == artist_id,
        Appointment.appointment_date == day,
        Appointment.status.in_([status.value for status in ACTIVE_STATUSES]),
    ).count()


def count_ledger_entries(db: Session, artist_id: int, day: date, entry_type: BlockedTimeType) -> int:
    day_start, day_end = day_bounds(day)
    return db.query(BlockedTime).filter(
        BlockedTime.artist_id == artist_id,
        BlockedTime.type == entry_type.value,
        BlockedTime.is_active.is_(True),
        BlockedTime.start_date < day_end,
        BlockedTime.end_date >= day_start,
    ).count()


def check_availability(db: Session, artist_id: int, day: date, time_of_day: str | None = None) -> AvailabilityResult:
    get_artist(db, artist_id)

    conflicts = AvailabilityConflicts(
        appointments=count_active_appointments(db, artist_id, day),
        blocked_time=count_ledger_entries(db, artist_id, day, BlockedTimeType.BLOCKED_TIME),
        vacations=count_ledger_entries(db, artist_id, day, BlockedTimeType.VACATION),
    )
    available = not (conflicts.appointments or conflicts.blocked_time or conflicts.vacations)

    return AvailabilityResult(date=day, time=time_of_day, available=available, conflicts=conflicts)
