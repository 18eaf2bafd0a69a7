"""Artist blocked-time and vacation records."""

import logging
from datetime import date, datetime, time, timedelta

from sqlalchemy.orm import Session

from beautybook.core.errors import Forbidden, InvalidInput, NotFound
from beautybook.models.blocked_time import BlockedTime
from beautybook.models.enums import BlockedTimeType
from beautybook.scheduling.time_window import parse_clock_time, parse_duration_label

logger = logging.getLogger(__name__)

ENTRY_LABELS = {
    BlockedTimeType.BLOCKED_TIME: 'Blocked time',
    BlockedTimeType.VACATION: 'Vacation',
}


def _check_range(start: datetime, end: datetime) -> None:
    if end < start:
        raise InvalidInput(
            'End date must be after start date',
            errors=[{'field': 'endDate', 'message': 'End date must be after start date'}],
        )


def resolve_blocked_range(
    start_date: date,
    end_date: date,
    start_time: str | None,
    duration: str | None,
) -> tuple[datetime, datetime]:
    """Return the stored [start, end] for a blocked slot.

    A single-day slot with a start time and a duration label ends that many
    minutes after the start time; otherwise the calendar days are used as given.
    """
    start = datetime.combine(start_date, time(0, 0))
    end = datetime.combine(end_date, time(0, 0))

    if start_time and duration and start_date == end_date:
        slot_start = start + timedelta(minutes=parse_clock_time(start_time))
        end = slot_start + timedelta(minutes=parse_duration_label(duration))

    _check_range(start, end)
    return start, end


def create_blocked_time(
    db: Session,
    artist_id: int,
    start_date: date,
    end_date: date,
    start_time: str | None = None,
    duration: str | None = None,
    reason: str | None = None,
) -> BlockedTime:
    start, end = resolve_blocked_range(start_date, end_date, start_time, duration)

    entry = BlockedTime(
        artist_id=artist_id,
        type=BlockedTimeType.BLOCKED_TIME.value,
        start_date=start,
        end_date=end,
        start_time=start_time or None,
        duration=duration or None,
        reason=reason or '',
    )
    db.add(entry)
    db.commit()
    db.refresh(entry)

    logger.info('Artist %s blocked %s to %s', artist_id, start.isoformat(), end.isoformat())
    return entry


def create_vacation(
    db: Session,
    artist_id: int,
    start_date: date,
    end_date: date,
    reason: str | None = None,
) -> BlockedTime:
    start = datetime.combine(start_date, time(0, 0))
    end = datetime.combine(end_date, time(0, 0))
    _check_range(start, end)

    entry = BlockedTime(
        artist_id=artist_id,
        type=BlockedTimeType.VACATION.value,
        start_date=start,
        end_date=end,
        reason=reason or '',
    )
    db.add(entry)
    db.commit()
    db.refresh(entry)

    logger.info('Artist %s on vacation %s to %s', artist_id, start_date, end_date)
    return entry


def list_entries(
    db: Session,
    artist_id: int,
    entry_type: BlockedTimeType,
    start_date: date | None = None,
    end_date: date | None = None,
) -> list[BlockedTime]:
    query = db.query(BlockedTime).filter(
        BlockedTime.artist_id == artist_id,
        BlockedTime.type == entry_type.value,
        BlockedTime.is_active.is_(True),
    )
    if start_date:
        query = query.filter(BlockedTime.end_date >= datetime.combine(start_date, time(0, 0)))
    if end_date:
        query = query.filter(BlockedTime.start_date < datetime.combine(end_date, time(0, 0)) + timedelta(days=1))

    return query.order_by(BlockedTime.start_date.asc(), BlockedTime.id.asc()).all()


def delete_entry(db: Session, artist_id: int, entry_type: BlockedTimeType, entry_id: int) -> None:
    label = ENTRY_LABELS[entry_type]
    entry = db.query(BlockedTime).filter(BlockedTime.id == entry_id).first()

    if entry is None or entry.type != entry_type.value:
        raise NotFound(f'{label} not found')

    if entry.artist_id != artist_id:
        raise Forbidden(f'Not authorized to delete this {label.lower()}')

    db.delete(entry)
    db.commit()
    logger.info('Artist %s deleted %s %s', artist_id, entry_type.value, entry_id)
