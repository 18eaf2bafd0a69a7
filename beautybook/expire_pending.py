"""Cancel pending appointments that were never confirmed.

Usage:
    python -m beautybook.expire_pending

Appointments still ``pending`` more than ``PENDING_EXPIRY_HOURS`` after they
were created are cancelled by the system. A value of 0 disables the job.
"""
import logging
import sys
from datetime import timedelta

from sqlalchemy.orm import Session

from beautybook.core import config
from beautybook.database import SessionLocal, utcnow
from beautybook.models.appointment import Appointment
from beautybook.models.enums import AppointmentStatus
from beautybook.scheduling.lifecycle import transition_status

logger = logging.getLogger(__name__)

EXPIRY_REASON = 'Not confirmed in time'


def expire_pending_appointments(db: Session, max_age_hours: int, now=None) -> list[int]:
    cutoff = (now or utcnow()) - timedelta(hours=max_age_hours)
    stale = db.query(Appointment).filter(
        Appointment.status == AppointmentStatus.PENDING.value,
        Appointment.created_at < cutoff,
    ).all()

    for appointment in stale:
        transition_status(appointment, AppointmentStatus.CANCELLED, actor=None, reason=EXPIRY_REASON)
    db.commit()

    return [appointment.id for appointment in stale]


def main() -> None:
    logging.basicConfig(level=config.LOG_LEVEL)
    if config.PENDING_EXPIRY_HOURS <= 0:
        print("PENDING_EXPIRY_HOURS is not set; nothing to do.", file=sys.stderr)
        sys.exit(1)

    db = SessionLocal()
    try:
        expired = expire_pending_appointments(db, config.PENDING_EXPIRY_HOURS)
    finally:
        db.close()

    logger.info('Expired %d pending appointment(s)', len(expired))
    print(f"Expired {len(expired)} pending appointment(s)")


if __name__ == "__main__":
    main()
