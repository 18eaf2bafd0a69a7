import logging
from datetime import datetime, timezone
from threading import Lock

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import declarative_base, sessionmaker

from beautybook.core import config


logger = logging.getLogger(__name__)

_connect_args = {'check_same_thread': False} if config.DATABASE_URL.startswith('sqlite') else {}

engine = create_engine(config.DATABASE_URL, connect_args=_connect_args)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

Base = declarative_base()

ACTIVE_DAY_INDEX = 'uq_appointments_artist_active_day'

_schema_lock = Lock()
_appointment_schema_checked = False
_blocked_time_schema_checked = False


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def get_db():
    db = SessionLocal()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def ensure_appointment_schema(bind: Engine | None = None, policy: str | None = None) -> None:
    """Create the appointment lookup indexes and apply the booking conflict policy.

    Under the strict policy a partial unique index allows at most one pending or
    confirmed appointment per artist and calendar day. The legacy policy drops it.
    """
    global _appointment_schema_checked

    target = bind or engine
    policy = policy or config.BOOKING_CONFLICT_POLICY
    cacheable = bind is None

    if cacheable and _appointment_schema_checked:
        return

    with _schema_lock:
        if cacheable and _appointment_schema_checked:
            return

        inspector = inspect(target)

        if 'appointments' not in inspector.get_table_names():
            return

        with target.begin() as connection:
            connection.execute(
                text('CREATE INDEX IF NOT EXISTS idx_appointments_artist_status_date '
                     'ON appointments(artist_id, status, appointment_date)')
            )
            connection.execute(
                text('CREATE INDEX IF NOT EXISTS idx_appointments_client_status ON appointments(client_id, status)')
            )
            if policy == 'strict':
                connection.execute(
                    text(f'CREATE UNIQUE INDEX IF NOT EXISTS {ACTIVE_DAY_INDEX} '
                         'ON appointments(artist_id, appointment_date) '
                         "WHERE status IN ('pending', 'confirmed')")
                )
            else:
                connection.execute(text(f'DROP INDEX IF EXISTS {ACTIVE_DAY_INDEX}'))

        logger.info('Appointment schema checked (booking conflict policy: %s)', policy)
        if cacheable:
            _appointment_schema_checked = True


def is_active_day_violation(exc: IntegrityError) -> bool:
    """True when ``exc`` comes from the one-active-booking-per-artist-day index.

    PostgreSQL names the index in ``diag``; SQLite only lists the columns.
    """
    orig = getattr(exc, 'orig', None)
    diag = getattr(orig, 'diag', None)
    constraint_name = getattr(diag, 'constraint_name', None) or ''
    if constraint_name:
        return constraint_name == ACTIVE_DAY_INDEX

    message = str(orig if orig is not None else exc)
    return ACTIVE_DAY_INDEX in message or 'appointments.artist_id, appointments.appointment_date' in message


def ensure_blocked_time_schema(bind: Engine | None = None) -> None:
    global _blocked_time_schema_checked

    target = bind or engine
    cacheable = bind is None

    if cacheable and _blocked_time_schema_checked:
        return

    with _schema_lock:
        if cacheable and _blocked_time_schema_checked:
            return

        inspector = inspect(target)

        if 'blocked_times' not in inspector.get_table_names():
            return

        with target.begin() as connection:
            connection.execute(
                text('CREATE INDEX IF NOT EXISTS idx_blocked_times_artist_type_range '
                     'ON blocked_times(artist_id, type, start_date, end_date)')
            )

        if cacheable:
            _blocked_time_schema_checked = True
