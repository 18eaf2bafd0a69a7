"""Booking creation for both the client and the artist entry points."""

import logging
import secrets
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from beautybook.core import config
from beautybook.core.errors import Conflict, InvalidInput, InvalidServiceSelection, NotFound
from beautybook.database import is_active_day_violation
from beautybook.models.appointment import Appointment, AppointmentService
from beautybook.models.enums import (
    AppointmentStatus,
    ApprovalStatus,
    PaymentMethod,
    PaymentStatus,
    UserRole,
    Venue,
)
from beautybook.models.service import Service
from beautybook.models.user import User
from beautybook.scheduling.availability import check_availability, get_artist
from beautybook.scheduling.time_window import compute_window

logger = logging.getLogger(__name__)

MIN_DURATION_MINUTES = 15
MAX_DURATION_MINUTES = 1440


@dataclass
class BookingRequest:
    artist_id: int
    client_id: int
    service_ids: list[int]
    appointment_date: date
    appointment_time: str
    end_time: str | None = None
    duration: int | None = None
    venue: str = Venue.ARTIST_STUDIO.value
    venue_details: dict | None = None
    payment_method: str = PaymentMethod.PAY_AT_VENUE.value
    notes: str | None = None


@dataclass
class PaymentIntentInfo:
    client_secret: str
    payment_intent_id: str


@dataclass
class BookingOutcome:
    appointment: Appointment
    payment_intent: PaymentIntentInfo | None = None
    payment_pending: bool = False


def resolve_services(db: Session, artist_id: int, service_ids: list[int]) -> list[Service]:
    """Load the selected services in request order, failing if any is missing."""
    if not service_ids:
        raise InvalidServiceSelection('At least one service must be selected')

    services = db.query(Service).filter(
        Service.id.in_(service_ids),
        Service.artist_id == artist_id,
        Service.is_active.is_(True),
    ).all()

    if len(services) != len(service_ids):
        raise InvalidServiceSelection('One or more services not found or inactive')

    by_id = {service.id: service for service in services}
    return [by_id[service_id] for service_id in service_ids]


def calculate_total(services: list[Service], service_fee: Decimal | None = None) -> Decimal:
    fee = config.SERVICE_FEE if service_fee is None else service_fee
    return sum((Decimal(service.price) for service in services), Decimal('0')) + fee


def snapshot_services(services: list[Service]) -> list[AppointmentService]:
    return [
        AppointmentService(
            service_id=service.id,
            position=position,
            service_name=service.service_name,
            price=service.price,
            currency=service.currency,
            duration=service.duration,
        )
        for position, service in enumerate(services)
    ]


def venue_columns(venue: str, venue_details: dict | None) -> dict:
    if venue != Venue.CLIENT_VENUE.value or not venue_details:
        return {}
    return {
        'venue_name': venue_details.get('venue_name') or venue_details.get('venue') or '',
        'venue_street': venue_details.get('street') or '',
        'venue_city': venue_details.get('city') or '',
        'venue_state': venue_details.get('state') or '',
    }


def _validate_duration(duration: int | None) -> None:
    if duration is not None and not MIN_DURATION_MINUTES <= duration <= MAX_DURATION_MINUTES:
        raise InvalidInput(
            f'Duration must be between {MIN_DURATION_MINUTES} and {MAX_DURATION_MINUTES} minutes',
            errors=[{'field': 'duration', 'message': 'Duration out of range'}],
        )


def _ensure_day_free(db: Session, request: BookingRequest) -> None:
    availability = check_availability(db, request.artist_id, request.appointment_date, request.appointment_time)
    if not availability.available:
        logger.warning(
            'Rejected booking for artist %s on %s: %s',
            request.artist_id,
            request.appointment_date,
            availability.conflicts,
        )
        raise Conflict(
            'Artist is not available on the selected date',
            errors=[{
                'field': 'appointmentDate',
                'message': (
                    f'{availability.conflicts.appointments} appointment(s), '
                    f'{availability.conflicts.blocked_time} blocked slot(s), '
                    f'{availability.conflicts.vacations} vacation(s)'
                ),
            }],
        )


def create_booking(
    db: Session,
    request: BookingRequest,
    initiated_by: UserRole,
    processor=None,
    policy: str | None = None,
) -> BookingOutcome:
    """Validate, price and persist a booking.

    Client bookings start ``pending``; artist bookings are trusted and start
    ``confirmed``. Payment always starts ``pending``. Under the strict conflict
    policy the artist-day must be free and the storage layer rejects a second
    active booking for it, so of two racing requests exactly one succeeds.
    """
    policy = policy or config.BOOKING_CONFLICT_POLICY

    artist = get_artist(db, request.artist_id)
    if initiated_by == UserRole.CLIENT and (
        not artist.is_active or artist.approval_status != ApprovalStatus.APPROVED.value
    ):
        raise NotFound('Artist not found')

    _validate_duration(request.duration)
    window = compute_window(request.appointment_time, request.end_time, request.duration)
    services = resolve_services(db, request.artist_id, request.service_ids)

    if policy == 'strict':
        _ensure_day_free(db, request)

    primary = services[0]
    status = AppointmentStatus.CONFIRMED if initiated_by == UserRole.ARTIST else AppointmentStatus.PENDING

    appointment = Appointment(
        artist_id=request.artist_id,
        client_id=request.client_id,
        appointment_date=request.appointment_date,
        appointment_time=window.display,
        duration_minutes=window.duration_minutes,
        venue=request.venue or Venue.ARTIST_STUDIO.value,
        payment_method=request.payment_method or PaymentMethod.PAY_AT_VENUE.value,
        payment_status=PaymentStatus.PENDING.value,
        service_fee=config.SERVICE_FEE,
        total_amount=calculate_total(services),
        currency=primary.currency,
        service_type=primary.service_type,
        status=status.value,
        notes=(request.notes or '').strip(),
        services=snapshot_services(services),
        **venue_columns(request.venue, request.venue_details),
    )

    db.add(appointment)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        if not is_active_day_violation(exc):
            logger.warning('Booking for artist %s rejected by the database: %s', request.artist_id, exc.orig)
            raise Conflict('Booking conflicts with an existing record') from exc
        logger.warning(
            'Concurrent booking lost the race for artist %s on %s',
            request.artist_id,
            request.appointment_date,
        )
        raise Conflict('Artist is not available on the selected date') from exc
    db.refresh(appointment)

    logger.info(
        'Created %s appointment %s for artist %s and client %s (%s %s)',
        appointment.status,
        appointment.id,
        appointment.artist_id,
        appointment.client_id,
        appointment.total_amount,
        appointment.currency,
    )

    outcome = BookingOutcome(appointment=appointment)
    if appointment.payment_method == PaymentMethod.PAY_NOW.value and processor is not None:
        _open_payment_intent(db, outcome, processor)
    elif appointment.payment_method == PaymentMethod.PAY_NOW.value:
        outcome.payment_pending = True
    return outcome


def _open_payment_intent(db: Session, outcome: BookingOutcome, processor) -> None:
    appointment = outcome.appointment
    result = processor.create_payment_intent(
        appointment.total_amount,
        appointment.currency,
        appointment.id,
        appointment.client_id,
        appointment.artist_id,
    )
    if not result.success:
        logger.warning(
            'Appointment %s created without a payment intent: %s',
            appointment.id,
            result.error,
        )
        outcome.payment_pending = True
        return

    appointment.payment_intent_id = result.intent_id
    db.commit()
    db.refresh(appointment)
    outcome.payment_intent = PaymentIntentInfo(
        client_secret=result.client_secret,
        payment_intent_id=result.intent_id,
    )


def find_or_create_client(
    db: Session,
    client_id: int | None = None,
    first_name: str | None = None,
    last_name: str | None = None,
    email: str | None = None,
    phone: str | None = None,
) -> User:
    """Resolve the client for an artist-created booking.

    An existing ``client_id`` wins; otherwise a client with the given email is
    reused, or a new client account without a usable password is created.
    """
    if client_id is not None:
        client = db.query(User).filter(User.id == client_id).first()
        if client is None or client.role != UserRole.CLIENT.value:
            raise NotFound('Client not found')
        return client

    if not (first_name and last_name and email):
        raise InvalidInput('Either clientId or client details (firstName, lastName, email) are required')

    normalized_email = email.strip().lower()
    client = _client_by_email(db, normalized_email)
    if client is not None:
        return client

    client = User(
        email=normalized_email,
        first_name=first_name.strip(),
        last_name=last_name.strip(),
        phone=(phone or '').strip(),
        hashed_password=f'!unusable-{secrets.token_hex(16)}',
        role=UserRole.CLIENT.value,
    )
    db.add(client)
    try:
        db.flush()
    except IntegrityError as exc:
        # Another request created the same email between the lookup and the insert.
        db.rollback()
        client = _client_by_email(db, normalized_email)
        if client is None:
            raise Conflict('A user with this email already exists') from exc
        logger.info('Reusing client %s created concurrently for %s', client.id, normalized_email)
        return client

    logger.info('Created client %s (%s) for artist booking', client.id, normalized_email)
    return client


def _client_by_email(db: Session, email: str) -> User | None:
    user = db.query(User).filter(User.email == email).first()
    if user is not None and user.role != UserRole.CLIENT.value:
        raise InvalidInput('This email belongs to an account that cannot be booked as a client')
    return user
