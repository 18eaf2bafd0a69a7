"""Appointment status and payment status state machines.

The two machines are independent. Cancelling a paid appointment leaves
``payment_status`` as ``paid`` until the client asks for a refund, and a refund
never touches ``status``. Reachable combinations:

    status \\ payment   pending  paid  refunded  failed
    pending            yes      -     -         yes
    confirmed          yes      yes   yes       yes
    completed          yes      yes   yes       yes
    cancelled          yes      yes   yes       yes
    rejected           yes      -     -         yes

``paid`` implies the appointment has been confirmed at least once, because a
successful charge confirms a pending booking and a rejected booking can no
longer be paid.
"""

import logging

from beautybook.core.errors import Forbidden, InvalidInput, InvalidTransition
from beautybook.models.enums import AppointmentStatus, CancelledBy, PaymentStatus, UserRole

logger = logging.getLogger(__name__)

STATUS_TRANSITIONS: dict[AppointmentStatus, frozenset[AppointmentStatus]] = {
    AppointmentStatus.PENDING: frozenset({
        AppointmentStatus.CONFIRMED,
        AppointmentStatus.REJECTED,
        AppointmentStatus.CANCELLED,
    }),
    AppointmentStatus.CONFIRMED: frozenset({
        AppointmentStatus.COMPLETED,
        AppointmentStatus.CANCELLED,
    }),
    AppointmentStatus.COMPLETED: frozenset(),
    AppointmentStatus.CANCELLED: frozenset(),
    AppointmentStatus.REJECTED: frozenset(),
}

PAYMENT_TRANSITIONS: dict[PaymentStatus, frozenset[PaymentStatus]] = {
    PaymentStatus.PENDING: frozenset({PaymentStatus.PAID, PaymentStatus.FAILED}),
    PaymentStatus.FAILED: frozenset({PaymentStatus.PAID}),
    PaymentStatus.PAID: frozenset({PaymentStatus.REFUNDED, PaymentStatus.FAILED}),
    PaymentStatus.REFUNDED: frozenset(),
}

ACTIVE_STATUSES = frozenset({AppointmentStatus.PENDING, AppointmentStatus.CONFIRMED})
TERMINAL_STATUSES = frozenset(status for status, targets in STATUS_TRANSITIONS.items() if not targets)
PAYABLE_STATUSES = frozenset({
    AppointmentStatus.PENDING,
    AppointmentStatus.CONFIRMED,
    AppointmentStatus.COMPLETED,
})


def can_transition_status(current: str, target: str) -> bool:
    return AppointmentStatus(target) in STATUS_TRANSITIONS[AppointmentStatus(current)]


def can_transition_payment(current: str, target: str) -> bool:
    return PaymentStatus(target) in PAYMENT_TRANSITIONS[PaymentStatus(current)]


def is_terminal(status: str) -> bool:
    return AppointmentStatus(status) in TERMINAL_STATUSES


def authorize_status_change(appointment, actor, target: str) -> CancelledBy:
    """Return the party performing the change or raise ``Forbidden``.

    The appointment's artist owns every status transition. The client may only
    cancel their own booking.
    """
    if actor.role == UserRole.ARTIST.value and appointment.artist_id == actor.id:
        return CancelledBy.ARTIST

    if (
        actor.role == UserRole.CLIENT.value
        and appointment.client_id == actor.id
        and AppointmentStatus(target) == AppointmentStatus.CANCELLED
    ):
        return CancelledBy.CLIENT

    raise Forbidden('Not authorized to update this appointment')


def transition_status(appointment, target: str, actor=None, reason: str | None = None):
    """Move ``appointment.status`` to ``target``.

    ``actor`` is the acting user; ``None`` means the system (expiry job).
    """
    try:
        target_status = AppointmentStatus(target)
    except ValueError as exc:
        raise InvalidInput(f'Unknown appointment status: {target}') from exc

    cancelled_by = CancelledBy.SYSTEM if actor is None else authorize_status_change(appointment, actor, target)

    if not can_transition_status(appointment.status, target_status):
        raise InvalidTransition(
            f'Cannot change appointment status from {appointment.status} to {target_status.value}'
        )

    previous = appointment.status
    appointment.status = target_status.value
    if target_status == AppointmentStatus.CANCELLED:
        appointment.cancelled_by = cancelled_by.value
        if reason:
            appointment.cancellation_reason = reason.strip()

    logger.info(
        'Appointment %s status %s -> %s by %s',
        appointment.id,
        previous,
        target_status.value,
        cancelled_by.value,
    )
    return appointment


def transition_payment(appointment, target: str):
    target_status = PaymentStatus(target)
    if not can_transition_payment(appointment.payment_status, target_status):
        raise InvalidTransition(
            f'Cannot change payment status from {appointment.payment_status} to {target_status.value}'
        )

    previous = appointment.payment_status
    appointment.payment_status = target_status.value
    logger.info('Appointment %s payment %s -> %s', appointment.id, previous, target_status.value)
    return appointment


def confirm_after_payment(appointment):
    """Mark a charge as settled; a pending booking paid up front is confirmed."""
    transition_payment(appointment, PaymentStatus.PAID)
    if appointment.status == AppointmentStatus.PENDING.value:
        appointment.status = AppointmentStatus.CONFIRMED.value
        logger.info('Appointment %s auto-confirmed after payment', appointment.id)
    return appointment
