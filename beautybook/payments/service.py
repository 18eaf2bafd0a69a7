"""Pay-now settlement and refunds for appointments."""

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from beautybook.core.errors import Conflict, Forbidden, InvalidInput, NotFound, UpstreamPaymentFailure
from beautybook.models.appointment import Appointment
from beautybook.models.enums import (
    AppointmentStatus,
    PaymentMethod,
    PaymentStatus,
    TransactionStatus,
    TransactionType,
)
from beautybook.models.transaction import Transaction
from beautybook.models.user import User
from beautybook.payments.processor import PaymentResult, to_minor_units
from beautybook.scheduling.lifecycle import PAYABLE_STATUSES, confirm_after_payment, transition_payment

logger = logging.getLogger(__name__)


def get_client_appointment(db: Session, client: User, appointment_id: int, for_update: bool = False) -> Appointment:
    query = db.query(Appointment).filter(Appointment.id == appointment_id)
    if for_update:
        query = query.with_for_update()
    appointment = query.first()

    if appointment is None:
        raise NotFound('Appointment not found')
    if appointment.client_id != client.id:
        raise Forbidden('Not authorized to pay for this appointment')
    return appointment


def check_intent_matches(appointment: Appointment, result: PaymentResult) -> None:
    """The intent must have been opened for this appointment and its full total."""
    if result.appointment_id != str(appointment.id):
        logger.warning(
            'Intent %s was opened for appointment %s, not %s',
            result.intent_id,
            result.appointment_id,
            appointment.id,
        )
        raise InvalidInput('Payment intent does not belong to this appointment')

    expected_amount = to_minor_units(appointment.total_amount)
    if result.amount != expected_amount or (result.currency or '').upper() != appointment.currency.upper():
        logger.warning(
            'Intent %s charged %s %s, appointment %s expects %s %s',
            result.intent_id,
            result.amount,
            result.currency,
            appointment.id,
            expected_amount,
            appointment.currency,
        )
        raise InvalidInput('Payment amount does not match the appointment total')


def process_payment(db: Session, client: User, appointment_id: int, payment_intent_id: str, processor) -> Appointment:
    """Settle a pay-now charge once the processor reports it succeeded.

    A second call for an already paid appointment is rejected with ``Conflict``
    and never records a second deposit.
    """
    appointment = get_client_appointment(db, client, appointment_id, for_update=True)

    if appointment.payment_status == PaymentStatus.PAID.value:
        raise Conflict('Payment already processed for this appointment')
    if appointment.payment_status == PaymentStatus.REFUNDED.value:
        raise Conflict('Payment for this appointment was refunded')
    if AppointmentStatus(appointment.status) not in PAYABLE_STATUSES:
        raise InvalidInput(f'Cannot pay for a {appointment.status} appointment')
    if appointment.payment_method != PaymentMethod.PAY_NOW.value:
        raise InvalidInput('This appointment is paid at the venue')
    if appointment.payment_intent_id and appointment.payment_intent_id != payment_intent_id:
        raise InvalidInput('Payment intent does not belong to this appointment')

    result: PaymentResult = processor.get_payment_intent(payment_intent_id)
    if not result.success:
        logger.warning(
            'Payment for appointment %s not settled: %s',
            appointment.id,
            result.error or result.status,
        )
        raise UpstreamPaymentFailure(result.error or 'Payment was not successful')
    check_intent_matches(appointment, result)

    appointment.payment_intent_id = payment_intent_id
    confirm_after_payment(appointment)
    db.add(Transaction(
        artist_id=appointment.artist_id,
        client_id=appointment.client_id,
        appointment_id=appointment.id,
        type=TransactionType.DEPOSIT.value,
        amount=appointment.total_amount,
        currency=appointment.currency,
        status=TransactionStatus.SUCCEEDED.value,
        description=f'Payment for appointment {appointment.id}',
        payment_method='card',
        transaction_id=payment_intent_id,
    ))

    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise Conflict('Payment already processed for this appointment') from exc
    db.refresh(appointment)

    logger.info('Appointment %s paid (%s %s)', appointment.id, appointment.total_amount, appointment.currency)
    return appointment


def request_refund(db: Session, client: User, appointment_id: int, processor, reason: str | None = None) -> Appointment:
    """Refund a paid appointment. The booking status is left untouched."""
    appointment = get_client_appointment(db, client, appointment_id, for_update=True)

    if appointment.payment_status == PaymentStatus.REFUNDED.value:
        raise Conflict('Payment already refunded for this appointment')
    if appointment.payment_status != PaymentStatus.PAID.value:
        raise InvalidInput('Only paid appointments can be refunded')
    if not appointment.payment_intent_id:
        raise InvalidInput('No online payment found for this appointment')

    result: PaymentResult = processor.create_refund(appointment.payment_intent_id)
    if not result.success:
        logger.warning('Refund for appointment %s failed: %s', appointment.id, result.error)
        raise UpstreamPaymentFailure(result.error or 'Refund was not successful')

    transition_payment(appointment, PaymentStatus.REFUNDED)
    description = f'Refund for appointment {appointment.id}'
    if reason:
        description = f'{description}: {reason.strip()}'
    db.add(Transaction(
        artist_id=appointment.artist_id,
        client_id=appointment.client_id,
        appointment_id=appointment.id,
        type=TransactionType.REFUND.value,
        amount=appointment.total_amount,
        currency=appointment.currency,
        status=TransactionStatus.SUCCEEDED.value,
        description=description,
        payment_method='card',
        transaction_id=result.refund_id,
    ))
    db.commit()
    db.refresh(appointment)

    logger.info('Appointment %s refunded', appointment.id)
    return appointment


def get_intent_status(db: Session, client: User, payment_intent_id: str, processor) -> PaymentResult:
    appointment = db.query(Appointment).filter(Appointment.payment_intent_id == payment_intent_id).first()
    if appointment is None:
        raise NotFound('Payment intent not found')
    if appointment.client_id != client.id:
        raise Forbidden('Not authorized to view this payment')

    result = processor.get_payment_intent(payment_intent_id)
    if result.status is None:
        raise UpstreamPaymentFailure(result.error or 'Payment status unavailable')
    return result
