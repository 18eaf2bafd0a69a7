"""Stripe payment processor client.

Only three capabilities are used: open a payment intent, read its status and
refund it. Every call returns a ``PaymentResult``; Stripe errors are logged and
reported as an unsuccessful result instead of being raised.
"""

import logging
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal

import stripe

from beautybook.core import config

logger = logging.getLogger(__name__)

SUCCEEDED = 'succeeded'
REFUND_OK_STATUSES = {SUCCEEDED, 'pending'}


@dataclass
class PaymentResult:
    success: bool
    status: str | None = None
    intent_id: str | None = None
    client_secret: str | None = None
    refund_id: str | None = None
    amount: int | None = None
    currency: str | None = None
    appointment_id: str | None = None
    error: str | None = None
    raw: dict = field(default_factory=dict)


def to_minor_units(amount: Decimal) -> int:
    """AED, USD, EUR, INR and PKR all use two decimal places."""
    return int((Decimal(amount) * 100).quantize(Decimal('1'), rounding=ROUND_HALF_UP))


def _intent_result(intent, success: bool, error: str | None = None) -> PaymentResult:
    metadata = intent.get('metadata') or {}
    return PaymentResult(
        success=success,
        status=intent.get('status'),
        intent_id=intent.get('id'),
        client_secret=intent.get('client_secret'),
        amount=intent.get('amount'),
        currency=(intent.get('currency') or '').upper() or None,
        appointment_id=metadata.get('appointmentId'),
        error=error,
        raw=dict(intent),
    )


class StripePaymentProcessor:
    """Wrapper around the Stripe SDK bound to one secret key."""

    def __init__(self, api_key: str | None = None):
        self.api_key = config.STRIPE_SECRET_KEY if api_key is None else api_key

        if not self.api_key:
            logger.warning('STRIPE_SECRET_KEY not set; online payments will fail until configured')

    def is_available(self) -> bool:
        return bool(self.api_key)

    def create_payment_intent(
        self,
        amount: Decimal,
        currency: str,
        appointment_id: int,
        client_id: int,
        artist_id: int,
    ) -> PaymentResult:
        if not self.is_available():
            return PaymentResult(success=False, error='Payment processor not configured')

        try:
            intent = stripe.PaymentIntent.create(
                api_key=self.api_key,
                idempotency_key=f'appointment-{appointment_id}-intent',
                amount=to_minor_units(amount),
                currency=currency.lower(),
                description=f'Booking payment for appointment {appointment_id}',
                automatic_payment_methods={'enabled': True},
                metadata={
                    'appointmentId': str(appointment_id),
                    'clientId': str(client_id),
                    'artistId': str(artist_id),
                },
            )
        except stripe.StripeError as exc:
            logger.error('Payment intent creation failed for appointment %s: %s', appointment_id, exc)
            return PaymentResult(success=False, error=str(exc))

        return _intent_result(intent, success=True)

    def get_payment_intent(self, intent_id: str) -> PaymentResult:
        if not self.is_available():
            return PaymentResult(success=False, intent_id=intent_id, error='Payment processor not configured')

        try:
            intent = stripe.PaymentIntent.retrieve(intent_id, api_key=self.api_key)
        except stripe.StripeError as exc:
            logger.error('Payment intent lookup failed for %s: %s', intent_id, exc)
            return PaymentResult(success=False, intent_id=intent_id, error=str(exc))

        intent_status = intent.get('status')
        settled = intent_status == SUCCEEDED
        return _intent_result(
            intent,
            success=settled,
            error=None if settled else f'Payment status: {intent_status}',
        )

    def create_refund(self, intent_id: str, amount: Decimal | None = None) -> PaymentResult:
        if not self.is_available():
            return PaymentResult(success=False, intent_id=intent_id, error='Payment processor not configured')

        params = {'payment_intent': intent_id}
        if amount is not None:
            params['amount'] = to_minor_units(amount)

        try:
            refund = stripe.Refund.create(api_key=self.api_key, **params)
        except stripe.StripeError as exc:
            logger.error('Refund failed for payment intent %s: %s', intent_id, exc)
            return PaymentResult(success=False, intent_id=intent_id, error=str(exc))

        refund_status = refund.get('status')
        ok = refund_status in REFUND_OK_STATUSES
        return PaymentResult(
            success=ok,
            status=refund_status,
            intent_id=intent_id,
            refund_id=refund.get('id'),
            amount=refund.get('amount'),
            error=None if ok else f'Refund status: {refund_status}',
            raw=dict(refund),
        )


payment_processor = StripePaymentProcessor()


def get_payment_processor() -> StripePaymentProcessor:
    return payment_processor
