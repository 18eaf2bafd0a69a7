import os
from types import SimpleNamespace

import pytest

os.environ.setdefault('DATABASE_URL', 'sqlite:///./test.db')

from beautybook.core.errors import Forbidden, InvalidInput, InvalidTransition  # noqa: E402
from beautybook.scheduling.lifecycle import (  # noqa: E402
    TERMINAL_STATUSES,
    can_transition_payment,
    can_transition_status,
    confirm_after_payment,
    is_terminal,
    transition_payment,
    transition_status,
)

ARTIST = SimpleNamespace(id=10, role='artist')
OTHER_ARTIST = SimpleNamespace(id=11, role='artist')
CLIENT = SimpleNamespace(id=20, role='client')
OTHER_CLIENT = SimpleNamespace(id=21, role='client')


def make_appointment(status: str = 'pending', payment_status: str = 'pending') -> SimpleNamespace:
    return SimpleNamespace(
        id=1,
        artist_id=ARTIST.id,
        client_id=CLIENT.id,
        status=status,
        payment_status=payment_status,
        cancelled_by=None,
        cancellation_reason='',
    )


def test_terminal_statuses() -> None:
    assert {status.value for status in TERMINAL_STATUSES} == {'completed', 'cancelled', 'rejected'}
    assert is_terminal('rejected')
    assert not is_terminal('confirmed')


@pytest.mark.parametrize(
    ('current', 'target', 'allowed'),
    [
        ('pending', 'confirmed', True),
        ('pending', 'rejected', True),
        ('pending', 'cancelled', True),
        ('pending', 'completed', False),
        ('confirmed', 'completed', True),
        ('confirmed', 'cancelled', True),
        ('confirmed', 'pending', False),
        ('completed', 'cancelled', False),
        ('cancelled', 'confirmed', False),
        ('rejected', 'pending', False),
    ],
)
def test_status_transition_table(current: str, target: str, allowed: bool) -> None:
    assert can_transition_status(current, target) is allowed


@pytest.mark.parametrize(
    ('current', 'target', 'allowed'),
    [
        ('pending', 'paid', True),
        ('pending', 'refunded', False),
        ('paid', 'refunded', True),
        ('failed', 'paid', True),
        ('refunded', 'paid', False),
    ],
)
def test_payment_transition_table(current: str, target: str, allowed: bool) -> None:
    assert can_transition_payment(current, target) is allowed


def test_artist_confirms_pending_appointment() -> None:
    appointment = make_appointment()

    transition_status(appointment, 'confirmed', actor=ARTIST)

    assert appointment.status == 'confirmed'
    assert appointment.cancelled_by is None


def test_artist_cancel_records_reason_and_party() -> None:
    appointment = make_appointment('confirmed')

    transition_status(appointment, 'cancelled', actor=ARTIST, reason='  Sick day ')

    assert appointment.status == 'cancelled'
    assert appointment.cancelled_by == 'artist'
    assert appointment.cancellation_reason == 'Sick day'


def test_client_may_cancel_own_booking() -> None:
    appointment = make_appointment('confirmed')

    transition_status(appointment, 'cancelled', actor=CLIENT)

    assert appointment.status == 'cancelled'
    assert appointment.cancelled_by == 'client'


def test_client_cannot_confirm_booking() -> None:
    appointment = make_appointment()

    with pytest.raises(Forbidden):
        transition_status(appointment, 'confirmed', actor=CLIENT)

    assert appointment.status == 'pending'


@pytest.mark.parametrize('actor', [OTHER_ARTIST, OTHER_CLIENT])
def test_strangers_cannot_change_status(actor: SimpleNamespace) -> None:
    with pytest.raises(Forbidden):
        transition_status(make_appointment(), 'cancelled', actor=actor)


def test_system_cancel_has_no_actor() -> None:
    appointment = make_appointment()

    transition_status(appointment, 'cancelled', reason='Not confirmed in time')

    assert appointment.cancelled_by == 'system'


@pytest.mark.parametrize('status', ['completed', 'cancelled', 'rejected'])
def test_terminal_appointments_cannot_move(status: str) -> None:
    appointment = make_appointment(status)

    with pytest.raises(InvalidTransition):
        transition_status(appointment, 'confirmed', actor=ARTIST)

    assert appointment.status == status


def test_unknown_status_is_invalid_input() -> None:
    with pytest.raises(InvalidInput):
        transition_status(make_appointment(), 'archived', actor=ARTIST)


def test_refund_before_payment_is_rejected() -> None:
    appointment = make_appointment('confirmed')

    with pytest.raises(InvalidTransition):
        transition_payment(appointment, 'refunded')


def test_payment_confirms_pending_booking() -> None:
    appointment = make_appointment()

    confirm_after_payment(appointment)

    assert appointment.payment_status == 'paid'
    assert appointment.status == 'confirmed'


def test_payment_leaves_completed_booking_completed() -> None:
    appointment = make_appointment('completed')

    confirm_after_payment(appointment)

    assert appointment.payment_status == 'paid'
    assert appointment.status == 'completed'
