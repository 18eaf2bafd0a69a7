import os
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault('DATABASE_URL', 'sqlite:///./test.db')

from beautybook.auth.jwt_handler import create_access_token  # noqa: E402
from beautybook.database import Base, ensure_appointment_schema, get_db  # noqa: E402
from beautybook.main import app  # noqa: E402
from beautybook.models.appointment import Appointment  # noqa: E402
from beautybook.models.service import Service  # noqa: E402
from beautybook.models.transaction import Transaction  # noqa: E402
from beautybook.models.user import User  # noqa: E402
from beautybook.payments.processor import PaymentResult, get_payment_processor, to_minor_units  # noqa: E402


class FakeProcessor:
    def __init__(self, available: bool = True):
        self.available = available
        self.intents = {}

    def create_payment_intent(self, amount, currency, appointment_id, client_id, artist_id):
        if not self.available:
            return PaymentResult(success=False, error='Payment processor not configured')
        intent_id = f'pi_{appointment_id}'
        self.intents[intent_id] = (to_minor_units(amount), currency.upper(), str(appointment_id))
        return PaymentResult(success=True, intent_id=intent_id, client_secret='secret')

    def get_payment_intent(self, intent_id):
        amount, currency, appointment_id = self.intents[intent_id]
        return PaymentResult(
            success=True,
            status='succeeded',
            intent_id=intent_id,
            amount=amount,
            currency=currency,
            appointment_id=appointment_id,
        )

    def create_refund(self, intent_id, amount=None):
        return PaymentResult(success=True, status='succeeded', intent_id=intent_id, refund_id=f're_{intent_id}')


@pytest.fixture
def api():
    engine = create_engine('sqlite://', connect_args={'check_same_thread': False}, poolclass=StaticPool)
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)
    ensure_appointment_schema(bind=engine, policy='strict')
    processor = FakeProcessor()

    def override_get_db():
        db = testing_session_local()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_payment_processor] = lambda: processor

    db = testing_session_local()
    artist = User(email='artist@example.com', first_name='Lina', role='artist', approval_status='approved')
    client = User(email='client@example.com', first_name='Sara', role='client')
    other_client = User(email='other@example.com', first_name='Noor', role='client')
    db.add_all([artist, client, other_client])
    db.flush()
    makeup = Service(artist_id=artist.id, service_name='Party makeup', service_type='makeup',
                     price=Decimal('100'), currency='AED')
    hair = Service(artist_id=artist.id, service_name='Blow dry', service_type='hair',
                   price=Decimal('50'), currency='AED')
    db.add_all([makeup, hair])
    db.commit()
    ids = {
        'artist': artist.id,
        'client': client.id,
        'other_client': other_client.id,
        'makeup': makeup.id,
        'hair': hair.id,
    }
    tokens = {
        'client': create_access_token(str(client.id), 'client'),
        'other_client': create_access_token(str(other_client.id), 'client'),
        'artist': create_access_token(str(artist.id), 'artist'),
    }
    db.close()

    try:
        yield TestClient(app), ids, tokens, testing_session_local, processor
    finally:
        app.dependency_overrides.clear()
        Base.metadata.drop_all(bind=engine)


def auth(token: str) -> dict:
    return {'Authorization': f'Bearer {token}'}


def booking_body(ids: dict, **overrides) -> dict:
    body = {
        'artistId': ids['artist'],
        'serviceIds': [ids['makeup'], ids['hair']],
        'appointmentDate': '2030-06-01',
        'appointmentTime': '1:00 PM',
        'duration': 90,
    }
    body.update(overrides)
    return body


def test_client_creates_booking(api) -> None:
    client, ids, tokens, _, _ = api

    response = client.post('/client/bookings', json=booking_body(ids), headers=auth(tokens['client']))

    assert response.status_code == 201
    payload = response.json()
    assert payload['success'] is True
    booking = payload['data']['booking']
    assert booking['totalAmount'] == 300.0
    assert booking['serviceFee'] == 150.0
    assert booking['status'] == 'pending'
    assert booking['paymentStatus'] == 'pending'
    assert booking['appointmentTime'] == '1:00 PM - 2:30 PM'
    assert [item['serviceName'] for item in booking['services']] == ['Party makeup', 'Blow dry']
    assert payload['data']['paymentPending'] is False


def test_booking_duration_is_validated(api) -> None:
    client, ids, tokens, _, _ = api

    response = client.post('/client/bookings', json=booking_body(ids, duration=10), headers=auth(tokens['client']))

    assert response.status_code == 400
    payload = response.json()
    assert payload['success'] is False
    assert payload['message'] == 'Validation Error'
    assert payload['errors'][0]['field'] == 'duration'


def test_booking_with_unknown_service_is_rejected(api) -> None:
    client, ids, tokens, _, _ = api

    response = client.post(
        '/client/bookings',
        json=booking_body(ids, serviceIds=[ids['makeup'], 9999]),
        headers=auth(tokens['client']),
    )

    assert response.status_code == 400
    assert response.json()['message'] == 'One or more services not found or inactive'


def test_booking_taken_day_is_conflict(api) -> None:
    client, ids, tokens, _, _ = api
    client.post('/client/bookings', json=booking_body(ids), headers=auth(tokens['client']))

    response = client.post(
        '/client/bookings',
        json=booking_body(ids, appointmentTime='6:00 PM'),
        headers=auth(tokens['other_client']),
    )

    assert response.status_code == 409
    assert response.json() == {
        'success': False,
        'message': 'Artist is not available on the selected date',
        'errors': [{'field': 'appointmentDate', 'message': '1 appointment(s), 0 blocked slot(s), 0 vacation(s)'}],
    }


def test_artist_cannot_use_client_routes(api) -> None:
    client, ids, tokens, _, _ = api

    response = client.post('/client/bookings', json=booking_body(ids), headers=auth(tokens['artist']))

    assert response.status_code == 403
    assert response.json() == {'success': False, 'message': 'Only clients can access this resource'}


def test_invalid_token_is_unauthorized(api) -> None:
    client, _, _, _, _ = api

    response = client.get('/client/bookings', headers=auth('not-a-token'))

    assert response.status_code == 401


def test_pay_now_without_processor_still_books(api) -> None:
    client, ids, tokens, _, processor = api
    processor.available = False

    response = client.post(
        '/client/bookings',
        json=booking_body(ids, paymentMethod='pay_now'),
        headers=auth(tokens['client']),
    )

    assert response.status_code == 201
    payload = response.json()
    assert payload['data']['paymentPending'] is True
    assert payload['data']['paymentIntent'] is None
    assert 'completed later' in payload['message']


def test_pay_now_flow_settles_payment_once(api) -> None:
    client, ids, tokens, session_factory, _ = api
    created = client.post(
        '/client/bookings',
        json=booking_body(ids, paymentMethod='pay_now'),
        headers=auth(tokens['client']),
    ).json()['data']
    booking_id = created['booking']['id']
    intent_id = created['paymentIntent']['paymentIntentId']

    first = client.post(
        '/client/payments/process',
        json={'appointmentId': booking_id, 'paymentIntentId': intent_id},
        headers=auth(tokens['client']),
    )
    second = client.post(
        '/client/payments/process',
        json={'appointmentId': booking_id, 'paymentIntentId': intent_id},
        headers=auth(tokens['client']),
    )

    assert first.status_code == 200
    assert first.json()['data']['paymentStatus'] == 'paid'
    assert first.json()['data']['status'] == 'confirmed'
    assert second.status_code == 409

    db = session_factory()
    try:
        assert db.query(Transaction).count() == 1
    finally:
        db.close()

    status_response = client.get(f'/client/payments/intent/{intent_id}', headers=auth(tokens['client']))
    assert status_response.json()['data'] == {'paymentIntentId': intent_id, 'status': 'succeeded', 'succeeded': True}

    refund = client.post(
        '/client/payments/refund',
        json={'appointmentId': booking_id, 'reason': 'Plans changed'},
        headers=auth(tokens['client']),
    )
    assert refund.status_code == 200
    assert refund.json()['data']['paymentStatus'] == 'refunded'
    assert refund.json()['data']['status'] == 'confirmed'


def test_client_lists_and_reads_own_bookings(api) -> None:
    client, ids, tokens, _, _ = api
    client.post('/client/bookings', json=booking_body(ids), headers=auth(tokens['client']))
    client.post(
        '/client/bookings',
        json=booking_body(ids, appointmentDate='2030-06-02'),
        headers=auth(tokens['client']),
    )

    listing = client.get('/client/bookings', params={'limit': 1}, headers=auth(tokens['client'])).json()['data']
    others = client.get('/client/bookings', headers=auth(tokens['other_client'])).json()['data']

    assert listing['total'] == 2
    assert listing['count'] == 1
    assert listing['pages'] == 2
    assert listing['appointments'][0]['appointmentDate'] == '2030-06-02'
    assert others['total'] == 0

    booking_id = listing['appointments'][0]['id']
    assert client.get(f'/client/bookings/{booking_id}', headers=auth(tokens['client'])).status_code == 200
    assert client.get(f'/client/bookings/{booking_id}', headers=auth(tokens['other_client'])).status_code == 403
    assert client.get('/client/bookings/9999', headers=auth(tokens['client'])).status_code == 404


def test_client_cancels_own_booking(api) -> None:
    client, ids, tokens, session_factory, _ = api
    booking_id = client.post(
        '/client/bookings',
        json=booking_body(ids),
        headers=auth(tokens['client']),
    ).json()['data']['booking']['id']

    forbidden = client.post(
        f'/client/bookings/{booking_id}/cancel',
        json={},
        headers=auth(tokens['other_client']),
    )
    response = client.post(
        f'/client/bookings/{booking_id}/cancel',
        json={'cancellationReason': 'Change of plans'},
        headers=auth(tokens['client']),
    )
    again = client.post(f'/client/bookings/{booking_id}/cancel', json={}, headers=auth(tokens['client']))

    assert forbidden.status_code == 403
    assert response.status_code == 200
    data = response.json()['data']
    assert data['status'] == 'cancelled'
    assert data['cancelledBy'] == 'client'
    assert data['cancellationReason'] == 'Change of plans'
    assert again.status_code == 409

    db = session_factory()
    try:
        assert db.query(Appointment).filter(Appointment.id == booking_id).one().status == 'cancelled'
    finally:
        db.close()
