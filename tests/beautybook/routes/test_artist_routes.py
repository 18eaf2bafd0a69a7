import os
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault('DATABASE_URL', 'sqlite:///./test.db')

from beautybook.auth.jwt_handler import create_access_token  # noqa: E402
from beautybook.database import Base, ensure_appointment_schema, ensure_blocked_time_schema, get_db  # noqa: E402
from beautybook.main import app  # noqa: E402
from beautybook.models.service import Service  # noqa: E402
from beautybook.models.user import User  # noqa: E402


@pytest.fixture
def api():
    engine = create_engine('sqlite://', connect_args={'check_same_thread': False}, poolclass=StaticPool)
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)
    ensure_appointment_schema(bind=engine, policy='strict')
    ensure_blocked_time_schema(bind=engine)

    def override_get_db():
        db = testing_session_local()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db

    db = testing_session_local()
    artist = User(email='artist@example.com', first_name='Lina', role='artist', approval_status='approved')
    other_artist = User(email='other-artist@example.com', first_name='Dana', role='artist', approval_status='approved')
    client = User(email='client@example.com', first_name='Sara', role='client')
    db.add_all([artist, other_artist, client])
    db.flush()
    makeup = Service(artist_id=artist.id, service_name='Bridal makeup', service_type='bridal',
                     price=Decimal('400'), currency='AED')
    db.add(makeup)
    db.commit()
    ids = {'artist': artist.id, 'other_artist': other_artist.id, 'client': client.id, 'makeup': makeup.id}
    tokens = {
        'artist': create_access_token(str(artist.id), 'artist'),
        'other_artist': create_access_token(str(other_artist.id), 'artist'),
        'client': create_access_token(str(client.id), 'client'),
    }
    db.close()

    try:
        yield TestClient(app), ids, tokens
    finally:
        app.dependency_overrides.clear()
        Base.metadata.drop_all(bind=engine)


def auth(token: str) -> dict:
    return {'Authorization': f'Bearer {token}'}


def appointment_body(ids: dict, **overrides) -> dict:
    body = {
        'clientId': ids['client'],
        'serviceIds': [ids['makeup']],
        'appointmentDate': '2030-07-10',
        'appointmentTime': '9:00 AM',
        'duration': 120,
        'venue': 'client_venue',
        'venueDetails': {'venueName': 'Villa 12', 'street': 'Palm St', 'city': 'Dubai', 'state': 'DU'},
    }
    body.update(overrides)
    return body


def create_appointment(client: TestClient, ids: dict, tokens: dict, **overrides) -> dict:
    response = client.post('/artist/appointments', json=appointment_body(ids, **overrides), headers=auth(tokens['artist']))
    assert response.status_code == 201
    return response.json()['data']


def test_artist_creates_confirmed_appointment(api) -> None:
    client, ids, tokens = api

    data = create_appointment(client, ids, tokens)

    assert data['status'] == 'confirmed'
    assert data['clientId'] == ids['client']
    assert data['totalAmount'] == 550.0
    assert data['appointmentTime'] == '9:00 AM - 11:00 AM'
    assert data['venueDetails'] == {'venueName': 'Villa 12', 'street': 'Palm St', 'city': 'Dubai', 'state': 'DU'}


def test_artist_creates_appointment_for_new_client(api) -> None:
    client, ids, tokens = api

    data = create_appointment(
        client,
        ids,
        tokens,
        clientId=None,
        clientFirstName='Maya',
        clientLastName='Ali',
        clientEmail='maya@example.com',
    )

    assert data['clientId'] not in (ids['client'], ids['artist'])


def test_artist_appointment_requires_client(api) -> None:
    client, ids, tokens = api

    response = client.post(
        '/artist/appointments',
        json=appointment_body(ids, clientId=None),
        headers=auth(tokens['artist']),
    )

    assert response.status_code == 400
    assert response.json()['message'] == 'Validation Error'


def test_artist_moves_appointment_through_lifecycle(api) -> None:
    client, ids, tokens = api
    appointment_id = create_appointment(client, ids, tokens)['id']

    completed = client.put(
        f'/artist/appointments/{appointment_id}/status',
        json={'status': 'completed'},
        headers=auth(tokens['artist']),
    )
    reopened = client.put(
        f'/artist/appointments/{appointment_id}/status',
        json={'status': 'cancelled'},
        headers=auth(tokens['artist']),
    )

    assert completed.status_code == 200
    assert completed.json()['data']['status'] == 'completed'
    assert reopened.status_code == 409
    assert reopened.json()['message'] == 'Cannot change appointment status from completed to cancelled'


def test_other_artist_cannot_touch_appointment(api) -> None:
    client, ids, tokens = api
    appointment_id = create_appointment(client, ids, tokens)['id']

    read = client.get(f'/artist/appointments/{appointment_id}', headers=auth(tokens['other_artist']))
    update = client.put(
        f'/artist/appointments/{appointment_id}/status',
        json={'status': 'cancelled'},
        headers=auth(tokens['other_artist']),
    )

    assert read.status_code == 403
    assert update.status_code == 403


def test_unknown_status_value_is_validation_error(api) -> None:
    client, ids, tokens = api
    appointment_id = create_appointment(client, ids, tokens)['id']

    response = client.put(
        f'/artist/appointments/{appointment_id}/status',
        json={'status': 'archived'},
        headers=auth(tokens['artist']),
    )

    assert response.status_code == 400


def test_artist_lists_appointments_with_filters(api) -> None:
    client, ids, tokens = api
    create_appointment(client, ids, tokens)
    create_appointment(client, ids, tokens, appointmentDate='2030-07-12')

    everything = client.get('/artist/appointments', headers=auth(tokens['artist'])).json()['data']
    window = client.get(
        '/artist/appointments',
        params={'startDate': '2030-07-11', 'serviceType': 'bridal', 'status': 'confirmed'},
        headers=auth(tokens['artist']),
    ).json()['data']
    other = client.get('/artist/appointments', headers=auth(tokens['other_artist'])).json()['data']

    assert everything['total'] == 2
    assert [item['appointmentDate'] for item in everything['appointments']] == ['2030-07-10', '2030-07-12']
    assert window['total'] == 1
    assert other['total'] == 0


def test_blocked_time_round_trip(api) -> None:
    client, _, tokens = api

    created = client.post(
        '/artist/blocked-time',
        json={'startDate': '2024-06-01', 'endDate': '2024-06-01', 'startTime': '1:00 PM', 'duration': '3 hours'},
        headers=auth(tokens['artist']),
    )
    entry = created.json()['data']
    listed = client.get('/artist/blocked-time', headers=auth(tokens['artist'])).json()['data']
    forbidden = client.delete(f'/artist/blocked-time/{entry["id"]}', headers=auth(tokens['other_artist']))
    deleted = client.delete(f'/artist/blocked-time/{entry["id"]}', headers=auth(tokens['artist']))
    missing = client.delete(f'/artist/blocked-time/{entry["id"]}', headers=auth(tokens['artist']))

    assert created.status_code == 201
    assert entry['type'] == 'blocked_time'
    assert entry['startDate'] == '2024-06-01T00:00:00'
    assert entry['endDate'] == '2024-06-01T16:00:00'
    assert [item['id'] for item in listed] == [entry['id']]
    assert forbidden.status_code == 403
    assert deleted.status_code == 200
    assert deleted.json() == {'success': True, 'message': 'Blocked time deleted successfully', 'data': None}
    assert missing.status_code == 404


def test_vacation_with_inverted_range_is_rejected(api) -> None:
    client, _, tokens = api

    response = client.post(
        '/artist/vacations',
        json={'startDate': '2024-06-05', 'endDate': '2024-06-01'},
        headers=auth(tokens['artist']),
    )

    assert response.status_code == 400
    assert response.json()['message'] == 'End date must be after start date'


def test_vacation_blocks_artist_bookings(api) -> None:
    client, ids, tokens = api
    client.post(
        '/artist/vacations',
        json={'startDate': '2030-07-08', 'endDate': '2030-07-11', 'reason': 'Travel'},
        headers=auth(tokens['artist']),
    )

    response = client.post('/artist/appointments', json=appointment_body(ids), headers=auth(tokens['artist']))
    vacations = client.get(
        '/artist/vacations',
        params={'startDate': '2030-07-01', 'endDate': '2030-07-31'},
        headers=auth(tokens['artist']),
    ).json()['data']

    assert response.status_code == 409
    assert len(vacations) == 1
    assert vacations[0]['reason'] == 'Travel'


def test_client_cannot_use_artist_routes(api) -> None:
    client, _, tokens = api

    response = client.get('/artist/appointments', headers=auth(tokens['client']))

    assert response.status_code == 403
    assert response.json()['message'] == 'Only artists can access this resource'
