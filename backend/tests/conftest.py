from collections import namedtuple
import uuid

import pytest
from fastapi.testclient import TestClient

from eduplatform.config import Settings
from eduplatform.main import create_app

API = '/api/v1'

Account = namedtuple('Account', 'id user headers token')


@pytest.fixture
def settings(tmp_path):
    """Settings pointing at a fresh SQLite file per test."""
    return Settings(
        ENV='dev',
        DATABASE_URL=f"sqlite:///{tmp_path / 'test.db'}",
        JWT_SECRET='test-secret',
        ALLOW_ADMIN_SIGNUP=True,
    )


@pytest.fixture
def client(settings):
    # the context manager runs the lifespan, which creates the tables
    with TestClient(create_app(settings)) as c:
        yield c


def register(client, role, **extra):
    """Register a user of `role` and return its id, body and bearer headers."""
    suffix = uuid.uuid4().hex[:8]
    payload = {
        'username': f'{role[:4]}_{suffix}',
        'email': f'{role}_{suffix}@example.com',
        'password': 'secret123',
        'role': role,
    }
    payload.update(extra)
    r = client.post(f'{API}/auth/register', json=payload)
    assert r.status_code == 201, r.text
    body = r.json()
    token = body['token']
    return Account(body['user']['id'], body['user'], {'Authorization': f'Bearer {token}'}, token)


@pytest.fixture
def famille(client):
    return register(client, 'famille', family_name='Martin')


@pytest.fixture
def enseignant(client):
    return register(client, 'enseignant', specialization='maths', qualifications='CAPES')


@pytest.fixture
def admin(client):
    return register(client, 'administrator')


@pytest.fixture
def mission(client, famille, enseignant):
    r = client.post(f'{API}/missions', json={
        'start_date': '2025-09-01T09:00:00',
        'description': 'Soutien scolaire',
        'enseignant_id': enseignant.id,
    }, headers=famille.headers)
    assert r.status_code == 201, r.text
    return r.json()


@pytest.fixture
def course(client, famille, mission):
    r = client.post(f'{API}/courses', json={
        'mission_id': mission['id'],
        'scheduled_time': '2025-09-02T17:00:00',
        'duration': 90,
        'location': 'Domicile',
    }, headers=famille.headers)
    assert r.status_code == 201, r.text
    return r.json()
