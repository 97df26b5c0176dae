from uuid import uuid4

from sqlmodel import Session

from civicdesk.db.session import engine
from civicdesk.models.enums import UserRole
from civicdesk.services.role_service import has_role, revoke_role


def test_register_login_refresh(client):
    email = f"{uuid4()}@b.com"
    r = client.post('/api/v1/auth/register', json={'email': email, 'password': 'secret123', 'full_name': 'Ana'})
    assert r.status_code == 201
    assert r.json()['role'] == 'citizen'
    assert r.json()['roles'] == ['citizen']

    login = client.post('/api/v1/auth/login', json={'email': email.upper(), 'password': 'secret123'})
    assert login.status_code == 200
    refresh_token = login.json()['refresh_token']

    refresh = client.post('/api/v1/auth/refresh', json={'refresh_token': refresh_token})
    assert refresh.status_code == 200

    reused = client.post('/api/v1/auth/refresh', json={'refresh_token': refresh_token})
    assert reused.status_code == 401


def test_register_rejects_duplicate_email(client):
    email = f"{uuid4()}@b.com"
    client.post('/api/v1/auth/register', json={'email': email, 'password': 'secret123'})
    response = client.post('/api/v1/auth/register', json={'email': email, 'password': 'secret123'})
    assert response.status_code == 400


def test_me_returns_roles(client, employee):
    _, headers = employee
    response = client.get('/api/v1/auth/me', headers=headers)
    assert response.status_code == 200
    body = response.json()
    assert body['role'] == 'employee'
    assert set(body['roles']) == {'citizen', 'employee'}


def test_login_errors_do_not_reveal_account_existence(client):
    email = f"{uuid4()}@b.com"
    client.post('/api/v1/auth/register', json={'email': email, 'password': 'secret123'})

    missing = client.post('/api/v1/auth/login', json={'email': 'missing@b.com', 'password': 'secret123'})
    wrong = client.post('/api/v1/auth/login', json={'email': email, 'password': 'wrongpass'})
    assert missing.status_code == wrong.status_code == 401
    assert missing.json()['detail'] == wrong.json()['detail'] == 'Invalid credentials'


def test_login_requires_email_and_password(client):
    response = client.post('/api/v1/auth/login', json={'email': '', 'password': ''})
    assert response.status_code == 400


def test_login_locks_after_repeated_failures(client):
    email = f"{uuid4()}@b.com"
    client.post('/api/v1/auth/register', json={'email': email, 'password': 'secret123'})

    for _ in range(3):
        response = client.post('/api/v1/auth/login', json={'email': email, 'password': 'wrongpass'})
        assert response.status_code == 401

    locked = client.post('/api/v1/auth/login', json={'email': email, 'password': 'secret123'})
    assert locked.status_code == 401
    assert locked.json()['detail'] == 'Invalid credentials'

    other_ip = client.post(
        '/api/v1/auth/login',
        json={'email': email, 'password': 'secret123'},
        headers={'X-Forwarded-For': '203.0.113.9'},
    )
    assert other_ip.status_code == 200


def test_success_clears_failure_count(client):
    email = f"{uuid4()}@b.com"
    client.post('/api/v1/auth/register', json={'email': email, 'password': 'secret123'})
    for _ in range(2):
        client.post('/api/v1/auth/login', json={'email': email, 'password': 'wrongpass'})
    assert client.post('/api/v1/auth/login', json={'email': email, 'password': 'secret123'}).status_code == 200
    for _ in range(2):
        client.post('/api/v1/auth/login', json={'email': email, 'password': 'wrongpass'})
    assert client.post('/api/v1/auth/login', json={'email': email, 'password': 'secret123'}).status_code == 200


def test_employee_check_reads_role_grants(client, employee):
    user_id, headers = employee
    with Session(engine) as session:
        assert has_role(session, user_id, UserRole.EMPLOYEE)
        revoke_role(session, user_id, UserRole.EMPLOYEE)

    # The display role still says employee; the grant table decides.
    response = client.post('/api/v1/classify', json={'type': 'issue', 'id': 1, 'status': 'resolved'}, headers=headers)
    assert response.status_code == 403
