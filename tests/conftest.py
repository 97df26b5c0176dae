import os
import tempfile
from pathlib import Path
from uuid import uuid4

import pytest

_TEST_DIR = Path(tempfile.mkdtemp(prefix='civicdesk-tests-'))
TEST_DB_URL = os.getenv('TEST_DB_URL', f"sqlite:///{_TEST_DIR / 'test.db'}")
os.environ['DB_URL'] = TEST_DB_URL
os.environ.setdefault('LOG_LEVEL', 'WARNING')

from fastapi.testclient import TestClient
from sqlmodel import Session

from civicdesk.core.config import settings
from civicdesk.db.init_db import init_db
from civicdesk.db.session import engine
from civicdesk.main import app
from civicdesk.models.enums import UserRole
from civicdesk.services.auth_service import get_user_by_email
from civicdesk.services.login_limiter import login_limiter
from civicdesk.services.role_service import grant_role

settings.DB_URL = TEST_DB_URL


@pytest.fixture
def anyio_backend():
    return 'asyncio'


@pytest.fixture(autouse=True)
def _fresh_state():
    init_db(drop_all=True)
    login_limiter.reset()
    yield
    login_limiter.reset()


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def make_user(client):
    """Register and log in a user; returns ``(user_id, auth_headers)``."""

    def _make(role: UserRole = UserRole.CITIZEN, password: str = 'secret123'):
        email = f"{uuid4().hex[:12]}@example.com"
        response = client.post('/api/v1/auth/register', json={'email': email, 'password': password})
        assert response.status_code == 201
        user_id = response.json()['id']
        if role != UserRole.CITIZEN:
            with Session(engine) as session:
                grant_role(session, get_user_by_email(session, email), role)
        login = client.post('/api/v1/auth/login', json={'email': email, 'password': password})
        assert login.status_code == 200
        return user_id, {'Authorization': f"Bearer {login.json()['access_token']}"}

    return _make


@pytest.fixture
def citizen(make_user):
    return make_user()


@pytest.fixture
def employee(make_user):
    return make_user(UserRole.EMPLOYEE)
