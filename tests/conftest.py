import os

os.environ.setdefault('JWT_SECRET_KEY', 'test-jwt-secret-key-for-testing-only-0123456789')
os.environ.setdefault('DATABASE_URL', 'memory://')
os.environ.setdefault('BCRYPT_ROUNDS', '4')

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from backend.core import config  # noqa: E402
from backend.main import create_app  # noqa: E402
from backend.repositories.memory_repository import InMemoryRepository  # noqa: E402
from backend.repositories.sql_repository import SqlRepository  # noqa: E402

ADMIN_EMAIL = 'admin@university.edu'
ADMIN_PASSWORD = 'admin123'


@pytest.fixture(autouse=True)
def fast_test_config(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(config, 'BCRYPT_ROUNDS', 4)
    monkeypatch.setattr(config, 'JWT_SECRET_KEY', 'test-jwt-secret-key-for-testing-only-0123456789')
    monkeypatch.setattr(config, 'SEED_ADMIN_EMAIL', ADMIN_EMAIL)
    monkeypatch.setattr(config, 'SEED_ADMIN_PASSWORD', ADMIN_PASSWORD)


@pytest.fixture
def memory_repository():
    repository = InMemoryRepository(seed_admin=True)
    repository.connect()
    yield repository
    repository.close()


@pytest.fixture
def sql_repository():
    repository = SqlRepository(database_url='sqlite://', seed_admin=True)
    repository.connect()
    yield repository
    repository.close()


@pytest.fixture(params=['memory', 'sql'])
def repository(request):
    return request.getfixturevalue(f'{request.param}_repository')


@pytest.fixture
def api_client(memory_repository):
    with TestClient(create_app(memory_repository)) as client:
        yield client


@pytest.fixture
def auth_headers(api_client) -> dict[str, str]:
    response = api_client.post('/api/auth/login', json={'email': ADMIN_EMAIL, 'password': ADMIN_PASSWORD})
    assert response.status_code == 200
    return {'Authorization': f"Bearer {response.json()['token']}"}


@pytest.fixture
def student_payload():
    def build(**overrides) -> dict:
        payload = {
            'firstName': 'Ada',
            'lastName': 'Lovelace',
            'email': 'ada@university.edu',
            'course': 'Computer Science',
            'status': 'active',
            'enrollmentDate': '2024-09-01',
        }
        payload.update(overrides)
        return payload

    return build
