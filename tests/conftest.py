import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app.api.participants import schemas as participant_schemas
from app.api.participants.crud import participant as participant_crud
from app.api.volunteers import schemas as volunteer_schemas
from app.api.volunteers.crud import volunteer as volunteer_crud
from app.core import models  # noqa: F401
from app.core.config import Environment, settings
from app.core.database import Base
from app.core.store.base import Collection
from app.core.store.factory import get_store
from app.core.store.memory import InMemoryStore
from app.core.store.sql import SQLStore
from main import app

CHECK_IN_HEADERS = {'x-api-key': 'test_check_in_api_key'}
ADMIN_HEADERS = {'x-api-key': 'test_admin_api_key'}


@pytest.fixture(scope='session', autouse=True)
def check_test_environment():
    if settings.ENVIRONMENT != Environment.TEST:
        raise RuntimeError(
            f'Tests can only be executed in test environment. Current environment: {settings.ENVIRONMENT}'
        )


@pytest.fixture(scope='session', autouse=True)
def setup_test_api_keys():
    """Set default API keys for testing to avoid None values in headers"""
    original_check_in_key = settings.CHECK_IN_API_KEY
    original_admin_key = settings.ADMIN_API_KEY

    settings.CHECK_IN_API_KEY = 'test_check_in_api_key'
    settings.ADMIN_API_KEY = 'test_admin_api_key'

    yield

    settings.CHECK_IN_API_KEY = original_check_in_key
    settings.ADMIN_API_KEY = original_admin_key


@pytest.fixture(scope='function')
def test_db_url(tmp_path):
    """File-backed sqlite database, so every session gets its own connection"""
    return f'sqlite:///{tmp_path / "check_in_test.db"}'


@pytest.fixture(scope='function')
def sql_engines(test_db_url):
    """Factory for independent engines on the test database"""
    engines = []

    def _create_engine():
        engine = create_engine(test_db_url, connect_args={'check_same_thread': False})
        Base.metadata.create_all(bind=engine)
        engines.append(engine)
        return engine

    yield _create_engine
    for engine in engines:
        engine.dispose()


def make_sql_store(engine) -> SQLStore:
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    return SQLStore(TestingSessionLocal)


@pytest.fixture(scope='function')
def sql_store(sql_engines):
    return make_sql_store(sql_engines())


@pytest.fixture(scope='function')
def memory_store():
    return InMemoryStore()


@pytest.fixture(params=['memory', 'sql'])
def store(request):
    """Runs the test once against each store implementation"""
    if request.param == 'sql':
        return request.getfixturevalue('sql_store')
    return request.getfixturevalue('memory_store')


@pytest.fixture(scope='function')
def client(memory_store):
    app.dependency_overrides[get_store] = lambda: memory_store
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def participant_data(n: int) -> dict:
    return {
        'name': f'Participant {n}',
        'email': f'participant{n}@example.com',
        'college_id': f'CS{n:03d}',
        'college': 'Test University',
        'phone': f'+1555000{n:04d}',
    }


@pytest.fixture
def create_participant(store):
    """Factory fixture to register participants in the current store"""

    async def _create_participant(n: int = 1, **overrides):
        data = {**participant_data(n), **overrides}
        return await participant_crud.register(
            store, participant_schemas.ParticipantCreate(**data)
        )

    return _create_participant


@pytest.fixture
def insert_participant(store):
    """Inserts a participant with a fixed id, bypassing registration"""

    async def _insert_participant(participant_id: str, n: int = 1, **overrides):
        record = {
            **participant_data(n),
            'id': participant_id,
            'qr_code_payload': participant_id,
            **overrides,
        }
        await store.insert(Collection.PARTICIPANTS, record)
        return await participant_crud.get(store, participant_id)

    return _insert_participant


@pytest_asyncio.fixture
async def test_volunteer(store):
    return await volunteer_crud.register(
        store,
        volunteer_schemas.VolunteerCreate(
            name='Test Volunteer', email='volunteer@example.com', volunteer_id='V1'
        ),
    )
