import os

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

os.environ.setdefault('DATABASE_URL', 'sqlite:///:memory:')
os.environ.setdefault('JWT_SECRET_KEY', 'test-secret')
os.environ.setdefault('BCRYPT_ROUNDS', '4')

from useraccounts.auth.passwords import PasswordHasher  # noqa: E402
from useraccounts.data.user_repository import SqlUserRepository  # noqa: E402
from useraccounts.data.user_service import UserService  # noqa: E402
from useraccounts.database import Base, build_session_factory, init_schema  # noqa: E402
from useraccounts.main import create_app  # noqa: E402


@pytest.fixture
def db_engine():
    engine = create_engine(
        'sqlite:///:memory:',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    init_schema(engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def repository(db_engine) -> SqlUserRepository:
    return SqlUserRepository(build_session_factory(db_engine))


@pytest.fixture
def hasher() -> PasswordHasher:
    return PasswordHasher(rounds=4)


@pytest.fixture
def service(repository, hasher) -> UserService:
    return UserService(repository, hasher)


@pytest.fixture
def client(service):
    with TestClient(create_app(service)) as test_client:
        yield test_client
