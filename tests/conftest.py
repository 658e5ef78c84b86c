# tests/conftest.py

import os

# Settings are read at import time, so the environment must be ready first.
os.environ.setdefault("DATABASE_URL_LOCAL", "sqlite://")
os.environ.setdefault("JWT_SECRET", "test-jwt-secret")
os.environ.setdefault("INTERNAL_API_KEY", "test-internal-key")
os.environ.setdefault("SCHEDULER_ENABLED", "false")
os.environ.setdefault("BROADCAST_CREATE_RATE_LIMIT", "1000/minute")
os.environ.setdefault("PRICING_SUBMIT_RATE_LIMIT", "1000/minute")

import pytest
from unittest.mock import MagicMock, patch
from starlette.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from broadcast_service.main import app
from broadcast_service.api import deps
from broadcast_service.db.base_class import Base
from broadcast_service.core.kafka_producer import get_kafka_producer
import broadcast_service.models  # noqa: F401  registers every table


# --- Database ---
# A file-backed SQLite database per test, so separate threads get separate
# connections to the same data.

@pytest.fixture(scope="function")
def engine(tmp_path):
    db_engine = create_engine(
        f"sqlite:///{tmp_path / 'broadcast_test.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(bind=db_engine)
    yield db_engine
    Base.metadata.drop_all(bind=db_engine)
    db_engine.dispose()


@pytest.fixture(scope="function")
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


# --- Mock Dependencies Setup ---

@pytest.fixture(autouse=True)
def redis_mock():
    """In-app notifications go to a mock instead of a live Redis."""
    with patch("broadcast_service.utils.broadcast_notifications.redis_client") as mock_redis:
        yield mock_redis


@pytest.fixture
def kafka_producer():
    return MagicMock()


# --- Test Client Fixtures ---

@pytest.fixture(scope="function")
def client(session_factory, kafka_producer):
    """
    TestClient backed by the per-test SQLite database, with Kafka mocked.
    Authentication uses real tokens from tests.utils.auth.
    """

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    def override_get_kafka_producer():
        yield kafka_producer

    app.dependency_overrides[deps.get_db] = override_get_db
    app.dependency_overrides[get_kafka_producer] = override_get_kafka_producer

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
