"""
Test configuration for pytest
"""

import pytest
import os
import uuid
from datetime import timedelta
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, Session
from typing import Callable, Generator, Optional

# Test environment variables
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET_KEY"] = "test-jwt-secret"
os.environ["DEBUG"] = "false"
os.environ["SEED_ACCESS_RULES_ON_STARTUP"] = "false"
os.environ["ACCESS_RULES_FAIL_OPEN"] = "false"

from fastapi.testclient import TestClient  # noqa: E402

import app.models  # noqa: E402,F401
from app.core.auth import create_access_token  # noqa: E402
from app.core.database import get_session  # noqa: E402
from app.main import app as fastapi_app  # noqa: E402


# Single shared in-memory SQLite connection across threads
test_engine = create_engine(
    "sqlite://",
    echo=False,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """Create a clean database session for each test"""
    SQLModel.metadata.create_all(test_engine)

    with Session(test_engine) as session:
        yield session

    SQLModel.metadata.drop_all(test_engine)


@pytest.fixture(scope="function")
def client(db: Session) -> Generator[TestClient, None, None]:
    """API client whose requests use the test session"""
    def override_get_session():
        yield db

    fastapi_app.dependency_overrides[get_session] = override_get_session
    yield TestClient(fastapi_app)
    fastapi_app.dependency_overrides.clear()


@pytest.fixture
def make_token() -> Callable[..., str]:
    """Factory for signed bearer tokens"""
    def _make_token(
        role: Optional[str],
        user_id: Optional[str] = None,
        email: Optional[str] = None,
        expires_delta: Optional[timedelta] = None,
    ) -> str:
        return create_access_token(
            user_id=user_id or str(uuid.uuid4()),
            role=role,
            email=email,
            expires_delta=expires_delta,
        )
    return _make_token


@pytest.fixture
def auth_headers(make_token) -> Callable[..., dict]:
    """Factory for Authorization headers"""
    def _auth_headers(role: Optional[str], user_id: Optional[str] = None, **kwargs) -> dict:
        return {"Authorization": f"Bearer {make_token(role, user_id=user_id, **kwargs)}"}
    return _auth_headers
