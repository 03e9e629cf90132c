"""Pytest configuration helpers for the Userdesk test suite."""

import os
import sys
from pathlib import Path

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

# Must be set before config.get_settings() is first called (main.py calls it at import)
os.environ["FASTAPI_ENV"] = "testing"

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from config import TestingSettings  # noqa: E402
from main import create_app  # noqa: E402
from userdesk.database.models import Base  # noqa: E402
from userdesk.database.repository import UserRepository  # noqa: E402
from userdesk.user_management.forms import FormValidator  # noqa: E402
from userdesk.user_management.security import PasswordEncoder  # noqa: E402
from userdesk.user_management.service import UserService  # noqa: E402

IN_MEMORY_URL = "sqlite+aiosqlite:///:memory:"


def make_payload(**overrides):
    """A valid user form body; keyword arguments replace or add fields."""
    payload = {
        "username": "alice",
        "email": "alice@example.com",
        "plainPassword": "secret123",
    }
    payload.update(overrides)
    return payload


@pytest.fixture()
def settings():
    return TestingSettings(DATABASE_URL=IN_MEMORY_URL)


@pytest.fixture()
def app(settings):
    return create_app(settings)


@pytest.fixture()
def client(app):
    # TestClient runs the lifespan, which creates the tables
    with TestClient(app, base_url="http://localhost") as c:
        yield c


@pytest.fixture()
def encoder():
    return PasswordEncoder(["pbkdf2_sha256"])


@pytest.fixture()
def validator():
    return FormValidator()


@pytest_asyncio.fixture()
async def db_session():
    engine = create_async_engine(IN_MEMORY_URL, poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_maker = async_sessionmaker(engine, expire_on_commit=False)
    async with session_maker() as session:
        yield session

    await engine.dispose()


@pytest.fixture()
def repository(db_session):
    return UserRepository(db_session)


@pytest.fixture()
def service(repository, encoder, validator):
    return UserService(repository, encoder, validator, form_error_status=400)
