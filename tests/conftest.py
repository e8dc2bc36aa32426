import os
import tempfile
from pathlib import Path

import pytest
from sqlalchemy import create_engine, text
from sqlalchemy.exc import OperationalError
from sqlalchemy.engine import make_url

_TEST_DB_DIR = Path(tempfile.mkdtemp(prefix='booking-sessions-'))
DEFAULT_TEST_DB_URL = f"sqlite:///{_TEST_DB_DIR / 'test.db'}"
TEST_DB_URL = os.getenv("TEST_DB_URL", DEFAULT_TEST_DB_URL)
os.environ["DB_URL"] = TEST_DB_URL
os.environ["JWT_SECRET_KEY"] = "test-secret-key-that-is-at-least-32-bytes"
os.environ.setdefault("LOG_LEVEL", "WARNING")

from sqlmodel import Session  # noqa: E402

from app.db.init_db import init_db  # noqa: E402
from app.db.session import engine  # noqa: E402
from app.models.enums import UserRole  # noqa: E402
from app.models.user import User  # noqa: E402
from app.services.auth_service import hash_password  # noqa: E402


def _ensure_mysql_database(url: str) -> None:
    parsed_url = make_url(url)
    if not parsed_url.drivername.startswith("mysql"):
        return
    database = parsed_url.database
    if not database:
        raise RuntimeError("TEST_DB_URL must include a database name.")
    test_engine = create_engine(parsed_url, pool_pre_ping=True)
    try:
        with test_engine.connect() as connection:
            connection.execute(text("SELECT 1"))
            return
    except OperationalError as exc:
        if "Unknown database" not in str(exc):
            raise
    finally:
        test_engine.dispose()

    admin_url = os.getenv("TEST_DB_ADMIN_URL")
    if admin_url:
        admin_engine = create_engine(admin_url, pool_pre_ping=True)
    else:
        server_url = parsed_url.set(database="mysql")
        admin_engine = create_engine(server_url, pool_pre_ping=True)
    with admin_engine.connect() as connection:
        connection.execute(
            text(
                f"CREATE DATABASE IF NOT EXISTS `{database}` "
                "CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci"
            )
        )
    admin_engine.dispose()


@pytest.fixture(autouse=True, scope="session")
def _configure_test_database():
    _ensure_mysql_database(TEST_DB_URL)
    yield


@pytest.fixture(autouse=True)
def _reset_tables():
    init_db(drop_all=True)
    yield


@pytest.fixture
def session():
    with Session(engine) as db_session:
        yield db_session


@pytest.fixture
def make_user(session):
    counter = {"n": 0}

    def _make_user(email=None, role=UserRole.CUSTOMER, password="Secret1!", is_active=True) -> User:
        counter["n"] += 1
        user = User(
            email=email or f"user{counter['n']}@b.com",
            hashed_password=hash_password(password),
            first_name="Test",
            last_name="User",
            role=role,
            is_active=is_active,
        )
        session.add(user)
        session.commit()
        session.refresh(user)
        return user

    return _make_user


