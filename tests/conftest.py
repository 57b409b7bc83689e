"""
Shared fixtures.

The database is a throwaway SQLite file created once per test run; every
table is emptied after each test. DATABASE_URL must be set before any
shopledger module is imported, because the engine is built at import time.
"""

import os
import shutil
import tempfile
from pathlib import Path

_DB_DIR = tempfile.mkdtemp(prefix="shopledger-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{Path(_DB_DIR) / 'test.db'}"
os.environ["SECRET_KEY"] = "test-secret-key-that-is-long-enough-for-hs256"
os.environ.pop("FUND_OWNER_ID", None)

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

import shopledger.models  # noqa: E402,F401
from shopledger.core.security import create_access_token, hash_password  # noqa: E402
from shopledger.db.database import Base, SessionLocal, engine  # noqa: E402
from shopledger.main import app  # noqa: E402
from shopledger.models.user import User, UserRole  # noqa: E402
from shopledger.services.workforce import resolve_shop_actor  # noqa: E402

PASSWORD = "secret123"


@pytest.fixture(scope="session", autouse=True)
def _schema():
    """Create every table once for the whole run."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)
    engine.dispose()
    shutil.rmtree(_DB_DIR, ignore_errors=True)


@pytest.fixture(autouse=True)
def _clean_tables():
    """Empty all tables after each test so tests stay independent."""
    yield
    with engine.begin() as conn:
        for table in reversed(Base.metadata.sorted_tables):
            conn.execute(table.delete())


@pytest.fixture
def db():
    """A session for service-level tests; uncommitted work is rolled back."""
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def make_user(db):
    """Factory that persists a user directly, bypassing the HTTP layer."""

    def _make(name: str, role: UserRole = UserRole.WORKER, shop_id: str | None = "shop1") -> User:
        user = User(name=name, password_hash=hash_password(PASSWORD), role=role, shop_id=shop_id)
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture
def admin(make_user):
    return make_user("owner", role=UserRole.ADMIN, shop_id=None)


@pytest.fixture
def worker(make_user):
    return make_user("ravi")


@pytest.fixture
def actor(db, worker):
    """The worker resolved as a shop actor, with its profile materialised."""
    shop_actor = resolve_shop_actor(db, worker)
    db.commit()
    return shop_actor


def bearer(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(subject=str(user.id), role=user.role.value, shop_id=user.shop_id)}"}


@pytest.fixture
def admin_headers(admin):
    return bearer(admin)


@pytest.fixture
def worker_headers(worker):
    return bearer(worker)


@pytest.fixture
def headers_for():
    return bearer
