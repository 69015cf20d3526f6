import os
from contextlib import redirect_stderr, redirect_stdout
from io import StringIO
from pathlib import Path

import pytest
from alembic import command
from alembic.config import Config

# Ensure tests run against SQLite when DATABASE_URL is not defined
os.environ.setdefault("DATABASE_URL", "sqlite:////tmp/gymflow_test.db")

from fastapi.testclient import TestClient  # noqa: E402

from gymflow.config import Settings  # noqa: E402
from gymflow.db import SessionLocal, init_db  # noqa: E402
from gymflow.main import app  # noqa: E402
from gymflow.models import Base  # noqa: E402
from gymflow.repositories import Store  # noqa: E402
from gymflow.services.members import MemberService  # noqa: E402
from gymflow.services.subscriptions import SubscriptionManager  # noqa: E402

from tests.helpers import DAY, NOW  # noqa: E402


def _sqlite_path(db_url: str) -> Path | None:
    if db_url.startswith("sqlite:///"):
        return Path(db_url.replace("sqlite:///", ""))
    return None


def _upgrade_head() -> None:
    cfg_path = Path(__file__).resolve().parent.parent / "alembic.ini"
    stdout_buf, stderr_buf = StringIO(), StringIO()
    try:
        with redirect_stdout(stdout_buf), redirect_stderr(stderr_buf):
            command.upgrade(Config(str(cfg_path)), "head")
    except Exception as exc:
        print("Alembic upgrade failed:", exc)
        print("stdout:\n", stdout_buf.getvalue())
        print("stderr:\n", stderr_buf.getvalue())
        raise


@pytest.fixture(scope="session", autouse=True)
def apply_migrations():
    """Build a fresh schema from the migrations; drop the SQLite file afterwards."""
    db_path = _sqlite_path(os.environ["DATABASE_URL"])
    if db_path is not None and db_path.exists():
        db_path.unlink()
    _upgrade_head()
    init_db(Settings())
    yield
    if db_path is not None and db_path.exists():
        db_path.unlink()


@pytest.fixture(autouse=True)
def clean_tables(apply_migrations):
    """Start every test from empty tables."""
    with SessionLocal() as session:
        for table in reversed(Base.metadata.sorted_tables):
            session.execute(table.delete())
        session.commit()
    yield


@pytest.fixture(scope="module")
def client(apply_migrations):
    """Yields a TestClient with lifespan events."""
    with TestClient(app) as client:
        yield client


@pytest.fixture
def settings():
    return Settings()


@pytest.fixture
def store():
    with SessionLocal() as session:
        yield Store(session)


@pytest.fixture
def make_member(store, settings):
    """Register a member; keyword arguments override the defaults."""

    def _make(**overrides):
        values = {
            "name": "Test Member",
            "phone": "01001234567",
            "gender": "female",
            "now": NOW - 60 * DAY,
        }
        values.update(overrides)
        return MemberService(store, settings).register(**values)

    return _make


@pytest.fixture
def make_subscription(store, settings):
    """Create an active subscription, by default started at ``NOW``."""

    def _make(member, plan_months=1, start_date=NOW, **kwargs):
        return SubscriptionManager(store, settings).create_subscription(
            member.id, plan_months, start_date=start_date, now=start_date, **kwargs
        )

    return _make
