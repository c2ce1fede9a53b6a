from datetime import datetime, timedelta
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from tenant_auth.auth import AuthGateway
from tenant_auth.config import Settings
from tenant_auth.database import Database
from tenant_auth.main import create_app
from tenant_auth.sessions import SessionStore
from tenant_auth.users import CredentialStore

COOKIE_NAME = "auth.session_token"


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime = datetime(2026, 1, 1, 12, 0, 0)):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    return Settings(
        _env_file=None,
        environment="test",
        database_url=f"sqlite:///{tmp_path / 'auth.db'}",
        log_level="WARNING",
    )


@pytest.fixture()
def database(settings: Settings):
    db = Database(settings.database_url)
    db.create_all()
    yield db
    db.dispose()


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def users(database: Database) -> CredentialStore:
    return CredentialStore(database)


@pytest.fixture()
def sessions(database: Database, clock: FakeClock) -> SessionStore:
    return SessionStore(database, ttl=timedelta(days=30), clock=clock)


@pytest.fixture()
def gateway(users: CredentialStore, sessions: SessionStore) -> AuthGateway:
    return AuthGateway(users, sessions)


@pytest.fixture()
def app(settings: Settings):
    return create_app(settings)


@pytest.fixture()
def client(app):
    # Context manager runs the lifespan, which creates the tables
    with TestClient(app) as c:
        yield c


def cookie_header(token: str) -> dict:
    return {"Cookie": f"{COOKIE_NAME}={token}"}


def set_cookie_headers(response) -> list:
    return [h.lower() for h in response.headers.get_list("set-cookie")]
