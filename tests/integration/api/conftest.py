from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import pytest
import yaml
from fastapi.testclient import TestClient

from src.adapters.auth.crypto import PasslibAuthAdapter
from src.adapters.clock import FixedClock
from src.adapters.sqlite.migrator import SQLiteMigrator
from src.adapters.sqlite.repos import SQLiteTeamMemberRepo, SQLiteTeamRepo, SQLiteUserRepo
from src.api.deps import Settings, get_clock, get_settings
from src.api.main import app
from src.domain.entities import Team, TeamMember, User

NOW = datetime(2024, 6, 15, 12, 0, 0, tzinfo=UTC)
NOW_MS = int(NOW.timestamp() * 1000)
SALT = "fake salt"
PASSWORD = "passwd1"


def write_settings(path: Path, **signup: Any) -> None:
    """Write a settings file; keyword arguments override signup defaults."""
    block = {"invite_salt": SALT, "site_url": "http://testserver"}
    block.update(signup)
    path.write_text(yaml.safe_dump({"signup": block}))


# --- Fixtures ---
@pytest.fixture
def settings_path(tmp_path):
    path = tmp_path / "settings.yaml"
    write_settings(path)
    return path


@pytest.fixture
def test_db_path(tmp_path):
    d = tmp_path / "data"
    d.mkdir()
    return str(d / "test.db")


@pytest.fixture
def api_settings(test_db_path, settings_path):
    s = Settings()
    s.db_path = test_db_path
    s.settings_path = settings_path
    # The lifespan only runs inside `with TestClient(...)`; migrate up front
    SQLiteMigrator(s.db_path, str(s.migrations_dir)).run_migrations()
    return s


@pytest.fixture
def clock():
    return FixedClock(NOW)


@pytest.fixture
def client(api_settings, clock):
    app.dependency_overrides[get_settings] = lambda: api_settings
    app.dependency_overrides[get_clock] = lambda: clock
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def users(test_db_path):
    return SQLiteUserRepo(test_db_path)


@pytest.fixture
def teams(test_db_path):
    return SQLiteTeamRepo(test_db_path)


@pytest.fixture
def members(test_db_path):
    return SQLiteTeamMemberRepo(test_db_path)


@pytest.fixture
def make_user(users):
    def _make(name: str, sysadmin: bool = False, status: str = "active") -> User:
        user = User(
            email=f"{name}@example.com",
            username=name,
            password_hash=PasslibAuthAdapter().hash_password(PASSWORD),
            roles=["system_admin"] if sysadmin else [],
            status=status,  # type: ignore[arg-type]
        )
        users.save(user)
        return user

    return _make


@pytest.fixture
def make_team(teams, members):
    def _make(name: str, *member_list: User, admins: tuple[User, ...] = ()) -> Team:
        team = Team(name=name, display_name=name.title())
        teams.save(team)
        for user in member_list:
            members.save(TeamMember(team_id=team.id, user_id=user.id))
        for user in admins:
            members.save(TeamMember(team_id=team.id, user_id=user.id, roles=["admin"]))
        return team

    return _make


@pytest.fixture
def login(client):
    """Log in and return bearer headers; cookies are dropped so headers decide."""

    def _login(user: User) -> dict[str, str]:
        resp = client.post(
            "/api/auth/login", data={"username": user.username, "password": PASSWORD}
        )
        assert resp.status_code == 200, resp.text
        client.cookies.clear()
        return {"Authorization": f"Bearer {resp.json()['access_token']}"}

    return _login



@pytest.fixture
def configure(settings_path):
    """Rewrite the settings file; it is re-read on every request."""

    def _configure(**signup: Any) -> None:
        write_settings(settings_path, **signup)

    return _configure
