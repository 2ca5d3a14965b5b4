from pathlib import Path

import pytest

from src.adapters.sqlite.migrator import SQLiteMigrator
from src.adapters.sqlite.repos import SQLiteTeamMemberRepo, SQLiteTeamRepo, SQLiteUserRepo

PROJECT_ROOT = Path(__file__).resolve().parent.parent
MIGRATIONS_DIR = PROJECT_ROOT / "migrations"


@pytest.fixture
def db_path(tmp_path):
    """A fresh SQLite database with all migrations applied."""
    path = str(tmp_path / "teamsignup.db")
    SQLiteMigrator(path, str(MIGRATIONS_DIR)).run_migrations()
    return path


@pytest.fixture
def user_repo(db_path):
    return SQLiteUserRepo(db_path)


@pytest.fixture
def team_repo(db_path):
    return SQLiteTeamRepo(db_path)


@pytest.fixture
def member_repo(db_path):
    return SQLiteTeamMemberRepo(db_path)
