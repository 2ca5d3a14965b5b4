import os
from functools import lru_cache
from pathlib import Path
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer

from src.adapters.auth.crypto import PasslibAuthAdapter
from src.adapters.clock import SystemClock
from src.adapters.sqlite.repos import SQLiteTeamMemberRepo, SQLiteTeamRepo, SQLiteUserRepo
from src.api.tokens import read_token_subject
from src.config.loader import load_config
from src.config.models import AppConfig, SignupSettings
from src.domain.entities import User

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent


# --- Settings ---
class Settings:
    def __init__(self) -> None:
        self.base_dir = Path(os.getcwd())
        data_dir = os.environ.get("TEAMSIGNUP_DATA_DIR", "./data")
        self.db_path = f"{data_dir}/teamsignup.db"
        self.settings_path = Path(
            os.environ.get("TEAMSIGNUP_SETTINGS", str(PROJECT_ROOT / "settings.yaml"))
        )
        self.migrations_dir = PROJECT_ROOT / "migrations"


@lru_cache
def get_settings() -> Settings:
    return Settings()


# --- Config ---
def get_app_config(settings: Settings = Depends(get_settings)) -> AppConfig:
    # Read on every request: the file is the live configuration
    return load_config(settings.settings_path)


def get_signup_settings(config: AppConfig = Depends(get_app_config)) -> SignupSettings:
    return config.signup


# --- Repos ---
def get_user_repo(settings: Settings = Depends(get_settings)) -> SQLiteUserRepo:
    return SQLiteUserRepo(settings.db_path)


def get_team_repo(settings: Settings = Depends(get_settings)) -> SQLiteTeamRepo:
    return SQLiteTeamRepo(settings.db_path)


def get_member_repo(settings: Settings = Depends(get_settings)) -> SQLiteTeamMemberRepo:
    return SQLiteTeamMemberRepo(settings.db_path)


# --- Adapters ---
def get_auth_adapter() -> PasslibAuthAdapter:
    return PasslibAuthAdapter()


_clock_instance: SystemClock | None = None


def get_clock() -> SystemClock:
    """Get clock singleton."""
    global _clock_instance
    if _clock_instance is None:
        _clock_instance = SystemClock()
    return _clock_instance


# --- Auth ---
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


def _token_from_request(request: Request, header_token: str | None) -> str | None:
    cookie_token = request.cookies.get("access_token")
    if cookie_token and cookie_token.startswith("Bearer "):
        return cookie_token.split(" ", 1)[1]
    return header_token


async def get_optional_user(
    request: Request,
    token: Annotated[str | None, Depends(oauth2_scheme)],
    user_repo: SQLiteUserRepo = Depends(get_user_repo),
) -> User | None:
    """Resolve the caller, or None. Roles are read from the store, never the token."""
    token = _token_from_request(request, token)
    if not token:
        return None

    uid = read_token_subject(token)
    if uid is None:
        return None

    user = user_repo.get_by_id(uid)
    if user is None or user.status != "active":
        return None
    return user


async def get_current_user(user: User | None = Depends(get_optional_user)) -> User:
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user
