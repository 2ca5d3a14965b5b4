from datetime import timedelta
from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, Response, status
from fastapi.security import OAuth2PasswordRequestForm
from pydantic import BaseModel

from src.api.deps import get_app_config, get_auth_adapter, get_current_user, get_user_repo
from src.api.tokens import issue_access_token
from src.components.auth import LoginInput, run_login
from src.config.models import AppConfig
from src.domain.entities import User

router = APIRouter()


class Token(BaseModel):
    access_token: str
    token_type: str


@router.post("/login", response_model=Token)
async def login_for_access_token(
    response: Response,
    form_data: Annotated[OAuth2PasswordRequestForm, Depends()],
    user_repo: Any = Depends(get_user_repo),
    auth_adapter: Any = Depends(get_auth_adapter),
    config: AppConfig = Depends(get_app_config),
) -> Token:
    """Authenticate by email or username and return an access token."""
    result = run_login(
        LoginInput(login_id=form_data.username, password=form_data.password),
        user_repo=user_repo,
        auth_adapter=auth_adapter,
    )
    if not result.success or result.user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    ttl_minutes = config.auth.access_token_expire_minutes
    access_token = issue_access_token(result.user.id, timedelta(minutes=ttl_minutes))

    # Set HttpOnly Cookie
    response.set_cookie(
        key="access_token",
        value=f"Bearer {access_token}",
        httponly=True,
        max_age=ttl_minutes * 60,
        expires=ttl_minutes * 60,
        samesite="lax",
        secure=config.auth.cookie_secure,
    )

    return Token(access_token=access_token, token_type="bearer")


@router.post("/logout")
def logout(response: Response) -> dict[str, str]:
    """Log out user by clearing cookie."""
    response.delete_cookie(key="access_token")
    return {"status": "success"}


@router.get("/me")
def read_users_me(
    current_user: User = Depends(get_current_user),
) -> dict[str, Any]:
    """Get current user info."""
    return {
        "id": str(current_user.id),
        "email": current_user.email,
        "username": current_user.username,
        "roles": current_user.roles,
    }
