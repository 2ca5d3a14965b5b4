from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query

from src.api.deps import (
    get_auth_adapter,
    get_clock,
    get_current_user,
    get_member_repo,
    get_signup_settings,
    get_team_repo,
    get_user_repo,
)
from src.api.schemas import (
    SignupRequest,
    UpdateActiveRequest,
    UpdateRolesRequest,
    UpdateRolesResponse,
    UserResponse,
)
from src.components.roles import (
    ACTIVE_FORBIDDEN,
    FORBIDDEN,
    UpdateActiveInput,
    UpdateRolesInput,
    run_update_active,
    run_update_roles,
)
from src.components.signup import SignupInput, run_signup
from src.config.models import SignupSettings
from src.domain.entities import User
from src.domain.errors import (
    EmailTakenError,
    OpenServerDisabledError,
    SignupDisabledError,
    UsernameTakenError,
)

router = APIRouter()

_SIGNUP_STATUS = {
    SignupDisabledError.message_id: 501,
    OpenServerDisabledError.message_id: 403,
    EmailTakenError.message_id: 409,
    UsernameTakenError.message_id: 409,
}


@router.post("/create", response_model=UserResponse)
def create_user(
    req: SignupRequest,
    d: str | None = Query(default=None, description="Signed invitation payload"),
    h: str | None = Query(default=None, description="Invitation payload signature"),
    iid: str | None = Query(default=None, description="Team invite id"),
    settings: SignupSettings = Depends(get_signup_settings),
    teams: Any = Depends(get_team_repo),
    user_repo: Any = Depends(get_user_repo),
    auth_adapter: Any = Depends(get_auth_adapter),
    clock: Any = Depends(get_clock),
) -> UserResponse:
    """Create an account, optionally from an invitation link (d, h) or team invite id."""
    inp = SignupInput(
        email=req.email,
        username=req.username,
        password=req.password,
        payload=d,
        signature=h,
        invite_id=iid,
    )
    result = run_signup(
        inp,
        teams=teams,
        user_repo=user_repo,
        auth_adapter=auth_adapter,
        settings=settings,
        time=clock,
    )

    if not result.success:
        status_code = _SIGNUP_STATUS.get(result.error_code or "", 400)
        raise HTTPException(
            status_code=status_code,
            detail={"id": result.error_code, "message": result.error},
        )

    return result.user  # type: ignore


@router.post("/update_roles", response_model=UpdateRolesResponse)
def update_roles(
    req: UpdateRolesRequest,
    current_user: User = Depends(get_current_user),
    user_repo: Any = Depends(get_user_repo),
    team_repo: Any = Depends(get_team_repo),
    member_repo: Any = Depends(get_member_repo),
) -> UpdateRolesResponse:
    """Grant or revoke team admin / system admin."""
    inp = UpdateRolesInput(
        actor=current_user,
        target_user_id=req.user_id,
        new_roles=req.new_roles,
        team_id=req.team_id or None,
    )
    result = run_update_roles(
        inp,
        user_repo=user_repo,
        team_repo=team_repo,
        member_repo=member_repo,
    )

    if not result.success:
        if result.error_code == FORBIDDEN:
            raise HTTPException(status_code=403, detail={"id": FORBIDDEN, "message": result.error})
        raise HTTPException(
            status_code=400, detail={"id": result.error_code, "message": result.error}
        )

    assert result.user is not None
    return UpdateRolesResponse(
        user_id=result.user.id,
        roles=list(result.user.roles),
        team_id=result.member.team_id if result.member else None,
        team_roles=list(result.member.roles) if result.member else None,
    )


@router.post("/update_active", response_model=UserResponse)
def update_active(
    req: UpdateActiveRequest,
    current_user: User = Depends(get_current_user),
    user_repo: Any = Depends(get_user_repo),
    team_repo: Any = Depends(get_team_repo),
    member_repo: Any = Depends(get_member_repo),
) -> UserResponse:
    """Deactivate or reactivate a user. Deactivated users cannot log in."""
    result = run_update_active(
        UpdateActiveInput(
            actor=current_user,
            target_user_id=req.user_id,
            active=req.active,
            team_id=req.team_id or None,
        ),
        user_repo=user_repo,
        team_repo=team_repo,
        member_repo=member_repo,
    )

    if not result.success:
        raise HTTPException(
            status_code=403, detail={"id": ACTIVE_FORBIDDEN, "message": result.error}
        )

    return result.user  # type: ignore
