import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException

from src.api.deps import get_clock, get_current_user, get_member_repo, get_signup_settings, get_team_repo
from src.api.schemas import InviteLinkRequest, InviteLinkResponse, TeamCreateRequest, TeamResponse
from src.components.invite import INVITE_FORBIDDEN, CreateLinkInput, run_create_link
from src.config.models import SignupSettings
from src.domain.entities import Team, TeamMember, User

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", response_model=TeamResponse)
def create_team(
    req: TeamCreateRequest,
    current_user: User = Depends(get_current_user),
    team_repo: Any = Depends(get_team_repo),
    member_repo: Any = Depends(get_member_repo),
    clock: Any = Depends(get_clock),
) -> TeamResponse:
    """Create a team; the creator joins it as team admin."""
    if team_repo.name_exists(req.name):
        raise HTTPException(status_code=409, detail="A team with that name already exists")

    now = clock.now_utc()
    team = Team(
        name=req.name,
        display_name=req.display_name,
        email=req.email or current_user.email,
        type=req.type,
        allowed_domains=req.allowed_domains,
        created_at=now,
        updated_at=now,
    )
    team_repo.save(team)
    member_repo.save(
        TeamMember(team_id=team.id, user_id=current_user.id, roles=["admin"], created_at=now)
    )
    logger.info("Team %s created by %s", team.id, current_user.id)
    return team  # type: ignore


@router.post("/{team_id}/invite_link", response_model=InviteLinkResponse)
def create_invite_link(
    team_id: str,
    req: InviteLinkRequest,
    current_user: User = Depends(get_current_user),
    team_repo: Any = Depends(get_team_repo),
    member_repo: Any = Depends(get_member_repo),
    settings: SignupSettings = Depends(get_signup_settings),
    clock: Any = Depends(get_clock),
) -> InviteLinkResponse:
    """Issue a signed 24-hour signup link for an e-mail address."""
    result = run_create_link(
        CreateLinkInput(creator=current_user, team_id=team_id, email=req.email),
        team_repo=team_repo,
        member_repo=member_repo,
        settings=settings,
        time=clock,
    )
    if not result.success:
        status_code = 403 if result.error_code == INVITE_FORBIDDEN else 400
        raise HTTPException(status_code=status_code, detail=result.error)

    return InviteLinkResponse(d=result.payload or "", h=result.signature or "", url=result.url or "")
