from dataclasses import dataclass

from src.domain.entities import User

INVITE_FORBIDDEN = "api.team.invite_link.permissions.app_error"
INVALID_EMAIL = "api.team.invite_link.invalid_email.app_error"


@dataclass
class CreateLinkInput:
    creator: User
    team_id: str
    email: str


@dataclass
class InviteLinkOutput:
    payload: str | None = None
    signature: str | None = None
    url: str | None = None
    success: bool = False
    error: str | None = None
    error_code: str | None = None
