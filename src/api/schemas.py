from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from src.domain.entities import TeamType


# --- Users ---
class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str
    username: str
    roles: list[str]
    status: str
    email_verified: bool
    created_at: datetime


class SignupRequest(BaseModel):
    email: str = ""
    username: str
    password: str


class UpdateRolesRequest(BaseModel):
    user_id: str
    new_roles: str = ""
    team_id: str = ""


class UpdateRolesResponse(BaseModel):
    user_id: UUID
    roles: list[str]
    team_id: UUID | None = None
    team_roles: list[str] | None = None


class UpdateActiveRequest(BaseModel):
    user_id: str
    active: bool
    team_id: str = ""


# --- Teams ---
class TeamCreateRequest(BaseModel):
    name: str = Field(min_length=2, max_length=64, pattern=r"^[a-z0-9][a-z0-9-]*$")
    display_name: str = Field(min_length=1, max_length=64)
    email: str = ""
    type: TeamType = "open"
    allowed_domains: str = ""


class TeamResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    display_name: str
    type: str
    invite_id: str
    allowed_domains: str


class InviteLinkRequest(BaseModel):
    email: str


class InviteLinkResponse(BaseModel):
    d: str
    h: str
    url: str
