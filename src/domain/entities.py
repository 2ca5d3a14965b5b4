from datetime import UTC, datetime
from typing import Literal
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(UTC)


# --- Enums / Literals ---
SystemRoleType = Literal["system_admin"]
TeamRoleType = Literal["admin"]
TeamType = Literal["open", "invite"]
UserStatus = Literal["active", "disabled"]

# --- Users ---

class User(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    email: str
    username: str
    password_hash: str
    roles: list[SystemRoleType] = Field(default_factory=list)
    status: UserStatus = "active"
    email_verified: bool = False
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    @property
    def is_system_admin(self) -> bool:
        return "system_admin" in self.roles

# --- Teams ---

class Team(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    name: str
    display_name: str
    email: str = ""
    type: TeamType = "open"
    invite_id: str = Field(default_factory=lambda: uuid4().hex)
    allowed_domains: str = ""
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

class TeamMember(BaseModel):
    team_id: UUID
    user_id: UUID
    roles: list[TeamRoleType] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=_utcnow)

    @property
    def is_team_admin(self) -> bool:
        return "admin" in self.roles
