from dataclasses import dataclass

from src.domain.entities import TeamMember, User

FORBIDDEN = "api.user.update_roles.permissions.app_error"


@dataclass
class UpdateRolesInput:
    """
    Set ``new_roles`` on a user.

    ``new_roles`` is "" (member), "admin" (team admin) or "system_admin".
    An empty ``team_id`` makes the change team-agnostic, which only makes
    sense for granting or revoking system admin.
    """

    actor: User | None
    target_user_id: str
    new_roles: str
    team_id: str | None = None


@dataclass
class RolesOutput:
    user: User | None = None
    member: TeamMember | None = None
    success: bool = False
    error: str | None = None
    error_code: str | None = None


ACTIVE_FORBIDDEN = "api.user.update_active.permissions.app_error"


@dataclass
class UpdateActiveInput:
    """Activate or deactivate a user, optionally in the scope of ``team_id``."""

    actor: User | None
    target_user_id: str
    active: bool
    team_id: str | None = None
