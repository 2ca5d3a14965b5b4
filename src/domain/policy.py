from dataclasses import dataclass
from uuid import UUID

from src.domain.entities import TeamMember, User
from src.domain.roles import Role, has_minimum_role


@dataclass(frozen=True)
class RoleChangeFacts:
    """
    Everything the authorizer needs, read fresh from storage by the caller.

    ``team_id`` is None for team-agnostic (system role) changes.
    """

    actor: User | None
    actor_membership: TeamMember | None
    target: User
    target_membership: TeamMember | None
    team_id: UUID | None
    requested: Role


@dataclass(frozen=True)
class RoleDecision:
    allowed: bool
    reason: str = ""

    @classmethod
    def authorized(cls) -> "RoleDecision":
        return cls(allowed=True)

    @classmethod
    def forbidden(cls, reason: str) -> "RoleDecision":
        return cls(allowed=False, reason=reason)


def effective_role(user: User, membership: TeamMember | None) -> Role:
    """Highest privilege a user holds in the scope of one team."""
    if user.is_system_admin:
        return Role.SYSTEM_ADMIN
    if membership is not None and membership.is_team_admin:
        return Role.TEAM_ADMIN
    return Role.MEMBER


def is_self_elevation(facts: RoleChangeFacts) -> bool:
    if facts.actor is None or facts.actor.id != facts.target.id:
        return False
    current = effective_role(facts.actor, facts.actor_membership)
    return not has_minimum_role(current, facts.requested)


def authorize_role_change(facts: RoleChangeFacts) -> RoleDecision:
    """
    Decide whether ``facts.actor`` may set ``facts.requested`` on the target.

    Order of precedence:
    1. Actor must be authenticated
    2. Anything touching system-admin (granting it, or changing a user who
       holds it, or a team-less revocation) needs a system-admin actor
    3. Team-scoped changes need a system-admin, or a team-admin who is a
       member of the team; the target must be a member of the team
    4. Nobody raises their own level, even if 2 and 3 would allow it
    """
    actor = facts.actor
    if actor is None or actor.status != "active":
        return RoleDecision.forbidden("Not authenticated")

    actor_is_system_admin = actor.is_system_admin
    team_scoped = facts.requested != Role.SYSTEM_ADMIN and facts.team_id is not None

    touches_system_role = (
        facts.requested == Role.SYSTEM_ADMIN
        or facts.target.is_system_admin
        or facts.team_id is None
    )
    if touches_system_role and not actor_is_system_admin:
        return RoleDecision.forbidden("Only a system admin can change system admin roles")

    if facts.team_id is None and facts.requested == Role.TEAM_ADMIN:
        return RoleDecision.forbidden("Team admin role requires a team")

    if team_scoped:
        if not has_minimum_role(effective_role(actor, facts.actor_membership), Role.TEAM_ADMIN):
            return RoleDecision.forbidden("Team admin or system admin required")
        if facts.target_membership is None:
            return RoleDecision.forbidden("User is not a member of the team")

    if is_self_elevation(facts):
        return RoleDecision.forbidden("Cannot elevate your own permissions")

    return RoleDecision.authorized()


@dataclass(frozen=True)
class ActiveChangeFacts:
    """Fresh facts for activating or deactivating ``target``."""

    actor: User | None
    actor_membership: TeamMember | None
    target: User
    target_membership: TeamMember | None
    team_id: UUID | None


def authorize_active_change(facts: ActiveChangeFacts) -> RoleDecision:
    """
    Decide whether ``facts.actor`` may activate or deactivate the target.

    Users may always deactivate themselves. A system admin may change anyone.
    A team admin may change members of that team, except system admins.
    """
    actor = facts.actor
    if actor is None or actor.status != "active":
        return RoleDecision.forbidden("Not authenticated")

    if actor.id == facts.target.id or actor.is_system_admin:
        return RoleDecision.authorized()

    if facts.target.is_system_admin:
        return RoleDecision.forbidden("Only a system admin can change a system admin's status")

    if facts.team_id is None or not has_minimum_role(
        effective_role(actor, facts.actor_membership), Role.TEAM_ADMIN
    ):
        return RoleDecision.forbidden("Team admin or system admin required")

    if facts.target_membership is None:
        return RoleDecision.forbidden("User is not a member of the team")

    return RoleDecision.authorized()
