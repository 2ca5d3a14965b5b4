import logging
from dataclasses import dataclass
from uuid import UUID

from src.domain.entities import Team, TeamMember, User
from src.domain.errors import InvalidRoleError, StoreLookupError
from src.domain.policy import (
    ActiveChangeFacts,
    RoleChangeFacts,
    authorize_active_change,
    authorize_role_change,
)
from src.domain.roles import Role, parse_role

from .models import (
    ACTIVE_FORBIDDEN,
    FORBIDDEN,
    RolesOutput,
    UpdateActiveInput,
    UpdateRolesInput,
)
from .ports import TeamMemberRepoPort, TeamRepoPort, UserRepoPort

logger = logging.getLogger(__name__)


@dataclass
class _Loaded:
    team: Team | None
    target: User
    actor: User | None
    actor_membership: TeamMember | None
    target_membership: TeamMember | None


def _load_target(user_repo: UserRepoPort, raw_id: str) -> User:
    where = "UserRepo.get_by_id"
    try:
        uid = UUID(str(raw_id))
    except ValueError:
        raise StoreLookupError(where, f"Malformed user id {raw_id!r}") from None

    target = user_repo.get_by_id(uid)
    if target is None:
        raise StoreLookupError(where, f"User {uid} not found")
    return target


def _load(
    actor_ref: User | None,
    target_user_id: str,
    team_id: str | None,
    user_repo: UserRepoPort,
    team_repo: TeamRepoPort,
    member_repo: TeamMemberRepoPort,
) -> _Loaded:
    """Re-read team, target, actor and both memberships from the stores."""
    team = team_repo.get_by_id(team_id) if team_id else None
    target = _load_target(user_repo, target_user_id)
    actor = user_repo.get_by_id(actor_ref.id) if actor_ref is not None else None

    actor_membership = (
        member_repo.get(team.id, actor.id) if team is not None and actor is not None else None
    )
    target_membership = member_repo.get(team.id, target.id) if team is not None else None
    return _Loaded(team, target, actor, actor_membership, target_membership)


def _apply(
    role: Role,
    team: Team | None,
    target: User,
    target_membership: TeamMember | None,
    user_repo: UserRepoPort,
    member_repo: TeamMemberRepoPort,
) -> TeamMember | None:
    if role == Role.SYSTEM_ADMIN:
        target.roles = ["system_admin"]
        user_repo.save(target)
        return target_membership

    if team is None:
        target.roles = []
        user_repo.save(target)
        return None

    assert target_membership is not None
    target_membership.roles = ["admin"] if role == Role.TEAM_ADMIN else []
    member_repo.save(target_membership)
    return target_membership


def run_update_roles(
    inp: UpdateRolesInput,
    user_repo: UserRepoPort,
    team_repo: TeamRepoPort,
    member_repo: TeamMemberRepoPort,
) -> RolesOutput:
    """
    Authorize and apply a role change.

    Actor and target facts are re-read from the stores on every call; the
    actor object passed in only identifies who is asking. Unknown or
    malformed ids raise StoreLookupError.
    """
    try:
        role = parse_role(inp.new_roles)
    except InvalidRoleError as e:
        return RolesOutput(success=False, error=str(e), error_code=e.message_id)

    f = _load(inp.actor, inp.target_user_id, inp.team_id, user_repo, team_repo, member_repo)

    decision = authorize_role_change(
        RoleChangeFacts(
            actor=f.actor,
            actor_membership=f.actor_membership,
            target=f.target,
            target_membership=f.target_membership,
            team_id=f.team.id if f.team is not None else None,
            requested=role,
        )
    )
    if not decision.allowed:
        logger.warning(
            "Role change refused: actor=%s target=%s role=%r team=%s: %s",
            f.actor.id if f.actor else None,
            f.target.id,
            role.value,
            f.team.id if f.team else None,
            decision.reason,
        )
        return RolesOutput(success=False, error=decision.reason, error_code=FORBIDDEN)

    member = _apply(role, f.team, f.target, f.target_membership, user_repo, member_repo)
    logger.info(
        "Role change applied: actor=%s target=%s role=%r team=%s",
        f.actor.id if f.actor else None,
        f.target.id,
        role.value,
        f.team.id if f.team else None,
    )
    return RolesOutput(user=f.target, member=member, success=True)


def run_update_active(
    inp: UpdateActiveInput,
    user_repo: UserRepoPort,
    team_repo: TeamRepoPort,
    member_repo: TeamMemberRepoPort,
) -> RolesOutput:
    """Authorize and apply an activation change, with the same fresh reads as roles."""
    f = _load(inp.actor, inp.target_user_id, inp.team_id, user_repo, team_repo, member_repo)

    decision = authorize_active_change(
        ActiveChangeFacts(
            actor=f.actor,
            actor_membership=f.actor_membership,
            target=f.target,
            target_membership=f.target_membership,
            team_id=f.team.id if f.team is not None else None,
        )
    )
    if not decision.allowed:
        logger.warning(
            "Activation change refused: actor=%s target=%s active=%s: %s",
            f.actor.id if f.actor else None,
            f.target.id,
            inp.active,
            decision.reason,
        )
        return RolesOutput(success=False, error=decision.reason, error_code=ACTIVE_FORBIDDEN)

    f.target.status = "active" if inp.active else "disabled"
    user_repo.save(f.target)
    logger.info(
        "User %s %s by %s",
        f.target.id,
        "activated" if inp.active else "deactivated",
        f.actor.id if f.actor else None,
    )
    return RolesOutput(user=f.target, member=f.target_membership, success=True)


def run(
    inp: UpdateRolesInput | UpdateActiveInput,
    *,
    user_repo: UserRepoPort,
    team_repo: TeamRepoPort,
    member_repo: TeamMemberRepoPort,
) -> RolesOutput:
    if isinstance(inp, UpdateRolesInput):
        return run_update_roles(inp, user_repo, team_repo, member_repo)
    if isinstance(inp, UpdateActiveInput):
        return run_update_active(inp, user_repo, team_repo, member_repo)

    raise ValueError(f"Unknown input type: {type(inp)}")
