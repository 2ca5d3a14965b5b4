import logging
import re
from uuid import uuid4

from src.config.models import SignupSettings
from src.domain.entities import SystemRoleType, TeamMember, User
from src.domain.errors import (
    EmailTakenError,
    InvalidSignupInputError,
    OpenServerDisabledError,
    SignupError,
    UsernameTakenError,
)
from src.domain.invitation import InvitationStatus, check_email_domain, validate_invitation

from .models import SignupInput, SignupOutput
from .ports import AuthAdapterPort, TeamRepoPort, TimePort, UserRepoPort

logger = logging.getLogger(__name__)

USERNAME_PATTERN = re.compile(r"^[a-z0-9][a-z0-9._-]{2,63}$")
EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def _validate_account_fields(email: str, username: str, password: str, min_length: int) -> None:
    if not EMAIL_PATTERN.match(email):
        raise InvalidSignupInputError("Invalid email address")
    if not USERNAME_PATTERN.match(username):
        raise InvalidSignupInputError(
            "Username must be 3-64 lowercase letters, digits, '.', '-' or '_'"
        )
    if len(password) < min_length:
        raise InvalidSignupInputError(f"Password must be at least {min_length} characters")


def run_signup(
    inp: SignupInput,
    teams: TeamRepoPort,
    user_repo: UserRepoPort,
    auth_adapter: AuthAdapterPort,
    settings: SignupSettings,
    time: TimePort,
) -> SignupOutput:
    """
    Create an account, joining the invited team if there is one.

    Business-rule failures come back as an unsuccessful SignupOutput carrying
    the error's message id. StoreLookupError from the team store is not
    caught: an unknown team id or invite id is a storage failure, not a
    signup rule.
    """
    try:
        invitation = validate_invitation(
            inp.payload,
            inp.signature,
            inp.invite_id,
            settings,
            time.now_ms(),
            teams,
        )
        invitation.raise_for_status()

        if invitation.status == InvitationStatus.OPEN and not settings.enable_open_server:
            raise OpenServerDisabledError()

        # A signed link fixes the e-mail; otherwise it comes from the request
        email = (invitation.email if invitation.source == "link" else inp.email) or ""
        email = email.strip().lower()
        username = inp.username.strip().lower()

        _validate_account_fields(email, username, inp.password, settings.password_min_length)
        check_email_domain(email, settings, invitation.team)

        if user_repo.get_by_email(email):
            raise EmailTakenError()
        if user_repo.get_by_username(username):
            raise UsernameTakenError()

        now = time.now_utc()
        # The first account on an empty server administers it
        roles: list[SystemRoleType] = ["system_admin"] if user_repo.count() == 0 else []

        new_user = User(
            id=uuid4(),
            email=email,
            username=username,
            password_hash=auth_adapter.hash_password(inp.password),
            roles=roles,
            status="active",
            email_verified=invitation.source == "link",
            created_at=now,
            updated_at=now,
        )
        membership = (
            TeamMember(team_id=invitation.team.id, user_id=new_user.id, created_at=now)
            if invitation.team is not None
            else None
        )
        # The store re-checks uniqueness; a concurrent signup surfaces here
        user_repo.create(new_user, membership)
    except SignupError as e:
        logger.warning("Signup refused (%s): %s", e.message_id, e.message)
        return SignupOutput(success=False, error=e.message, error_code=e.message_id)

    logger.info(
        "Created user %s via %s (team=%s)",
        new_user.id,
        invitation.source or "open signup",
        invitation.team.id if invitation.team else None,
    )
    return SignupOutput(user=new_user, team=invitation.team, success=True)


def run(
    inp: SignupInput,
    *,
    teams: TeamRepoPort,
    user_repo: UserRepoPort,
    auth_adapter: AuthAdapterPort,
    settings: SignupSettings,
    time: TimePort,
) -> SignupOutput:
    if isinstance(inp, SignupInput):
        return run_signup(inp, teams, user_repo, auth_adapter, settings, time)

    raise ValueError(f"Unknown input type: {type(inp)}")
