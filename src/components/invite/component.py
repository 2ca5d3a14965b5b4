import logging
from urllib.parse import urlencode

from src.config.models import SignupSettings
from src.domain.invitation import encode_invitation_payload, sign_invitation

from .models import INVALID_EMAIL, INVITE_FORBIDDEN, CreateLinkInput, InviteLinkOutput
from .ports import TeamMemberRepoPort, TeamRepoPort, TimePort

logger = logging.getLogger(__name__)


def run_create_link(
    inp: CreateLinkInput,
    team_repo: TeamRepoPort,
    member_repo: TeamMemberRepoPort,
    settings: SignupSettings,
    time: TimePort,
) -> InviteLinkOutput:
    """
    Sign an invitation for ``inp.email`` to join a team.

    Any member of the team may invite; system admins may invite to any team.
    The link is valid for 24 hours from now and is not stored.
    """
    team = team_repo.get_by_id(inp.team_id)

    if not inp.creator.is_system_admin and member_repo.get(team.id, inp.creator.id) is None:
        return InviteLinkOutput(
            success=False, error="User cannot invite to this team", error_code=INVITE_FORBIDDEN
        )

    email = inp.email.strip().lower()
    if "@" not in email:
        return InviteLinkOutput(
            success=False, error="Invalid email address", error_code=INVALID_EMAIL
        )

    payload = encode_invitation_payload(team, email, time.now_ms())
    signature = sign_invitation(payload, settings.invite_salt)
    url = f"{settings.site_url.rstrip('/')}/signup_user_complete/?" + urlencode(
        {"d": payload, "h": signature}
    )

    logger.info("Invitation link issued for team %s by %s", team.id, inp.creator.id)
    return InviteLinkOutput(payload=payload, signature=signature, url=url, success=True)


def run(
    inp: CreateLinkInput,
    *,
    team_repo: TeamRepoPort,
    member_repo: TeamMemberRepoPort,
    settings: SignupSettings,
    time: TimePort,
) -> InviteLinkOutput:
    if isinstance(inp, CreateLinkInput):
        return run_create_link(inp, team_repo, member_repo, settings, time)

    raise ValueError(f"Unknown input type: {type(inp)}")
