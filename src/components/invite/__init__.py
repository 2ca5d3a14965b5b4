"""
Invite component - signed invitation links for teams.
"""

from .component import (
    run,
    run_create_link,
)
from .models import (
    INVALID_EMAIL,
    INVITE_FORBIDDEN,
    CreateLinkInput,
    InviteLinkOutput,
)
from .ports import (
    TeamMemberRepoPort,
    TeamRepoPort,
    TimePort,
)

__all__ = [
    # Entry points
    "run",
    "run_create_link",
    # Models
    "CreateLinkInput",
    "InviteLinkOutput",
    "INVITE_FORBIDDEN",
    "INVALID_EMAIL",
    # Ports
    "TeamMemberRepoPort",
    "TeamRepoPort",
    "TimePort",
]
