"""
Roles component - authorized role and activation changes for users and team members.
"""

from .component import run, run_update_active, run_update_roles
from .models import ACTIVE_FORBIDDEN, FORBIDDEN, RolesOutput, UpdateActiveInput, UpdateRolesInput
from .ports import TeamMemberRepoPort, TeamRepoPort, UserRepoPort

__all__ = [
    # Entry points
    "run",
    "run_update_roles",
    "run_update_active",
    # Models
    "RolesOutput",
    "UpdateRolesInput",
    "UpdateActiveInput",
    "FORBIDDEN",
    "ACTIVE_FORBIDDEN",
    # Ports
    "TeamMemberRepoPort",
    "TeamRepoPort",
    "UserRepoPort",
]
