"""
Signup component - account creation from invitation links and invite ids.
"""

from .component import run, run_signup
from .models import SignupInput, SignupOutput
from .ports import AuthAdapterPort, TeamRepoPort, TimePort, UserRepoPort

__all__ = [
    # Entry points
    "run",
    "run_signup",
    # Models
    "SignupInput",
    "SignupOutput",
    # Ports
    "AuthAdapterPort",
    "TeamRepoPort",
    "TimePort",
    "UserRepoPort",
]
