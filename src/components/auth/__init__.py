"""
Auth component - credential checks for login.
"""

from .component import run, run_login
from .models import AuthOutput, LoginInput
from .ports import AuthAdapterPort, UserRepoPort

__all__ = [
    # Entry points
    "run",
    "run_login",
    # Models
    "AuthOutput",
    "LoginInput",
    # Ports
    "AuthAdapterPort",
    "UserRepoPort",
]
