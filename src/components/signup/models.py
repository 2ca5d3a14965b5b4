from dataclasses import dataclass

from src.domain.entities import Team, User


@dataclass
class SignupInput:
    """
    A signup request.

    ``payload``/``signature`` are the ``d``/``h`` values of a signed invitation
    link; ``invite_id`` is a team's ``iid``. All three may be absent for an
    open-server signup.
    """

    email: str
    username: str
    password: str
    payload: str | None = None
    signature: str | None = None
    invite_id: str | None = None


@dataclass
class SignupOutput:
    user: User | None = None
    team: Team | None = None
    success: bool = False
    error: str | None = None
    error_code: str | None = None
