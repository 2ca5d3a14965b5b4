from datetime import datetime
from typing import Protocol
from uuid import UUID

from src.domain.entities import Team, TeamMember, User


class UserRepoPort(Protocol):
    def get_by_email(self, email: str) -> User | None: ...
    def get_by_username(self, username: str) -> User | None: ...
    def count(self) -> int: ...
    def create(self, user: User, membership: TeamMember | None = None) -> None:
        """Store the user and membership together; raise Email/UsernameTakenError on a clash."""
        ...


class TeamRepoPort(Protocol):
    def get_by_id(self, team_id: str | UUID) -> Team: ...
    def get_by_invite_id(self, invite_id: str) -> Team: ...


class AuthAdapterPort(Protocol):
    def hash_password(self, plain: str) -> str: ...


class TimePort(Protocol):
    """Port for time operations - enables deterministic testing."""

    def now_utc(self) -> datetime: ...

    def now_ms(self) -> int: ...
