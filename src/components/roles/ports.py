from typing import Protocol
from uuid import UUID

from src.domain.entities import Team, TeamMember, User


class UserRepoPort(Protocol):
    def get_by_id(self, user_id: UUID) -> User | None: ...
    def save(self, user: User) -> None: ...


class TeamRepoPort(Protocol):
    def get_by_id(self, team_id: str | UUID) -> Team: ...


class TeamMemberRepoPort(Protocol):
    def get(self, team_id: UUID, user_id: UUID) -> TeamMember | None: ...
    def save(self, member: TeamMember) -> None: ...
