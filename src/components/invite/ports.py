from datetime import datetime
from typing import Protocol
from uuid import UUID

from src.domain.entities import Team, TeamMember


class TeamRepoPort(Protocol):
    def get_by_id(self, team_id: str | UUID) -> Team: ...


class TeamMemberRepoPort(Protocol):
    def get(self, team_id: UUID, user_id: UUID) -> TeamMember | None: ...


class TimePort(Protocol):
    """Port for time operations - enables deterministic testing."""

    def now_utc(self) -> datetime: ...

    def now_ms(self) -> int: ...
