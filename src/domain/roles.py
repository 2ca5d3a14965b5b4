from enum import Enum

from src.domain.errors import InvalidRoleError


class Role(str, Enum):
    """Closed set of privilege levels, ordered by ROLE_ORDER."""

    MEMBER = ""
    TEAM_ADMIN = "admin"
    SYSTEM_ADMIN = "system_admin"


ROLE_ORDER = {
    Role.MEMBER: 0,
    Role.TEAM_ADMIN: 1,
    Role.SYSTEM_ADMIN: 2,
}

# Accepted spellings in requests; the empty string means "plain member".
_ROLE_ALIASES = {
    "": Role.MEMBER,
    "member": Role.MEMBER,
    "admin": Role.TEAM_ADMIN,
    "team_admin": Role.TEAM_ADMIN,
    "system_admin": Role.SYSTEM_ADMIN,
}


def parse_role(raw: str | None) -> Role:
    """
    Parse a requested role string.

    Raises InvalidRoleError for anything outside the known set.
    """
    key = (raw or "").strip().lower()
    try:
        return _ROLE_ALIASES[key]
    except KeyError:
        raise InvalidRoleError(f"Unknown role: {raw!r}") from None


def has_minimum_role(actual: Role, minimum: Role) -> bool:
    return ROLE_ORDER[actual] >= ROLE_ORDER[minimum]
