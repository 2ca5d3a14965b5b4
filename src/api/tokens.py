import os
from datetime import UTC, datetime, timedelta
from uuid import UUID

from jose import JWTError, jwt

SECRET_KEY_ENV = "TEAMSIGNUP_SECRET_KEY"
ALGORITHM = "HS256"


def _secret_key() -> str:
    return os.environ.get(SECRET_KEY_ENV, "dev-secret-unsafe")


def issue_access_token(user_id: UUID, ttl: timedelta, now: datetime | None = None) -> str:
    """
    Sign a session token for ``user_id``.

    The token names the user and nothing else. Roles are read from storage
    on every request, so a demotion applies to tokens already handed out.
    """
    issued = now if now is not None else datetime.now(UTC)
    claims = {"sub": str(user_id), "iat": issued, "exp": issued + ttl}
    token: str = jwt.encode(claims, _secret_key(), algorithm=ALGORITHM)
    return token


def read_token_subject(token: str) -> UUID | None:
    """User id of a well-signed, unexpired token; None otherwise."""
    try:
        claims = jwt.decode(token, _secret_key(), algorithms=[ALGORITHM])
    except JWTError:
        return None

    subject = claims.get("sub")
    if not isinstance(subject, str):
        return None
    try:
        return UUID(subject)
    except ValueError:
        return None
