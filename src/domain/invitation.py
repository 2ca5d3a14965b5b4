"""
Invitation link verification and signup policy.

An invitation link carries two query values:

- ``d``: a flat JSON object (team id, team name/display name, invitee e-mail,
  issue time in milliseconds since the epoch)
- ``h``: ``sha256(d + ":" + invite_salt)`` as lowercase hex

Validity is derived only from the signature and the timestamp; nothing is
stored per link. Alternatively a request may carry ``iid``, a team's invite
id, which is looked up directly and carries no signature or expiry.

Everything here is pure: configuration, clock reading and the team store are
passed in by the caller. Store failures (``StoreLookupError``) propagate
unchanged.
"""

from __future__ import annotations

import hashlib
import hmac
import json
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Literal, Protocol
from uuid import UUID

from src.config.models import SignupSettings
from src.domain.entities import Team
from src.domain.errors import (
    AcceptedDomainError,
    SignupDisabledError,
    SignupLinkExpiredError,
    SignupLinkInvalidError,
)

INVITE_LINK_TTL_MS = 24 * 60 * 60 * 1000

_DOMAIN_SEPARATORS = re.compile(r"[\s,@]+")


class TeamLookupPort(Protocol):
    """Team store lookups; both raise StoreLookupError on a miss."""

    def get_by_id(self, team_id: str | UUID) -> Team: ...

    def get_by_invite_id(self, invite_id: str) -> Team: ...


class InvitationStatus(str, Enum):
    VALID = "valid"
    OPEN = "open"  # no invitation supplied; plain account creation
    INVALID = "invalid"
    EXPIRED = "expired"
    NOT_IMPLEMENTED = "not_implemented"


@dataclass(frozen=True)
class TokenCheck:
    """Outcome of checking a signed payload, before any store lookup."""

    status: InvitationStatus
    props: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class InvitationResult:
    status: InvitationStatus
    team: Team | None = None
    email: str | None = None
    display_name: str | None = None
    source: Literal["link", "invite_id"] | None = None

    @property
    def ok(self) -> bool:
        return self.status in (InvitationStatus.VALID, InvitationStatus.OPEN)

    def raise_for_status(self) -> None:
        if self.status == InvitationStatus.NOT_IMPLEMENTED:
            raise SignupDisabledError()
        if self.status == InvitationStatus.INVALID:
            raise SignupLinkInvalidError()
        if self.status == InvitationStatus.EXPIRED:
            raise SignupLinkExpiredError()


# --- Signing ---


def sign_invitation(payload: str, secret: str) -> str:
    return hashlib.sha256(f"{payload}:{secret}".encode()).hexdigest()


def verify_signature(payload: str, signature: str, secret: str) -> bool:
    expected = sign_invitation(payload, secret)
    return hmac.compare_digest(expected.encode(), signature.strip().lower().encode())


def encode_invitation_payload(team: Team, email: str, issued_at_ms: int) -> str:
    """Serialize the link payload. Keys are sorted so signatures are reproducible."""
    props = {
        "display_name": team.display_name,
        "email": email,
        "id": str(team.id),
        "name": team.name,
        "time": str(issued_at_ms),
    }
    return json.dumps(props, sort_keys=True, separators=(",", ":"))


def decode_invitation_payload(payload: str) -> dict[str, str] | None:
    """Parse a payload into a flat string map, or None if it is not one."""
    try:
        data: Any = json.loads(payload)
    except (json.JSONDecodeError, TypeError):
        return None
    if not isinstance(data, dict):
        return None
    props: dict[str, str] = {}
    for key, value in data.items():
        if isinstance(value, dict | list):
            return None
        props[str(key)] = "" if value is None else str(value)
    return props


def _parse_time_ms(raw: str | None) -> int | None:
    if raw is None:
        return None
    try:
        return int(raw)
    except ValueError:
        return None


def check_invitation_token(
    payload: str | None,
    signature: str | None,
    secret: str,
    now_ms: int,
) -> TokenCheck:
    """
    Verify signature and age of a signed invitation payload.

    Signature is checked first: a stale link with a forged signature is
    INVALID, not EXPIRED. A timestamp in the future is INVALID.
    """
    if not payload or not signature:
        return TokenCheck(InvitationStatus.INVALID)

    if not verify_signature(payload, signature, secret):
        return TokenCheck(InvitationStatus.INVALID)

    props = decode_invitation_payload(payload)
    if props is None:
        return TokenCheck(InvitationStatus.INVALID)

    issued_at = _parse_time_ms(props.get("time"))
    if issued_at is None:
        return TokenCheck(InvitationStatus.INVALID)

    age = now_ms - issued_at
    if age < 0:
        return TokenCheck(InvitationStatus.INVALID)
    if age > INVITE_LINK_TTL_MS:
        return TokenCheck(InvitationStatus.EXPIRED, props)

    return TokenCheck(InvitationStatus.VALID, props)


# --- Domain policy ---


def parse_allowed_domains(raw: str) -> list[str]:
    """Split a comma/space separated allow-list; a leading '@' is tolerated."""
    return [d.lower() for d in _DOMAIN_SEPARATORS.split(raw or "") if d]


def is_email_domain_allowed(email: str, allowed: str) -> bool:
    domains = parse_allowed_domains(allowed)
    if not domains:
        return True
    email = email.strip().lower()
    return any(email.endswith("@" + d) for d in domains)


def check_email_domain(email: str, settings: SignupSettings, team: Team | None = None) -> None:
    """
    Raise AcceptedDomainError if the server (or team) restricts signup domains
    and the e-mail is outside them.
    """
    if not is_email_domain_allowed(email, settings.restrict_creation_to_domains):
        raise AcceptedDomainError()
    if team is not None and not is_email_domain_allowed(email, team.allowed_domains):
        raise AcceptedDomainError()


# --- Entry point ---


def signup_enabled(settings: SignupSettings) -> bool:
    return settings.enable_sign_up_with_email and settings.enable_user_creation


def validate_invitation(
    payload: str | None,
    signature: str | None,
    invite_id: str | None,
    settings: SignupSettings,
    now_ms: int,
    teams: TeamLookupPort,
) -> InvitationResult:
    """
    Decide whether a signup request may proceed and for which team.

    Order:
    1. Feature switches (NOT_IMPLEMENTED, before any token is parsed)
    2. Signed link if ``d`` or ``h`` is present (INVALID / EXPIRED)
    3. Team lookup by the payload's team id (StoreLookupError propagates)
    4. E-mail domain allow-list (AcceptedDomainError)

    With only an invite id the team is looked up by invite id, and the e-mail
    is left for the caller to take from the request body.
    """
    if not signup_enabled(settings):
        return InvitationResult(InvitationStatus.NOT_IMPLEMENTED)

    if payload or signature:
        check = check_invitation_token(payload, signature, settings.invite_salt, now_ms)
        if check.status != InvitationStatus.VALID:
            return InvitationResult(check.status)

        team = teams.get_by_id(check.props.get("id", ""))
        email = check.props.get("email", "")
        check_email_domain(email, settings)
        return InvitationResult(
            InvitationStatus.VALID,
            team=team,
            email=email,
            display_name=check.props.get("display_name") or team.display_name,
            source="link",
        )

    if invite_id:
        team = teams.get_by_invite_id(invite_id)
        return InvitationResult(
            InvitationStatus.VALID,
            team=team,
            display_name=team.display_name,
            source="invite_id",
        )

    return InvitationResult(InvitationStatus.OPEN)
