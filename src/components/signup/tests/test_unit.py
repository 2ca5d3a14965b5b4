"""
Signup component unit tests.

Tests for account creation from signed links, team invite ids and open signup.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from uuid import UUID

import pytest

from src.components.signup import SignupInput, run, run_signup
from src.config.models import SignupSettings
from src.domain.entities import Team, TeamMember, User
from src.domain.errors import (
    AcceptedDomainError,
    EmailTakenError,
    InvalidSignupInputError,
    OpenServerDisabledError,
    SignupDisabledError,
    SignupLinkExpiredError,
    SignupLinkInvalidError,
    StoreLookupError,
    UsernameTakenError,
)
from src.domain.invitation import encode_invitation_payload, sign_invitation

SALT = "fake salt"

# --- Mock Implementations ---


class MockUserRepo:
    """In-memory user repository for testing."""

    def __init__(self) -> None:
        self._users: dict[UUID, User] = {}
        self.memberships: list[TeamMember] = []

    def get_by_email(self, email: str) -> User | None:
        return next((u for u in self._users.values() if u.email == email.lower()), None)

    def get_by_username(self, username: str) -> User | None:
        return next((u for u in self._users.values() if u.username == username), None)

    def count(self) -> int:
        return len(self._users)

    def save(self, user: User) -> None:
        self._users[user.id] = user

    def create(self, user: User, membership: TeamMember | None = None) -> None:
        # Mirrors the UNIQUE constraints of the real store
        for other in self._users.values():
            if other.email == user.email:
                raise EmailTakenError()
            if other.username == user.username:
                raise UsernameTakenError()
        self.save(user)
        if membership is not None:
            self.memberships.append(membership)


class RacingUserRepo(MockUserRepo):
    """Another signup commits between the duplicate check and the insert."""

    def __init__(self, winner: User) -> None:
        super().__init__()
        self._winner = winner

    def get_by_email(self, email: str) -> User | None:
        return None

    def get_by_username(self, username: str) -> User | None:
        return None

    def create(self, user: User, membership: TeamMember | None = None) -> None:
        self.save(self._winner)
        super().create(user, membership)


class MockTeamRepo:
    def __init__(self) -> None:
        self._teams: dict[UUID, Team] = {}

    def add(self, team: Team) -> Team:
        self._teams[team.id] = team
        return team

    def get_by_id(self, team_id: object) -> Team:
        try:
            team = self._teams.get(UUID(str(team_id)))
        except ValueError:
            team = None
        if team is None:
            raise StoreLookupError("MockTeamRepo.get_by_id", "not found")
        return team

    def get_by_invite_id(self, invite_id: str) -> Team:
        for team in self._teams.values():
            if team.invite_id == invite_id:
                return team
        raise StoreLookupError("MockTeamRepo.get_by_invite_id", "not found")


class MockAuthAdapter:
    """Mock auth adapter for testing."""

    def hash_password(self, plain: str) -> str:
        # Simple mock: hash is "hashed_" + plain
        return f"hashed_{plain}"


class MockTimePort:
    """Mock time port for testing."""

    def __init__(self, now: datetime | None = None) -> None:
        self._now = now or datetime(2024, 6, 15, 12, 0, 0, tzinfo=UTC)

    def now_utc(self) -> datetime:
        return self._now

    def now_ms(self) -> int:
        return int(self._now.timestamp() * 1000)


# --- Fixtures ---


@pytest.fixture
def user_repo() -> MockUserRepo:
    return MockUserRepo()


@pytest.fixture
def team_repo() -> MockTeamRepo:
    return MockTeamRepo()


@pytest.fixture
def time_port() -> MockTimePort:
    return MockTimePort()


@pytest.fixture
def settings() -> SignupSettings:
    return SignupSettings(invite_salt=SALT)


@pytest.fixture
def team(team_repo: MockTeamRepo) -> Team:
    return team_repo.add(Team(name="core", display_name="Core Team"))


@pytest.fixture
def existing_admin(user_repo: MockUserRepo) -> User:
    admin = User(email="admin@example.com", username="admin", password_hash="x")
    user_repo.save(admin)
    return admin


@pytest.fixture
def signup(user_repo, team_repo, time_port, settings):
    """Call run_signup with the standard mocks; settings may be overridden."""

    def _signup(inp: SignupInput, settings_override: SignupSettings | None = None):
        return run_signup(
            inp,
            teams=team_repo,
            user_repo=user_repo,
            auth_adapter=MockAuthAdapter(),
            settings=settings_override or settings,
            time=time_port,
        )

    return _signup


def _link(team: Team, email: str, time_port: MockTimePort, age: timedelta, secret: str = SALT):
    issued = int((time_port.now_utc() - age).timestamp() * 1000)
    d = encode_invitation_payload(team, email, issued)
    return d, sign_invitation(d, secret)


# --- Signed link ---


class TestSignupWithLink:
    """Tests for signup from a signed invitation link."""

    def test_valid_link_creates_member(
        self, signup, team, time_port, user_repo, existing_admin
    ) -> None:
        d, h = _link(team, "invitee@example.com", time_port, timedelta(hours=1))

        result = signup(SignupInput(email="", username="invitee", password="passwd1",
                                    payload=d, signature=h))

        assert result.success is True
        assert result.user is not None
        assert result.user.email == "invitee@example.com"
        assert result.user.email_verified is True
        assert result.user.roles == []
        assert result.team == team
        assert user_repo.memberships[0].team_id == team.id
        assert user_repo.memberships[0].user_id == result.user.id
        assert user_repo.memberships[0].roles == []

    def test_link_email_overrides_request_email(self, signup, team, time_port) -> None:
        d, h = _link(team, "invitee@example.com", time_port, timedelta(hours=1))

        result = signup(SignupInput(email="other@example.com", username="invitee",
                                    password="passwd1", payload=d, signature=h))

        assert result.success is True
        assert result.user.email == "invitee@example.com"

    def test_expired_link(self, signup, team, time_port, user_repo) -> None:
        d, h = _link(team, "invitee@example.com", time_port, timedelta(hours=72))

        result = signup(SignupInput(email="", username="invitee", password="passwd1",
                                    payload=d, signature=h))

        assert result.success is False
        assert result.error_code == SignupLinkExpiredError.message_id
        assert user_repo.count() == 0

    def test_forged_link(self, signup, team, time_port) -> None:
        d, h = _link(team, "invitee@example.com", time_port, timedelta(hours=1), secret="x")

        result = signup(SignupInput(email="", username="invitee", password="passwd1",
                                    payload=d, signature=h))

        assert result.success is False
        assert result.error_code == SignupLinkInvalidError.message_id

    def test_fake_data(self, signup) -> None:
        result = signup(SignupInput(email="a@example.com", username="someone",
                                    password="passwd1", payload="fake data",
                                    signature="fake hash"))

        assert result.error_code == SignupLinkInvalidError.message_id

    def test_unknown_team_propagates(self, signup, time_port) -> None:
        ghost = Team(name="ghost", display_name="Ghost")
        d, h = _link(ghost, "invitee@example.com", time_port, timedelta(hours=1))

        with pytest.raises(StoreLookupError) as exc_info:
            signup(SignupInput(email="", username="invitee", password="passwd1",
                               payload=d, signature=h))
        assert exc_info.value.where == "MockTeamRepo.get_by_id"

    def test_domain_restriction(self, signup, team, time_port) -> None:
        d, h = _link(team, "invitee@example.com", time_port, timedelta(hours=1))
        restricted = SignupSettings(invite_salt=SALT, restrict_creation_to_domains="corp.org")

        result = signup(
            SignupInput(email="", username="invitee", password="passwd1", payload=d, signature=h),
            restricted,
        )

        assert result.error_code == AcceptedDomainError.message_id


# --- Invite id ---


class TestSignupWithInviteId:
    def test_invite_id_joins_team(self, signup, team, user_repo) -> None:
        result = signup(SignupInput(email="Someone@Example.com", username="someone",
                                    password="passwd1", invite_id=team.invite_id))

        assert result.success is True
        assert result.user.email == "someone@example.com"
        assert result.user.email_verified is False
        assert user_repo.memberships[0].team_id == team.id

    def test_unknown_invite_id_propagates(self, signup) -> None:
        with pytest.raises(StoreLookupError) as exc_info:
            signup(SignupInput(email="a@example.com", username="someone",
                               password="passwd1", invite_id="fake invite id"))
        assert exc_info.value.where == "MockTeamRepo.get_by_invite_id"

    def test_team_allowed_domains(self, signup, team_repo) -> None:
        locked = team_repo.add(
            Team(name="locked", display_name="Locked", allowed_domains="corp.org")
        )

        result = signup(SignupInput(email="a@example.com", username="someone",
                                    password="passwd1", invite_id=locked.invite_id))

        assert result.error_code == AcceptedDomainError.message_id


# --- Open signup and gating ---


class TestOpenSignup:
    def test_first_user_is_system_admin(self, signup, user_repo) -> None:
        result = signup(SignupInput(email="first@example.com", username="first",
                                    password="passwd1"))

        assert result.success is True
        assert result.user.roles == ["system_admin"]
        assert result.team is None
        assert user_repo.memberships == []

    def test_second_user_is_plain(self, signup, existing_admin) -> None:
        result = signup(SignupInput(email="second@example.com", username="second",
                                    password="passwd1"))

        assert result.user.roles == []

    def test_open_server_disabled(self, signup) -> None:
        closed = SignupSettings(invite_salt=SALT, enable_open_server=False)

        result = signup(
            SignupInput(email="a@example.com", username="someone", password="passwd1"), closed
        )

        assert result.error_code == OpenServerDisabledError.message_id

    def test_open_server_disabled_still_allows_invite_id(self, signup, team) -> None:
        closed = SignupSettings(invite_salt=SALT, enable_open_server=False)

        result = signup(
            SignupInput(email="a@example.com", username="someone", password="passwd1",
                        invite_id=team.invite_id),
            closed,
        )

        assert result.success is True

    @pytest.mark.parametrize("email_signup, user_creation", [(True, False), (False, True)])
    def test_signup_disabled(self, signup, team, email_signup, user_creation) -> None:
        off = SignupSettings(
            invite_salt=SALT,
            enable_sign_up_with_email=email_signup,
            enable_user_creation=user_creation,
        )

        result = signup(
            SignupInput(email="a@example.com", username="someone", password="passwd1",
                        payload="fake data", signature="fake hash"),
            off,
        )

        assert result.error_code == SignupDisabledError.message_id


class TestAccountFields:
    @pytest.mark.parametrize(
        "email, username, password",
        [
            ("not-an-email", "someone", "passwd1"),
            ("a@example.com", "x", "passwd1"),
            ("a@example.com", "bad name", "passwd1"),
            ("a@example.com", "someone", "abc"),
        ],
    )
    def test_invalid_fields(self, signup, email, username, password) -> None:
        result = signup(SignupInput(email=email, username=username, password=password))

        assert result.success is False
        assert result.error_code == InvalidSignupInputError.message_id

    def test_duplicate_email(self, signup, existing_admin) -> None:
        result = signup(SignupInput(email="ADMIN@example.com", username="other",
                                    password="passwd1"))

        assert result.error_code == EmailTakenError.message_id

    def test_duplicate_username(self, signup, existing_admin) -> None:
        result = signup(SignupInput(email="other@example.com", username="admin",
                                    password="passwd1"))

        assert result.error_code == UsernameTakenError.message_id

    def test_password_is_hashed(self, signup) -> None:
        result = signup(SignupInput(email="a@example.com", username="someone",
                                    password="passwd1"))

        assert result.user.password_hash == "hashed_passwd1"


class TestConcurrentSignup:
    def _signup(self, repo: RacingUserRepo, team_repo, time_port, settings, **fields):
        return run_signup(
            SignupInput(password="passwd1", **fields),
            teams=team_repo,
            user_repo=repo,
            auth_adapter=MockAuthAdapter(),
            settings=settings,
            time=time_port,
        )

    def test_email_claimed_after_check(self, team_repo, time_port, settings) -> None:
        winner = User(email="dup@example.com", username="winner", password_hash="x")
        repo = RacingUserRepo(winner)

        result = self._signup(repo, team_repo, time_port, settings,
                              email="dup@example.com", username="loser")

        assert result.success is False
        assert result.error_code == EmailTakenError.message_id
        assert repo.count() == 1

    def test_username_claimed_after_check(self, team, team_repo, time_port, settings) -> None:
        winner = User(email="winner@example.com", username="same", password_hash="x")
        repo = RacingUserRepo(winner)

        result = self._signup(repo, team_repo, time_port, settings,
                              email="loser@example.com", username="same",
                              invite_id=team.invite_id)

        assert result.error_code == UsernameTakenError.message_id
        assert repo.memberships == []


class TestDispatch:
    def test_run_dispatches_signup(self, user_repo, team_repo, time_port, settings):
        result = run(
            SignupInput(email="a@example.com", username="someone", password="passwd1"),
            teams=team_repo,
            user_repo=user_repo,
            auth_adapter=MockAuthAdapter(),
            settings=settings,
            time=time_port,
        )
        assert result.success is True

    def test_run_rejects_unknown_input(self, user_repo, team_repo, time_port, settings):
        with pytest.raises(ValueError):
            run(
                object(),  # type: ignore[arg-type]
                teams=team_repo,
                user_repo=user_repo,
                auth_adapter=MockAuthAdapter(),
                settings=settings,
                time=time_port,
            )
