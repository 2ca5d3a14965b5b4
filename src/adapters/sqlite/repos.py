import sqlite3
from datetime import UTC, datetime
from typing import Any
from uuid import UUID, uuid4

from src.domain.entities import Team, TeamMember, User
from src.domain.errors import (
    EmailTakenError,
    SignupError,
    StoreLookupError,
    UsernameTakenError,
)


# Helper to convert sqlite rows to dicts
def dict_factory(cursor: sqlite3.Cursor, row: Any) -> dict[str, Any]:
    d = {}
    for idx, col in enumerate(cursor.description):
        d[col[0]] = row[idx]
    return d


def _connect(db_path: str) -> sqlite3.Connection:
    conn = sqlite3.connect(db_path)
    conn.row_factory = dict_factory
    conn.execute("PRAGMA foreign_keys = ON;")
    return conn


def _split_roles(raw: str | None) -> list[Any]:
    return [r for r in (raw or "").split() if r]


def _taken_error(exc: sqlite3.IntegrityError) -> SignupError | None:
    """Translate a users UNIQUE violation into the matching signup error."""
    message = str(exc)
    if "users.email" in message:
        return EmailTakenError()
    if "users.username" in message:
        return UsernameTakenError()
    return None


_MEMBER_UPSERT = """
    INSERT INTO team_members (team_id, user_id, roles, created_at)
    VALUES (?, ?, ?, ?)
    ON CONFLICT(team_id, user_id) DO UPDATE SET roles=excluded.roles
"""


def _member_params(member: TeamMember) -> tuple[str, str, str, str]:
    return (
        str(member.team_id),
        str(member.user_id),
        " ".join(member.roles),
        member.created_at.isoformat(),
    )


class SQLiteUserRepo:
    def __init__(self, db_path: str):
        self.db_path = db_path

    def _get_conn(self) -> sqlite3.Connection:
        return _connect(self.db_path)

    def _write(self, conn: sqlite3.Connection, user: User) -> None:
        conn.execute(
            """
            INSERT INTO users (
                id, email, username, password_hash, status, email_verified,
                created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                email=excluded.email,
                username=excluded.username,
                password_hash=excluded.password_hash,
                status=excluded.status,
                email_verified=excluded.email_verified,
                updated_at=excluded.updated_at
        """,
            (
                str(user.id),
                user.email,
                user.username,
                user.password_hash,
                user.status,
                int(user.email_verified),
                user.created_at.isoformat(),
                user.updated_at.isoformat(),
            ),
        )

        # System roles are replaced wholesale
        conn.execute("DELETE FROM role_assignments WHERE user_id = ?", (str(user.id),))
        for role in user.roles:
            conn.execute(
                "INSERT INTO role_assignments (id, user_id, role, created_at) "
                "VALUES (?, ?, ?, ?)",
                (str(uuid4()), str(user.id), role, datetime.now(UTC).isoformat()),
            )

    def save(self, user: User) -> None:
        """
        Insert or update a user.

        A clash on e-mail or username raises EmailTakenError or
        UsernameTakenError; other database errors propagate.
        """
        self.create(user)

    def create(self, user: User, membership: TeamMember | None = None) -> None:
        """Write a user and, optionally, their first team membership in one transaction."""
        conn = self._get_conn()
        try:
            self._write(conn, user)
            if membership is not None:
                conn.execute(_MEMBER_UPSERT, _member_params(membership))
            conn.commit()
        except sqlite3.IntegrityError as e:
            conn.rollback()
            taken = _taken_error(e)
            if taken is not None:
                raise taken from e
            raise
        except sqlite3.Error:
            conn.rollback()
            raise
        finally:
            conn.close()

    def get_by_email(self, email: str) -> User | None:
        conn = self._get_conn()
        try:
            row = conn.execute(
                "SELECT * FROM users WHERE lower(email) = lower(?)", (email,)
            ).fetchone()
            if not row:
                return None
            return self._map_row_to_user(conn, row)
        finally:
            conn.close()

    def get_by_username(self, username: str) -> User | None:
        conn = self._get_conn()
        try:
            row = conn.execute("SELECT * FROM users WHERE username = ?", (username,)).fetchone()
            if not row:
                return None
            return self._map_row_to_user(conn, row)
        finally:
            conn.close()

    def get_by_id(self, user_id: UUID) -> User | None:
        conn = self._get_conn()
        try:
            row = conn.execute("SELECT * FROM users WHERE id = ?", (str(user_id),)).fetchone()
            if not row:
                return None
            return self._map_row_to_user(conn, row)
        finally:
            conn.close()

    def count(self) -> int:
        conn = self._get_conn()
        try:
            row = conn.execute("SELECT COUNT(*) AS n FROM users").fetchone()
            return int(row["n"])
        finally:
            conn.close()

    def _map_row_to_user(self, conn: sqlite3.Connection, row: dict[str, Any]) -> User:
        role_rows = conn.execute(
            "SELECT role FROM role_assignments WHERE user_id = ?", (row["id"],)
        ).fetchall()

        return User(
            id=UUID(row["id"]),
            email=row["email"],
            username=row["username"],
            password_hash=row["password_hash"],
            roles=[r["role"] for r in role_rows],
            status=row["status"],
            email_verified=bool(row["email_verified"]),
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )


class SQLiteTeamRepo:
    """Team store. Lookups raise StoreLookupError naming the failing method."""

    def __init__(self, db_path: str):
        self.db_path = db_path

    def _get_conn(self) -> sqlite3.Connection:
        return _connect(self.db_path)

    def save(self, team: Team) -> None:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO teams (
                    id, name, display_name, email, type, invite_id, allowed_domains,
                    created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    name=excluded.name,
                    display_name=excluded.display_name,
                    email=excluded.email,
                    type=excluded.type,
                    invite_id=excluded.invite_id,
                    allowed_domains=excluded.allowed_domains,
                    updated_at=excluded.updated_at
            """,
                (
                    str(team.id),
                    team.name,
                    team.display_name,
                    team.email,
                    team.type,
                    team.invite_id,
                    team.allowed_domains,
                    team.created_at.isoformat(),
                    team.updated_at.isoformat(),
                ),
            )
            conn.commit()
        except sqlite3.Error:
            conn.rollback()
            raise
        finally:
            conn.close()

    def get_by_id(self, team_id: str | UUID) -> Team:
        where = "SQLiteTeamRepo.get_by_id"
        try:
            tid = team_id if isinstance(team_id, UUID) else UUID(str(team_id))
        except ValueError:
            raise StoreLookupError(where, f"Malformed team id {team_id!r}") from None

        conn = self._get_conn()
        try:
            row = conn.execute("SELECT * FROM teams WHERE id = ?", (str(tid),)).fetchone()
        finally:
            conn.close()
        if not row:
            raise StoreLookupError(where, f"Team {tid} not found")
        return self._map_row(row)

    def name_exists(self, name: str) -> bool:
        conn = self._get_conn()
        try:
            row = conn.execute("SELECT 1 FROM teams WHERE name = ?", (name,)).fetchone()
        finally:
            conn.close()
        return row is not None

    def get_by_invite_id(self, invite_id: str) -> Team:
        conn = self._get_conn()
        try:
            row = conn.execute(
                "SELECT * FROM teams WHERE invite_id = ?", (invite_id,)
            ).fetchone()
        finally:
            conn.close()
        if not row:
            raise StoreLookupError("SQLiteTeamRepo.get_by_invite_id", "No team for invite id")
        return self._map_row(row)

    def _map_row(self, row: dict[str, Any]) -> Team:
        return Team(
            id=UUID(row["id"]),
            name=row["name"],
            display_name=row["display_name"],
            email=row["email"],
            type=row["type"],
            invite_id=row["invite_id"],
            allowed_domains=row["allowed_domains"],
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )


class SQLiteTeamMemberRepo:
    def __init__(self, db_path: str):
        self.db_path = db_path

    def _get_conn(self) -> sqlite3.Connection:
        return _connect(self.db_path)

    def save(self, member: TeamMember) -> None:
        conn = self._get_conn()
        try:
            conn.execute(_MEMBER_UPSERT, _member_params(member))
            conn.commit()
        except sqlite3.Error:
            conn.rollback()
            raise
        finally:
            conn.close()

    def get(self, team_id: UUID, user_id: UUID) -> TeamMember | None:
        conn = self._get_conn()
        try:
            row = conn.execute(
                "SELECT * FROM team_members WHERE team_id = ? AND user_id = ?",
                (str(team_id), str(user_id)),
            ).fetchone()
        finally:
            conn.close()
        return self._map_row(row) if row else None

    def _map_row(self, row: dict[str, Any]) -> TeamMember:
        return TeamMember(
            team_id=UUID(row["team_id"]),
            user_id=UUID(row["user_id"]),
            roles=_split_roles(row["roles"]),
            created_at=datetime.fromisoformat(row["created_at"]),
        )
