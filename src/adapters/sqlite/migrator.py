import logging
import os
import sqlite3

logger = logging.getLogger(__name__)

DOWN_MARKER = "-- Down"


class SQLiteMigrator:
    """
    Applies ``migrations/*.sql`` in filename order.

    A file is its Up script, optionally followed by a ``-- Down`` section that
    is kept for manual rollbacks and never executed here. Applied filenames
    are recorded in ``_migrations``, so running again is a no-op.
    """

    def __init__(self, db_path: str, migrations_dir: str):
        self.db_path = db_path
        self.migrations_dir = migrations_dir

    def _get_connection(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.execute("PRAGMA foreign_keys = ON;")
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS _migrations (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                filename TEXT UNIQUE NOT NULL,
                applied_at DATETIME DEFAULT CURRENT_TIMESTAMP
            );
        """
        )
        return conn

    def _available(self) -> list[str]:
        return sorted(f for f in os.listdir(self.migrations_dir) if f.endswith(".sql"))

    def _applied(self, conn: sqlite3.Connection) -> set[str]:
        return {row[0] for row in conn.execute("SELECT filename FROM _migrations")}

    def pending(self) -> list[str]:
        conn = self._get_connection()
        try:
            done = self._applied(conn)
        finally:
            conn.close()
        return [f for f in self._available() if f not in done]

    def run_migrations(self) -> list[str]:
        """Apply pending migrations; returns the filenames applied, in order."""
        conn = self._get_connection()
        try:
            done = self._applied(conn)
            applied: list[str] = []
            for filename in self._available():
                if filename in done:
                    continue
                logger.info("Applying migration: %s", filename)
                self._apply(conn, filename)
                applied.append(filename)
            return applied
        finally:
            conn.close()

    def _up_script(self, filename: str) -> str:
        with open(os.path.join(self.migrations_dir, filename)) as f:
            content = f.read()
        up, _, _ = content.partition(DOWN_MARKER)
        return up

    def _apply(self, conn: sqlite3.Connection, filename: str) -> None:
        """
        Run one Up script and record it, all in one transaction.

        executescript() commits whatever is pending before it starts, so the
        script opens its own BEGIN; a failure part way through leaves that
        transaction open for the rollback below.
        """
        try:
            conn.executescript("BEGIN;\n" + self._up_script(filename))
            conn.execute("INSERT INTO _migrations (filename) VALUES (?)", (filename,))
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise RuntimeError(f"Migration {filename} failed: {e}") from e
