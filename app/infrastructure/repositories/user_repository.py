"""Repository for User persistence."""

import sqlite3
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, List, Mapping, Optional, Union

from app.domain.exceptions import DuplicateEmailError, StaleUserError, UserNotFoundError
from app.domain.models.user import User
from app.domain.ports.persistence import check_update_fields


class SQLiteUserRepository:
    """Repository for managing User entities in SQLite."""

    def __init__(self, db_path: Union[str, Path]):
        if str(db_path) != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(str(db_path), check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._lock = threading.Lock()
        self._initialize_table()

    def _initialize_table(self) -> None:
        """Create users table if it doesn't exist and migrate schema if needed."""
        with self._lock, self._conn:
            self._conn.execute("""
                CREATE TABLE IF NOT EXISTS users (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    email TEXT UNIQUE NOT NULL,
                    password_hash TEXT NOT NULL,
                    is_verified INTEGER NOT NULL DEFAULT 0,
                    verification_token TEXT,
                    verification_expires_at TEXT,
                    reset_token TEXT,
                    reset_expires_at TEXT,
                    refresh_token_id TEXT,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)

            # Databases created before password reset and rotation existed
            cursor = self._conn.execute("PRAGMA table_info(users)")
            existing_columns = {row[1] for row in cursor.fetchall()}
            for column, ddl in (
                ("is_verified", "INTEGER NOT NULL DEFAULT 0"),
                ("verification_token", "TEXT"),
                ("verification_expires_at", "TEXT"),
                ("reset_token", "TEXT"),
                ("reset_expires_at", "TEXT"),
                ("refresh_token_id", "TEXT"),
            ):
                if column not in existing_columns:
                    self._conn.execute(f"ALTER TABLE users ADD COLUMN {column} {ddl}")

            self._conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_users_verification_token ON users(verification_token)"
            )
            self._conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_users_reset_token ON users(reset_token)"
            )

    def close(self) -> None:
        self._conn.close()

    def create(
        self,
        email: str,
        password_hash: str,
        verification_token: Optional[str] = None,
        verification_expires_at: Optional[datetime] = None,
    ) -> User:
        """Create a new user."""
        now = self._now()
        try:
            with self._lock, self._conn:
                cursor = self._conn.execute(
                    """
                    INSERT INTO users (
                        email, password_hash, is_verified, verification_token,
                        verification_expires_at, created_at, updated_at
                    )
                    VALUES (?, ?, 0, ?, ?, ?, ?)
                    """,
                    (
                        email,
                        password_hash,
                        verification_token,
                        self._to_db(verification_expires_at),
                        now,
                        now,
                    ),
                )
                user_id = cursor.lastrowid
        except sqlite3.IntegrityError as exc:
            raise DuplicateEmailError(email) from exc

        user = self.get_by_id(user_id)
        if user is None:
            raise RuntimeError("Failed to persist user.")
        return user

    def get_by_id(self, user_id: int) -> Optional[User]:
        """Get user by ID."""
        return self._fetch_one("SELECT * FROM users WHERE id = ?", (user_id,))

    def get_by_email(self, email: str) -> Optional[User]:
        """Get user by email."""
        return self._fetch_one("SELECT * FROM users WHERE email = ?", (email,))

    def get_by_verification_token(self, token: str) -> Optional[User]:
        """Get user by verification token."""
        return self._fetch_one("SELECT * FROM users WHERE verification_token = ?", (token,))

    def get_by_reset_token(self, token: str) -> Optional[User]:
        """Get user by password reset token."""
        return self._fetch_one("SELECT * FROM users WHERE reset_token = ?", (token,))

    def update(self, user_id: int, expected: Optional[Mapping[str, Any]] = None, **fields: Any) -> User:
        """Update the given columns of a user in a single statement.

        ``expected`` columns become part of the WHERE clause, so a token can
        only be consumed by the one statement that still sees it.
        """
        check_update_fields(fields)
        assignments = [f"{name} = ?" for name in fields]
        values: List[Any] = [self._to_db(value) for value in fields.values()]
        assignments.append("updated_at = ?")
        values.append(self._now())

        conditions = ["id = ?"]
        values.append(user_id)
        if expected:
            check_update_fields(expected)
            for name, value in expected.items():
                conditions.append(f"{name} IS ?")
                values.append(self._to_db(value))

        stale = False
        with self._lock, self._conn:
            cursor = self._conn.execute(
                f"UPDATE users SET {', '.join(assignments)} WHERE {' AND '.join(conditions)}",
                values,
            )
            updated = cursor.rowcount
            if not updated and expected:
                stale = self._conn.execute("SELECT 1 FROM users WHERE id = ?", (user_id,)).fetchone() is not None
        if stale:
            raise StaleUserError(user_id)
        if not updated:
            raise UserNotFoundError(user_id)

        user = self.get_by_id(user_id)
        if user is None:
            raise UserNotFoundError(user_id)
        return user

    def list_all(self) -> List[User]:
        """List all users."""
        with self._lock:
            rows = self._conn.execute("SELECT * FROM users ORDER BY id").fetchall()
        return [self._row_to_user(row) for row in rows]

    def _fetch_one(self, query: str, params: tuple) -> Optional[User]:
        with self._lock:
            row = self._conn.execute(query, params).fetchone()
        if not row:
            return None
        return self._row_to_user(row)

    @staticmethod
    def _now() -> str:
        return datetime.now(tz=timezone.utc).isoformat()

    @staticmethod
    def _to_db(value: Any) -> Any:
        if isinstance(value, datetime):
            return value.isoformat()
        if isinstance(value, bool):
            return int(value)
        return value

    @staticmethod
    def _parse_datetime(value: Optional[str]) -> Optional[datetime]:
        if not value:
            return None
        parsed = datetime.fromisoformat(value)
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed

    def _row_to_user(self, row: sqlite3.Row) -> User:
        """Convert database row to User entity."""
        return User(
            id=row["id"],
            email=row["email"],
            password_hash=row["password_hash"],
            is_verified=bool(row["is_verified"]),
            verification_token=row["verification_token"],
            verification_expires_at=self._parse_datetime(row["verification_expires_at"]),
            reset_token=row["reset_token"],
            reset_expires_at=self._parse_datetime(row["reset_expires_at"]),
            refresh_token_id=row["refresh_token_id"],
            created_at=self._parse_datetime(row["created_at"]),
            updated_at=self._parse_datetime(row["updated_at"]),
        )
