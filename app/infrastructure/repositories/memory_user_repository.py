"""In-process user store with the same contract as the SQLite repository."""

import copy
import threading
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional

from app.domain.exceptions import DuplicateEmailError, StaleUserError, UserNotFoundError
from app.domain.models.user import User
from app.domain.ports.persistence import check_update_fields


class InMemoryUserRepository:
    """Dict-backed user store. Returned users are copies of the stored rows."""

    def __init__(self) -> None:
        self._users: Dict[int, User] = {}
        self._next_id = 1
        self._lock = threading.Lock()

    def create(
        self,
        email: str,
        password_hash: str,
        verification_token: Optional[str] = None,
        verification_expires_at: Optional[datetime] = None,
    ) -> User:
        with self._lock:
            if any(user.email == email for user in self._users.values()):
                raise DuplicateEmailError(email)
            user = User(
                id=self._next_id,
                email=email,
                password_hash=password_hash,
                verification_token=verification_token,
                verification_expires_at=verification_expires_at,
            )
            self._users[user.id] = user
            self._next_id += 1
            return copy.copy(user)

    def get_by_id(self, user_id: int) -> Optional[User]:
        with self._lock:
            user = self._users.get(user_id)
            return copy.copy(user) if user else None

    def get_by_email(self, email: str) -> Optional[User]:
        return self._find(lambda user: user.email == email)

    def get_by_verification_token(self, token: str) -> Optional[User]:
        return self._find(lambda user: user.verification_token is not None and user.verification_token == token)

    def get_by_reset_token(self, token: str) -> Optional[User]:
        return self._find(lambda user: user.reset_token is not None and user.reset_token == token)

    def update(self, user_id: int, expected: Optional[Mapping[str, Any]] = None, **fields: Any) -> User:
        check_update_fields(fields)
        if expected:
            check_update_fields(expected)
        with self._lock:
            user = self._users.get(user_id)
            if user is None:
                raise UserNotFoundError(user_id)
            if expected and any(getattr(user, name) != value for name, value in expected.items()):
                raise StaleUserError(user_id)
            for name, value in fields.items():
                setattr(user, name, value)
            user.updated_at = datetime.now(tz=timezone.utc)
            return copy.copy(user)

    def delete(self, user_id: int) -> None:
        with self._lock:
            self._users.pop(user_id, None)

    def list_all(self) -> List[User]:
        with self._lock:
            return [copy.copy(user) for user in self._users.values()]

    def _find(self, predicate) -> Optional[User]:
        with self._lock:
            for user in self._users.values():
                if predicate(user):
                    return copy.copy(user)
        return None
