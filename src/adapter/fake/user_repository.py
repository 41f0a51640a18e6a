"""In-memory implementation of UserRepository for testing."""

import copy

from adapter.system.clock import SystemClock
from domain.model.errors import ConcurrentModificationError, DuplicateError
from domain.model.user import TokenFields, User
from domain.model.validation import validate_fields
from port.clock import Clock


class FakeUserRepository:
    def __init__(self, clock: Clock | None = None):
        self.store: dict[str, User] = {}
        self.clock = clock or SystemClock()

    def _read(self, user: User, include_secrets: bool) -> User:
        if include_secrets:
            return copy.copy(user)
        return user.without_secrets()

    # ── write operations ─────────────────────────────────────

    def insert(self, user: User) -> bool:
        if any(u.email == user.email for u in self.store.values()):
            raise DuplicateError("Email already registered")
        self.store[user.id] = copy.copy(user)
        return True

    def update(
        self,
        user_id: str,
        fields: dict,
        skip_validation: bool = False,
        expected: dict | None = None,
    ) -> bool:
        user = self.store.get(user_id)
        if not user:
            return False

        if not skip_validation:
            validate_fields(fields)
        if expected and any(getattr(user, k) != v for k, v in expected.items()):
            raise ConcurrentModificationError("User was modified concurrently")
        if 'email' in fields and any(
            u.email == fields['email'] and u.id != user_id for u in self.store.values()
        ):
            raise DuplicateError("Email already registered")

        for key, value in fields.items():
            setattr(user, key, value)
        user.updated_at = self.clock.now()
        return True

    # ── read operations ──────────────────────────────────────

    def get_by_email(self, email: str, include_secrets: bool = False) -> User | None:
        for user in self.store.values():
            if user.email == email:
                return self._read(user, include_secrets)
        return None

    def get_by_id(self, user_id: str, include_secrets: bool = False) -> User | None:
        user = self.store.get(user_id)
        return self._read(user, include_secrets) if user else None

    def find_by_token(self, fields: TokenFields, token_hash: str) -> User | None:
        for user in self.store.values():
            if getattr(user, fields.token) == token_hash:
                return self._read(user, include_secrets=True)
        return None
