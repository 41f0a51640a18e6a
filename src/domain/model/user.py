# domain/model/user.py

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum


class Role(str, Enum):
    """Marketplace roles."""
    USER = 'user'
    DEALER = 'dealer'
    ADMIN = 'admin'


class DealershipApplicationStatus(str, Enum):
    """Status of a user's request to become a dealer. Absent means never applied."""
    PENDING = 'pending'
    APPROVED = 'approved'
    REJECTED = 'rejected'


class TokenPurpose(str, Enum):
    PASSWORD_RESET = 'password_reset'
    USER_CONFIRMATION = 'user_confirmation'


# ── Value Objects ────────────────────────────────────────


@dataclass(frozen=True)
class TokenFields:
    """Names of a token hash field and its expiry field, always written together."""
    token: str
    expires: str

    def set(self, hashed: str, expires_at: datetime) -> dict:
        return {self.token: hashed, self.expires: expires_at}

    def clear(self) -> dict:
        return {self.token: None, self.expires: None}


TOKEN_FIELDS = {
    TokenPurpose.PASSWORD_RESET: TokenFields('password_reset_token', 'password_reset_token_expires'),
    TokenPurpose.USER_CONFIRMATION: TokenFields('user_confirmation_token', 'user_confirmation_token_expires'),
}

# Never returned by default reads.
SECRET_FIELDS = (
    'password_hash',
    'password_reset_token',
    'password_reset_token_expires',
    'user_confirmation_token',
    'user_confirmation_token_expires',
)


@dataclass(frozen=True)
class UserDraft:
    """Registration input. The plaintext fields never reach storage."""
    name: str
    email: str
    password: str
    password_confirm: str
    profile_photo: str | None = None


@dataclass(frozen=True)
class IssuedToken:
    """Raw token for out-of-band delivery plus what gets persisted."""
    raw: str
    hashed: str
    expires_at: datetime


# ── User Domain Model ────────────────────────────────────


@dataclass
class User:
    """Domain model representing a marketplace user."""
    id: str
    name: str
    email: str
    created_at: datetime
    updated_at: datetime

    role: Role = Role.USER
    password_hash: str | None = None
    password_changed_at: datetime | None = None
    dealership_application_status: DealershipApplicationStatus | None = None
    apply_for_dealership: bool = False
    is_user_confirmed: bool = False
    profile_photo: str | None = None
    last_login: datetime | None = None

    password_reset_token: str | None = None
    password_reset_token_expires: datetime | None = None
    user_confirmation_token: str | None = None
    user_confirmation_token_expires: datetime | None = None

    @staticmethod
    def create(
        name: str,
        email: str,
        password_hash: str,
        profile_photo: str | None = None,
        now: datetime | None = None,
    ) -> User:
        """Factory for a freshly registered user."""
        now = now or datetime.now(timezone.utc)
        return User(
            id=uuid.uuid4().hex,
            name=name,
            email=email,
            created_at=now,
            updated_at=now,
            password_hash=password_hash,
            profile_photo=profile_photo,
        )

    def token_for(self, purpose: TokenPurpose) -> tuple[str | None, datetime | None]:
        fields = TOKEN_FIELDS[purpose]
        return getattr(self, fields.token), getattr(self, fields.expires)

    def without_secrets(self) -> User:
        """Copy with the password hash and token fields blanked."""
        data = dict(self.__dict__)
        for name in SECRET_FIELDS:
            data[name] = None
        return User(**data)


@dataclass(frozen=True)
class UserProfile:
    """Read-only projection safe to hand to controllers."""
    id: str
    name: str
    email: str
    role: Role
    dealership_application_status: DealershipApplicationStatus | None
    apply_for_dealership: bool
    is_user_confirmed: bool
    profile_photo: str | None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_user(cls, user: User) -> UserProfile:
        return cls(
            id=user.id,
            name=user.name,
            email=user.email,
            role=user.role,
            dealership_application_status=user.dealership_application_status,
            apply_for_dealership=user.apply_for_dealership,
            is_user_confirmed=user.is_user_confirmed,
            profile_photo=user.profile_photo,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )


def password_changed_after(user: User, issued_at: float) -> bool:
    """True if the password changed after a session token issued at `issued_at` (epoch seconds)."""
    if user.password_changed_at is None:
        return False
    return user.password_changed_at.timestamp() > issued_at
