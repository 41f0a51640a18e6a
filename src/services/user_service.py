"""User account service — registration, credentials and security tokens.

Pure business logic with no HTTP dependencies. Built once at process start
(see container.build_user_service) and handed to controllers by reference.
Raises domain errors that controllers map to HTTP status codes.
"""

import logging
from datetime import timedelta

from domain.model.errors import DomainError, DuplicateError, NotFoundError, ValidationError
from domain.model.user import (
    TOKEN_FIELDS,
    TokenPurpose,
    User,
    UserDraft,
    UserProfile,
    password_changed_after,
)
from domain.model.validation import validate_draft, validate_password_pair
from port.clock import Clock
from port.password_hasher import PasswordHasher
from port.user_repository import UserRepository
from services.token_issuer import SecurityTokenIssuer

logger = logging.getLogger(__name__)

DEFAULT_PASSWORD_CHANGE_SKEW = timedelta(seconds=1)


class UserService:
    def __init__(
        self,
        repo: UserRepository,
        hasher: PasswordHasher,
        clock: Clock,
        reset_tokens: SecurityTokenIssuer,
        confirmation_tokens: SecurityTokenIssuer,
        password_change_skew: timedelta = DEFAULT_PASSWORD_CHANGE_SKEW,
    ):
        if reset_tokens.purpose != TokenPurpose.PASSWORD_RESET:
            raise ValueError("reset_tokens must be a password reset issuer")
        if confirmation_tokens.purpose != TokenPurpose.USER_CONFIRMATION:
            raise ValueError("confirmation_tokens must be a user confirmation issuer")
        if password_change_skew < timedelta(0):
            raise ValueError("password_change_skew cannot be negative")
        self.repo = repo
        self.hasher = hasher
        self.clock = clock
        self.issuers = {
            TokenPurpose.PASSWORD_RESET: reset_tokens,
            TokenPurpose.USER_CONFIRMATION: confirmation_tokens,
        }
        self.password_change_skew = password_change_skew

    # ── registration & credentials ───────────────────────────

    def create(self, draft: UserDraft) -> User:
        """Register a new user.

        Returns the stored User, carrying the password hash but never the plaintext.

        Raises:
            ValidationError: bad name/email, weak password or mismatched confirmation
            DuplicateError: email already registered
            HashingError: hashing primitive failed
        """
        name, email, password = validate_draft(draft)
        if self.repo.get_by_email(email):
            raise DuplicateError("Email already registered")

        user = User.create(
            name=name,
            email=email,
            password_hash=self.hasher.hash(password),
            profile_photo=draft.profile_photo,
            now=self.clock.now(),
        )
        if not self.repo.insert(user):
            raise DomainError("Failed to create user")

        logger.info("User registered", extra={"userId": user.id})
        return user

    def authenticate(self, email: str, password: str) -> User:
        """Check credentials and stamp last_login.

        Raises:
            ValidationError: invalid credentials (deliberately vague)
        """
        user = self.repo.get_by_email((email or '').strip(), include_secrets=True)
        if not user or not self.hasher.verify(password, user.password_hash):
            raise ValidationError("Invalid email or password")

        now = self.clock.now()
        self.repo.update(user.id, {'last_login': now}, skip_validation=True)
        user.last_login = now
        return user

    def change_password(self, user_id: str, new_password: str, password_confirm: str) -> User:
        """Re-hash the password and stamp password_changed_at slightly in the past.

        Any outstanding reset token is invalidated.
        """
        password = validate_password_pair(new_password, password_confirm)
        if not self.repo.get_by_id(user_id):
            raise NotFoundError(f"User {user_id} not found")
        self._store_password(user_id, password)
        logger.info("Password changed", extra={"userId": user_id})
        return self._load(user_id, include_secrets=True)

    def was_password_changed_after(self, user: User, issued_at: float) -> bool:
        """True if a session token issued at `issued_at` (epoch seconds) predates the last password change."""
        return password_changed_after(user, issued_at)

    # ── security tokens ──────────────────────────────────────

    def issue_reset_token(self, user_id: str) -> str:
        """Issue a password reset token. Returns the raw token for out-of-band delivery."""
        return self._issue_token(user_id, TokenPurpose.PASSWORD_RESET)

    def issue_confirmation_token(self, user_id: str) -> str:
        """Issue an account confirmation token. Returns the raw token."""
        return self._issue_token(user_id, TokenPurpose.USER_CONFIRMATION)

    def reset_password(self, raw_token: str, new_password: str, password_confirm: str) -> User:
        """Set a new password using a reset token. The token is consumed on success.

        Raises:
            ValidationError: token invalid or expired (field 'token'), or weak password
        """
        user = self._redeem(TokenPurpose.PASSWORD_RESET, raw_token)
        password = validate_password_pair(new_password, password_confirm)
        self._store_password(
            user.id, password,
            expected={'password_reset_token': user.password_reset_token},
        )
        logger.info("Password reset", extra={"userId": user.id})
        return self._load(user.id, include_secrets=True)

    def confirm_user(self, raw_token: str) -> User:
        """Mark the account confirmed using a confirmation token. The token is consumed."""
        user = self._redeem(TokenPurpose.USER_CONFIRMATION, raw_token)
        fields = TOKEN_FIELDS[TokenPurpose.USER_CONFIRMATION]
        self.repo.update(
            user.id,
            {'is_user_confirmed': True, **fields.clear()},
            skip_validation=True,
            expected={fields.token: user.user_confirmation_token},
        )
        logger.info("User confirmed", extra={"userId": user.id})
        return self._load(user.id)

    # ── reads ────────────────────────────────────────────────

    def get_profile(self, user_id: str) -> UserProfile:
        return UserProfile.from_user(self._load(user_id))

    # ── helpers ──────────────────────────────────────────────

    def _load(self, user_id: str, include_secrets: bool = False) -> User:
        user = self.repo.get_by_id(user_id, include_secrets=include_secrets)
        if not user:
            raise NotFoundError(f"User {user_id} not found")
        return user

    def _store_password(self, user_id: str, password: str, expected: dict | None = None) -> None:
        fields = {
            'password_hash': self.hasher.hash(password),
            'password_changed_at': self.clock.now() - self.password_change_skew,
            **TOKEN_FIELDS[TokenPurpose.PASSWORD_RESET].clear(),
        }
        if not self.repo.update(user_id, fields, skip_validation=True, expected=expected):
            raise NotFoundError(f"User {user_id} not found")

    def _issue_token(self, user_id: str, purpose: TokenPurpose) -> str:
        token = self.issuers[purpose].issue()
        fields = TOKEN_FIELDS[purpose].set(token.hashed, token.expires_at)
        if not self.repo.update(user_id, fields, skip_validation=True):
            raise NotFoundError(f"User {user_id} not found")

        logger.info("Security token issued", extra={
            "userId": user_id,
            "purpose": purpose.value,
            "expiresAt": token.expires_at.isoformat(),
        })
        return token.raw

    def _redeem(self, purpose: TokenPurpose, raw_token: str) -> User:
        """Return the user holding a valid, unexpired token for this purpose."""
        issuer = self.issuers[purpose]
        user = None
        if raw_token:
            user = self.repo.find_by_token(TOKEN_FIELDS[purpose], issuer.hash_token(raw_token))
        if user:
            hashed, expires_at = user.token_for(purpose)
            if issuer.verify(raw_token, hashed, expires_at):
                return user

        logger.info("Security token rejected", extra={"purpose": purpose.value})
        raise ValidationError("Token is invalid or has expired", field='token')
