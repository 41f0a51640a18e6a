"""Single-use security tokens for password reset and account confirmation.

Only the SHA-256 hash of a token is persisted; the raw value goes to the user
out-of-band and is never stored. Hashes are domain-separated by purpose so a
reset token can never satisfy a confirmation check or the other way round.
"""

import hashlib
import hmac
import secrets
from datetime import datetime, timedelta

from domain.model.user import IssuedToken, TokenPurpose
from port.clock import Clock

MIN_TOKEN_BYTES = 32
DEFAULT_TTL = timedelta(minutes=10)


class SecurityTokenIssuer:
    def __init__(
        self,
        purpose: TokenPurpose,
        clock: Clock,
        ttl: timedelta = DEFAULT_TTL,
        nbytes: int = MIN_TOKEN_BYTES,
    ):
        if nbytes < MIN_TOKEN_BYTES:
            raise ValueError(f"Tokens need at least {MIN_TOKEN_BYTES} bytes of entropy, got {nbytes}")
        if ttl <= timedelta(0):
            raise ValueError("Token ttl must be positive")
        self.purpose = TokenPurpose(purpose)
        self.clock = clock
        self.ttl = ttl
        self.nbytes = nbytes

    def hash_token(self, raw: str) -> str:
        payload = f"{self.purpose.value}:{raw}".encode('utf-8')
        return hashlib.sha256(payload).hexdigest()

    def issue(self) -> IssuedToken:
        raw = secrets.token_hex(self.nbytes)
        return IssuedToken(
            raw=raw,
            hashed=self.hash_token(raw),
            expires_at=self.clock.now() + self.ttl,
        )

    def verify(
        self,
        raw: str | None,
        hashed: str | None,
        expires_at: datetime | None,
        now: datetime | None = None,
    ) -> bool:
        """True only if raw hashes to `hashed` and `now` has not passed `expires_at`."""
        if not raw or not hashed or expires_at is None:
            return False
        now = now or self.clock.now()
        if now > expires_at:
            return False
        return hmac.compare_digest(self.hash_token(raw), hashed)
