"""bcrypt implementation of PasswordHasher."""

from logging import getLogger

import bcrypt

from domain.model.errors import HashingError

logger = getLogger(__name__)

# 2^13 iterations
DEFAULT_ROUNDS = 13


class BcryptPasswordHasher:
    def __init__(self, rounds: int = DEFAULT_ROUNDS):
        if not 4 <= rounds <= 31:
            raise ValueError(f"bcrypt rounds must be between 4 and 31, got {rounds}")
        self.rounds = rounds

    def hash(self, plaintext: str) -> str:
        try:
            salt = bcrypt.gensalt(rounds=self.rounds)
            return bcrypt.hashpw(plaintext.encode('utf-8'), salt).decode('utf-8')
        except (ValueError, TypeError, OSError) as e:
            logger.error("Password hashing failed", extra={"error": type(e).__name__})
            raise HashingError("Failed to hash password") from e

    def verify(self, plaintext: str, hashed: str | None) -> bool:
        if not plaintext or not hashed:
            return False
        try:
            return bcrypt.checkpw(plaintext.encode('utf-8'), hashed.encode('utf-8'))
        except (ValueError, TypeError):
            logger.warning("Stored password hash is malformed")
            return False
