from typing import Protocol


class PasswordHasher(Protocol):
    def hash(self, plaintext: str) -> str:
        """One-way salted hash. Raise HashingError if the primitive fails."""
        ...

    def verify(self, plaintext: str, hashed: str | None) -> bool:
        """Return True on match. Never raises."""
        ...
