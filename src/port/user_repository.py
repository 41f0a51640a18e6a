from typing import Protocol

from domain.model.user import TokenFields, User


class UserRepository(Protocol):
    """Protocol defining the interface for user data access.

    Reads leave password_hash and token fields unset unless include_secrets is True.
    """
    def insert(self, user: User) -> bool:
        """Persist a new user. Raise DuplicateError if the email is taken."""
        ...

    def get_by_email(self, email: str, include_secrets: bool = False) -> User | None:
        """Find a user by email. Return User or None if not found."""
        ...

    def get_by_id(self, user_id: str, include_secrets: bool = False) -> User | None:
        """Find a user by ID. Return User or None if not found."""
        ...

    def find_by_token(self, fields: TokenFields, token_hash: str) -> User | None:
        """Find the user holding token_hash in the given token field, with secrets."""
        ...

    def update(
        self,
        user_id: str,
        fields: dict,
        skip_validation: bool = False,
        expected: dict | None = None,
    ) -> bool:
        """Apply a partial update. Return False if the user does not exist.

        When expected is given the write only happens if those fields still hold
        those values; otherwise ConcurrentModificationError is raised.
        """
        ...
