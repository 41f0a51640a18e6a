"""MongoDB implementation of UserRepository."""

from enum import Enum
from logging import getLogger

from pymongo.database import Database
from pymongo.errors import DuplicateKeyError, PyMongoError

from adapter.mongodb.connection import USERS_COLLECTION_NAME
from adapter.system.clock import SystemClock
from domain.model.errors import ConcurrentModificationError, DuplicateError
from domain.model.user import (
    SECRET_FIELDS, TOKEN_FIELDS,
    DealershipApplicationStatus, Role, TokenFields, User,
)
from domain.model.validation import validate_fields
from port.clock import Clock

logger = getLogger(__name__)

_PUBLIC_PROJECTION = {name: 0 for name in SECRET_FIELDS}


def _to_mongo(value):
    return value.value if isinstance(value, Enum) else value


class MongoUserRepository:
    def __init__(self, db: Database, clock: Clock | None = None):
        self.collection = db[USERS_COLLECTION_NAME]
        self.clock = clock or SystemClock()

    # ── indexes ──────────────────────────────────────────────

    def ensure_indexes(self) -> bool:
        """Create indexes for users collection."""
        from adapter.mongodb.indexes import create_index_safe

        try:
            create_index_safe(self.collection, [('email', 1)], 'idx_users_email', unique=True)
            create_index_safe(self.collection, [('created_at', -1)], 'idx_users_created_at')
            for fields in TOKEN_FIELDS.values():
                create_index_safe(self.collection, [(fields.token, 1)], f'idx_users_{fields.token}', sparse=True)
            create_index_safe(
                self.collection, [('dealership_application_status', 1)],
                'idx_users_dealership_status', sparse=True,
            )
            return True
        except PyMongoError as e:
            logger.error("Failed to create users indexes", extra={"error": str(e)})
            return False

    # ── helpers ──────────────────────────────────────────────

    def _to_domain(self, doc: dict) -> User:
        """Convert MongoDB document to User domain model."""
        status = doc.get('dealership_application_status')
        return User(
            id=doc['_id'],
            name=doc['name'],
            email=doc['email'],
            created_at=doc['created_at'],
            updated_at=doc['updated_at'],
            role=Role(doc.get('role', Role.USER.value)),
            password_hash=doc.get('password_hash'),
            password_changed_at=doc.get('password_changed_at'),
            dealership_application_status=DealershipApplicationStatus(status) if status else None,
            apply_for_dealership=doc.get('apply_for_dealership', False),
            is_user_confirmed=doc.get('is_user_confirmed', False),
            profile_photo=doc.get('profile_photo'),
            last_login=doc.get('last_login'),
            password_reset_token=doc.get('password_reset_token'),
            password_reset_token_expires=doc.get('password_reset_token_expires'),
            user_confirmation_token=doc.get('user_confirmation_token'),
            user_confirmation_token_expires=doc.get('user_confirmation_token_expires'),
        )

    def _to_document(self, user: User) -> dict:
        doc = {'_id': user.id}
        for key, value in user.__dict__.items():
            if key == 'id' or value is None:
                continue
            doc[key] = _to_mongo(value)
        return doc

    def _find_one(self, query: dict, include_secrets: bool) -> User | None:
        projection = None if include_secrets else _PUBLIC_PROJECTION
        doc = self.collection.find_one(query, projection)
        return self._to_domain(doc) if doc else None

    # ── write operations ─────────────────────────────────────

    def insert(self, user: User) -> bool:
        """Insert a new user document."""
        try:
            self.collection.insert_one(self._to_document(user))
            logger.info("User created", extra={"userId": user.id})
            return True
        except DuplicateKeyError:
            logger.warning("User creation failed: email already exists", extra={"email": user.email})
            raise DuplicateError("Email already registered")
        except PyMongoError as e:
            logger.error("Failed to create user", extra={"email": user.email, "error": str(e)})
            return False

    def update(
        self,
        user_id: str,
        fields: dict,
        skip_validation: bool = False,
        expected: dict | None = None,
    ) -> bool:
        """Apply a partial update. None values unset the field."""
        if not skip_validation:
            validate_fields(fields)

        to_set = {k: _to_mongo(v) for k, v in fields.items() if v is not None}
        to_set['updated_at'] = self.clock.now()
        to_unset = {k: '' for k, v in fields.items() if v is None}
        update = {'$set': to_set}
        if to_unset:
            update['$unset'] = to_unset

        query = {'_id': user_id}
        if expected:
            query.update({k: _to_mongo(v) for k, v in expected.items()})

        try:
            result = self.collection.update_one(query, update)
        except DuplicateKeyError:
            raise DuplicateError("Email already registered")

        if result.matched_count > 0:
            logger.debug("Updated user", extra={"userId": user_id, "fields": sorted(fields)})
            return True

        if expected and self.collection.count_documents({'_id': user_id}, limit=1):
            logger.warning("Conditional user update lost a race", extra={"userId": user_id})
            raise ConcurrentModificationError("User was modified concurrently")
        return False

    # ── read operations ──────────────────────────────────────

    def get_by_email(self, email: str, include_secrets: bool = False) -> User | None:
        """Find a user by email. Return User or None if not found."""
        try:
            return self._find_one({'email': email}, include_secrets)
        except PyMongoError as e:
            logger.error("Failed to get user by email", extra={"email": email, "error": str(e)})
            return None

    def get_by_id(self, user_id: str, include_secrets: bool = False) -> User | None:
        """Find a user by ID. Return User or None if not found."""
        try:
            return self._find_one({'_id': user_id}, include_secrets)
        except PyMongoError as e:
            logger.error("Failed to get user by ID", extra={"userId": user_id, "error": str(e)})
            return None

    def find_by_token(self, fields: TokenFields, token_hash: str) -> User | None:
        try:
            return self._find_one({fields.token: token_hash}, include_secrets=True)
        except PyMongoError as e:
            logger.error("Failed to find user by token", extra={"field": fields.token, "error": str(e)})
            return None
