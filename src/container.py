"""Process-start wiring.

Builds the user service once; controllers receive it by reference instead of
looking up a global model.
"""

import logging
from datetime import timedelta

from dotenv import load_dotenv

# Must run before utils.config reads the environment
load_dotenv()

from adapter.crypto.bcrypt_hasher import BcryptPasswordHasher
from adapter.mongodb.connection import get_mongodb_client
from adapter.mongodb.indexes import ensure_all_indexes
from adapter.mongodb.user_repository import MongoUserRepository
from adapter.system.clock import SystemClock
from domain.model.user import TokenPurpose
from port.clock import Clock
from port.user_repository import UserRepository
from services.token_issuer import SecurityTokenIssuer
from services.user_service import UserService
from utils import config
from utils.logging import setup_structured_logging

logger = logging.getLogger(__name__)


def build_user_service(repo: UserRepository, clock: Clock | None = None) -> UserService:
    clock = clock or SystemClock()
    ttl = timedelta(minutes=config.TOKEN_TTL_MINUTES)
    return UserService(
        repo=repo,
        hasher=BcryptPasswordHasher(rounds=config.BCRYPT_ROUNDS),
        clock=clock,
        reset_tokens=SecurityTokenIssuer(TokenPurpose.PASSWORD_RESET, clock, ttl=ttl),
        confirmation_tokens=SecurityTokenIssuer(TokenPurpose.USER_CONFIRMATION, clock, ttl=ttl),
        password_change_skew=timedelta(seconds=config.PASSWORD_CHANGE_SKEW_SECONDS),
    )


def bootstrap() -> tuple[UserService, MongoUserRepository]:
    """Set up logging, connect to MongoDB, ensure indexes and build the service.

    Raises RuntimeError if MongoDB is unavailable.
    """
    setup_structured_logging()

    client = get_mongodb_client()
    if client is None:
        raise RuntimeError("MongoDB unavailable")
    db = client[config.DATABASE_NAME]

    if ensure_all_indexes(db):
        logger.info("MongoDB indexes verified/created successfully")
    else:
        logger.warning("Failed to create some MongoDB indexes")

    clock = SystemClock()
    repo = MongoUserRepository(db, clock=clock)
    return build_user_service(repo, clock=clock), repo
