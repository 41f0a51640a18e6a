"""MongoDB index management utilities.

Idempotent index creation for any collection. An existing index that clashes
with the requested one (same name with other keys, or same keys under another
name) is dropped and rebuilt.
"""

from logging import getLogger

from pymongo.collection import Collection
from pymongo.errors import PyMongoError

logger = getLogger(__name__)


def create_index_safe(collection: Collection, keys: list, name: str, **kwargs) -> bool:
    """Create index `name` on `keys`, rebuilding a conflicting index if needed."""
    try:
        collection.create_index(keys, name=name, **kwargs)
        return True
    except PyMongoError as e:
        if "already exists" not in str(e) and "Conflict" not in str(e):
            raise

    conflicting = _find_conflict(collection, keys, name)
    if conflicting is None:
        logger.error("Unresolvable index conflict", extra={"index": name})
        return False

    logger.warning("Rebuilding conflicting index", extra={"dropped": conflicting, "index": name})
    collection.drop_index(conflicting)
    collection.create_index(keys, name=name, **kwargs)
    return True


def _find_conflict(collection: Collection, keys: list, name: str) -> str | None:
    """Name of the existing index that blocks creating `name` on `keys`."""
    wanted = dict(keys)
    for existing, info in collection.index_information().items():
        if existing == '_id_':
            continue
        same_keys = dict(info.get('key', [])) == wanted
        if (existing == name) != same_keys:
            return existing
    return None


def ensure_all_indexes(db) -> bool:
    """Ensure indexes for all collections. Called at process start."""
    from adapter.mongodb.user_repository import MongoUserRepository

    return MongoUserRepository(db).ensure_indexes()
