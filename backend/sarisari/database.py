"""MongoDB access helpers"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

from .config import DatabaseConfig

logger = logging.getLogger(__name__)

# Collection names
ITEMS = 'items'
STORES = 'stores'
ORDERS = 'orders'
CHATS = 'chats'
NOTIFICATIONS = 'notifications'
USERS = 'users'
USER_SESSIONS = 'user_sessions'
CARTS = 'carts'


def connect(config: DatabaseConfig) -> AsyncIOMotorClient:
    """Create the motor client. Connection is lazy until the first operation."""
    logger.info(f"Connecting to MongoDB database '{config.db_name}'")
    return AsyncIOMotorClient(config.mongo_url)


async def ensure_indexes(db: AsyncIOMotorDatabase) -> None:
    """Declare the indexes implied by the query patterns."""
    await db[ITEMS].create_index([('store_id', 1), ('position', 1)])
    await db[ORDERS].create_index([('store_id', 1), ('order_date', -1)])
    await db[CHATS].create_index([('store_id', 1), ('guest_id', 1), ('timestamp', 1)])
    await db[NOTIFICATIONS].create_index([('store_id', 1), ('is_read', 1)])
    await db[STORES].create_index('owner_id')
    await db[USER_SESSIONS].create_index('session_token', unique=True)
    await db[CARTS].create_index('expires_at', expireAfterSeconds=0)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ensure_aware(value: Optional[datetime]) -> Optional[datetime]:
    """Mongo hands back naive datetimes; they are always UTC."""
    if value is None:
        return None
    if isinstance(value, str):
        value = datetime.fromisoformat(value)
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


def to_object_id(value: Any) -> Optional[ObjectId]:
    """Parse a 24-hex id, returning None for anything malformed."""
    if isinstance(value, ObjectId):
        return value
    if isinstance(value, str) and ObjectId.is_valid(value):
        return ObjectId(value)
    return None


def to_object_ids(values: Iterable[Any]) -> List[ObjectId]:
    ids = []
    for value in values:
        oid = to_object_id(value)
        if oid is not None:
            ids.append(oid)
    return ids


def serialize_doc(doc: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Replace Mongo's `_id` with a string `id`."""
    if doc is None:
        return None
    d = dict(doc)
    _id = d.pop('_id', None)
    if _id is not None:
        d['id'] = str(_id)
    return d
