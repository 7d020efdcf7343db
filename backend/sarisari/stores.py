"""Seller storefront records"""
import logging
from typing import List, Optional

from .config import store_defaults
from .database import STORES, to_object_id
from .models import Store, StoreReport, StoreSettings, User

logger = logging.getLogger(__name__)


class StoreService:
    """Look up, lazily create and update stores"""

    def __init__(self, db):
        self.db = db

    async def get(self, store_id: str) -> Optional[Store]:
        oid = to_object_id(store_id)
        if oid is None:
            return None
        return Store.from_doc(await self.db[STORES].find_one({'_id': oid}))

    async def get_for_owner(self, owner_id: str) -> Optional[Store]:
        return Store.from_doc(await self.db[STORES].find_one({'owner_id': owner_id}))

    async def get_or_create_for_owner(self, user: User) -> Store:
        """The owner's store, created on first dashboard visit"""
        store = await self.get_for_owner(user.id)
        if store is not None:
            return store

        store = Store(
            owner_id=user.id,
            store_name=f"{user.username}'s Store",
            theme_color=store_defaults.theme_color,
        )
        result = await self.db[STORES].insert_one(store.to_doc())
        store.id = str(result.inserted_id)
        logger.info(f"Created store {store.id} for user {user.id}")
        return store

    async def update_settings(self, user: User, settings: StoreSettings) -> Store:
        store = await self.get_or_create_for_owner(user)
        await self.db[STORES].update_one(
            {'_id': to_object_id(store.id)},
            {'$set': {
                'store_name': settings.store_name,
                'theme_color': settings.theme_color,
                'description': settings.description,
            }}
        )
        return store.model_copy(update=settings.model_dump())

    async def save_report(self, store_id: str, report: StoreReport) -> None:
        await self.db[STORES].update_one(
            {'_id': to_object_id(store_id)}, {'$set': {'report': report.model_dump()}}
        )

    async def list_marketplace(self, viewer: Optional[User] = None, limit: int = 100) -> List[Store]:
        """All stores, the viewer's own store first"""
        docs = await self.db[STORES].find({}).sort('_id', 1).limit(limit).to_list(length=limit)
        stores = [Store.from_doc(d) for d in docs]
        if viewer is not None:
            own = [s for s in stores if s.owner_id == viewer.id]
            stores = own + [s for s in stores if s.owner_id != viewer.id]
        return stores
