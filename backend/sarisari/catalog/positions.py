"""Display ordering of a store's catalog"""
import logging
from typing import Iterable, List, Union

from ..database import ITEMS, to_object_id, to_object_ids
from ..models import Item

logger = logging.getLogger(__name__)


class PositionManager:
    """Maintain the user-controlled ordering of a store's items.

    Positions need not be contiguous. Deletes leave gaps behind; only
    `reindex` closes them.
    """

    def __init__(self, db):
        self.db = db

    @property
    def items(self):
        return self.db[ITEMS]

    async def next_position(self, store_id: str) -> int:
        """One past the highest position in the store, or 1 when it is empty"""
        highest = await self.items.find_one(
            {'store_id': store_id}, {'position': 1}, sort=[('position', -1)]
        )
        if highest is None:
            return 1
        return int(highest.get('position', 0)) + 1

    async def append(self, item: Item) -> Item:
        """Insert an item at the end of its store's ordering"""
        item.position = await self.next_position(item.store_id)
        result = await self.items.insert_one(item.to_doc())
        item.id = str(result.inserted_id)
        logger.info(f"Appended item {item.id} '{item.name}' at position {item.position}")
        return item

    async def swap(self, store_id: str, item_ids: List[str]) -> bool:
        """Exchange the positions of exactly two items of the same store"""
        if item_ids is None or len(item_ids) != 2 or item_ids[0] == item_ids[1]:
            return False

        oids = to_object_ids(item_ids)
        if len(oids) != 2:
            return False

        docs = await self.items.find(
            {'_id': {'$in': oids}}, {'position': 1, 'store_id': 1}
        ).to_list(length=2)
        if len(docs) != 2:
            return False
        if any(d.get('store_id') != store_id for d in docs):
            logger.warning(f"Refused swap of {item_ids}: items not both in store {store_id}")
            return False

        first, second = docs
        await self.items.update_one({'_id': first['_id']}, {'$set': {'position': second.get('position', 0)}})
        await self.items.update_one({'_id': second['_id']}, {'$set': {'position': first.get('position', 0)}})
        return True

    async def reindex(self, store_id: str) -> int:
        """Renumber positions 1..N in (position, id) order, writing only changed items"""
        docs = await self.items.find(
            {'store_id': store_id}, {'position': 1}
        ).sort([('position', 1), ('_id', 1)]).to_list(length=None)

        writes = 0
        for p, doc in enumerate(docs, start=1):
            if doc.get('position') != p:
                await self.items.update_one({'_id': doc['_id']}, {'$set': {'position': p}})
                writes += 1

        logger.info(f"Reindexed store {store_id}: {len(docs)} items, {writes} writes")
        return writes

    async def delete(self, store_id: str, item_id: str) -> bool:
        """Remove one item; remaining positions are left as they are"""
        oid = to_object_id(item_id)
        if oid is None:
            return False
        result = await self.items.delete_one({'_id': oid, 'store_id': store_id})
        return result.deleted_count == 1

    async def mass_delete(self, store_id: str, item_ids: Union[str, Iterable[str]]) -> int:
        """Remove many items. Accepts a list or a comma-separated id string."""
        if not item_ids:
            return 0
        if isinstance(item_ids, str):
            item_ids = [i for i in item_ids.split(',') if i.strip()]
        oids = to_object_ids(i.strip() for i in item_ids)
        if not oids:
            return 0
        result = await self.items.delete_many({'_id': {'$in': oids}, 'store_id': store_id})
        return result.deleted_count
