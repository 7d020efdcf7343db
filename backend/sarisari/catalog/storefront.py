"""Customer-facing catalog browsing"""
import re
from typing import List, Optional

from ..database import ITEMS
from ..models import Item

SORTS = {
    'position': [('position', 1), ('_id', 1)],
    'price_asc': [('price', 1), ('_id', 1)],
    'price_desc': [('price', -1), ('_id', 1)],
    'name': [('name', 1), ('_id', 1)],
}


class Storefront:
    """Catalog listing, search and search suggestions"""

    def __init__(self, db):
        self.db = db

    async def catalog(self, store_id: str, sort: Optional[str] = None,
                      min_price: Optional[float] = None,
                      max_price: Optional[float] = None) -> List[Item]:
        query = {'store_id': store_id}
        price = {}
        if min_price is not None:
            price['$gte'] = min_price
        if max_price is not None:
            price['$lte'] = max_price
        if price:
            query['price'] = price

        cursor = self.db[ITEMS].find(query).sort(SORTS.get(sort or 'position', SORTS['position']))
        return [Item.from_doc(d) for d in await cursor.to_list(length=None)]

    async def search(self, term: str, store_id: Optional[str] = None) -> List[Item]:
        """Case-insensitive match on name or category, scoped to a store when given"""
        if not term or not term.strip():
            return []
        pattern = {'$regex': re.escape(term.strip()), '$options': 'i'}
        query = {'$or': [{'name': pattern}, {'category': pattern}]}
        if store_id:
            query['store_id'] = store_id
        cursor = self.db[ITEMS].find(query).sort([('position', 1), ('_id', 1)])
        return [Item.from_doc(d) for d in await cursor.to_list(length=None)]

    async def suggestions(self, term: str, store_id: Optional[str] = None, limit: int = 5) -> List[str]:
        """Item names starting with the typed prefix"""
        if not term or not term.strip():
            return []
        query = {'name': {'$regex': '^' + re.escape(term.strip()), '$options': 'i'}}
        if store_id:
            query['store_id'] = store_id
        cursor = self.db[ITEMS].find(query, {'name': 1}).limit(limit)
        return [d['name'] for d in await cursor.to_list(length=limit)]
