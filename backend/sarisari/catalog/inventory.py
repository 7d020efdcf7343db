"""Seller-side inventory management"""
import logging
from typing import Any, Dict, List, Optional

from ..database import ITEMS, to_object_id
from ..errors import NotFound, ValidationFailed
from ..models import Item
from .positions import PositionManager

logger = logging.getLogger(__name__)


class InventoryManager:
    """Add, edit and list a store's items"""

    def __init__(self, db, positions: PositionManager):
        self.db = db
        self.positions = positions

    async def list_items(self, store_id: str) -> List[Item]:
        """Dashboard listing in display order"""
        cursor = self.db[ITEMS].find({'store_id': store_id}).sort([('position', 1), ('_id', 1)])
        return [Item.from_doc(d) for d in await cursor.to_list(length=None)]

    async def get_item(self, item_id: str) -> Optional[Item]:
        oid = to_object_id(item_id)
        if oid is None:
            return None
        return Item.from_doc(await self.db[ITEMS].find_one({'_id': oid}))

    async def add_item(self, store_id: str, fields: Dict[str, Any],
                       logo_data: Optional[bytes] = None,
                       logo_content_type: Optional[str] = None) -> Item:
        """Create an item at the end of the store's ordering"""
        item = self._build(store_id, fields)
        if logo_data:
            item.logo_data = logo_data
            item.logo_content_type = logo_content_type
        return await self.positions.append(item)

    async def edit_item(self, store_id: str, item_id: str, fields: Dict[str, Any],
                        logo_data: Optional[bytes] = None,
                        logo_content_type: Optional[str] = None) -> Item:
        """Replace an item's editable fields.

        Position, creation time and owning store always come from the stored
        document. The logo is kept unless a new one is uploaded.
        """
        existing = await self.get_item(item_id)
        if existing is None or existing.store_id != store_id:
            raise NotFound(f"Item {item_id} not found")

        edited = self._build(store_id, fields)
        edited.id = existing.id
        edited.position = existing.position
        edited.created_at = existing.created_at
        if logo_data:
            edited.logo_data = logo_data
            edited.logo_content_type = logo_content_type
        else:
            edited.logo_data = existing.logo_data
            edited.logo_content_type = existing.logo_content_type

        await self.db[ITEMS].replace_one({'_id': to_object_id(existing.id)}, edited.to_doc())
        logger.info(f"Edited item {existing.id} in store {store_id}")
        return edited

    async def get_logo(self, item_id: str) -> Optional[Item]:
        item = await self.get_item(item_id)
        if item is None or not item.has_logo:
            return None
        return item

    def _build(self, store_id: str, fields: Dict[str, Any]) -> Item:
        name = (fields.get('name') or '').strip()
        if not name:
            raise ValidationFailed("Item name is required.")
        try:
            return Item(
                store_id=store_id,
                name=name,
                category=(fields.get('category') or '').strip() or 'General',
                quantity=fields.get('quantity') or 0,
                price=fields.get('price') or 0,
                cost_price=fields.get('cost_price') or 0,
            )
        except ValueError as e:
            raise ValidationFailed(f"Invalid item: {e}")
