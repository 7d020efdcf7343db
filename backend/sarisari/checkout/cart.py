"""Per-visitor shopping carts"""
import logging
from datetime import timedelta
from typing import List, Optional, Tuple

from ..config import sessions as session_config
from ..database import CARTS, ITEMS, ensure_aware, to_object_id, utcnow
from ..errors import NotFound
from ..models import CartItemDetail, CartLine, Item
from ..utils.notifications import NotificationManager

logger = logging.getLogger(__name__)


class CartStore:
    """Carts keyed by visitor session and store, with a sliding idle TTL.

    A cart not touched for `idle_minutes` reads as empty and is removed.
    """

    def __init__(self, db, idle_minutes: int = None):
        self.db = db
        self.idle_minutes = idle_minutes or session_config.cart_idle_minutes

    @staticmethod
    def cart_key(session_id: str, store_id: str) -> str:
        return f"{session_id}:{store_id}"

    def _expiry(self):
        return utcnow() + timedelta(minutes=self.idle_minutes)

    async def get_lines(self, session_id: str, store_id: str) -> List[CartLine]:
        key = self.cart_key(session_id, store_id)
        doc = await self.db[CARTS].find_one({'_id': key})
        if doc is None:
            return []

        expires_at = ensure_aware(doc.get('expires_at'))
        if expires_at is not None and expires_at < utcnow():
            logger.info(f"Cart {key} expired")
            await self.db[CARTS].delete_one({'_id': key})
            return []

        await self.db[CARTS].update_one({'_id': key}, {'$set': {'expires_at': self._expiry()}})
        return [CartLine(**line) for line in doc.get('lines', [])]

    async def save_lines(self, session_id: str, store_id: str, lines: List[CartLine]) -> None:
        await self.db[CARTS].update_one(
            {'_id': self.cart_key(session_id, store_id)},
            {'$set': {
                'session_id': session_id,
                'store_id': store_id,
                'lines': [line.model_dump() for line in lines],
                'expires_at': self._expiry(),
            }},
            upsert=True
        )

    async def clear(self, session_id: str, store_id: str) -> None:
        await self.db[CARTS].delete_one({'_id': self.cart_key(session_id, store_id)})


class CartService:
    """Add to cart and compute the priced cart"""

    def __init__(self, db, carts: CartStore, notifications: NotificationManager):
        self.db = db
        self.carts = carts
        self.notifications = notifications

    async def add_to_cart(self, session_id: str, store_id: str, item_id: str, quantity: int = 1) -> int:
        """Merge a line into the cart and return the cart's total unit count.

        Items belonging to another store are refused.
        """
        if quantity is None or quantity < 1:
            quantity = 1

        item = await self._resolve(item_id)
        if item is not None and item.store_id != store_id:
            logger.warning(f"Refused item {item_id} from store {item.store_id} in cart for store {store_id}")
            raise NotFound("Item not found in this store.")

        lines = await self.carts.get_lines(session_id, store_id)
        existing = next((line for line in lines if line.item_id == item_id), None)
        if existing is not None:
            existing.quantity += quantity
        else:
            lines.append(CartLine(item_id=item_id, quantity=quantity))
        await self.carts.save_lines(session_id, store_id, lines)

        await self._notify_cart(item, quantity)
        return sum(line.quantity for line in lines)

    async def _notify_cart(self, item: Optional[Item], quantity: int) -> None:
        if item is None:
            return
        try:
            await self.notifications.cart_notification(item.store_id, item.name, quantity)
        except Exception as e:
            logger.warning(f"Cart notification for item {item.id} failed: {e}")

    async def _resolve(self, item_id: str) -> Optional[Item]:
        oid = to_object_id(item_id)
        if oid is None:
            return None
        return Item.from_doc(await self.db[ITEMS].find_one({'_id': oid}))

    async def load_cart(self, session_id: str, store_id: str) -> Tuple[List[CartItemDetail], float]:
        """Snapshot live name/price/cost for each line and total the cart.

        Lines whose item no longer exists, or belongs to another store, are left
        out of the result but stay in the stored cart.
        """
        lines = await self.carts.get_lines(session_id, store_id)
        details, _ = await self.price_lines(lines, store_id)
        total = round(sum(d.total for d in details), 2)
        return details, total

    async def price_lines(self, lines: List[CartLine], store_id: str) -> Tuple[List[CartItemDetail], List[Tuple[CartLine, Item]]]:
        details = []
        resolved = []
        for line in lines:
            item = await self._resolve(line.item_id)
            if item is None or item.store_id != store_id:
                continue
            details.append(CartItemDetail(
                item_name=item.name,
                quantity=line.quantity,
                price=item.price,
                cost=item.cost_price,
            ))
            resolved.append((line, item))
        return details, resolved

    async def count(self, session_id: str, store_id: str) -> int:
        lines = await self.carts.get_lines(session_id, store_id)
        return sum(line.quantity for line in lines)
