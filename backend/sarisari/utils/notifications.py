"""Store notifications"""
import logging
from typing import Any, Dict, List

from ..database import NOTIFICATIONS
from ..models import Notification

logger = logging.getLogger(__name__)


class NotificationManager:
    """Create and read store-facing notifications"""

    TYPES = ('info', 'cart', 'order', 'chat')

    def __init__(self, db):
        self.db = db

    async def create(self, store_id: str, message: str, notif_type: str = 'info') -> Notification:
        """Create a new unread notification"""
        if notif_type not in self.TYPES:
            notif_type = 'info'
        notif = Notification(store_id=store_id, message=message, type=notif_type)
        result = await self.db[NOTIFICATIONS].insert_one(notif.to_doc())
        notif.id = str(result.inserted_id)
        logger.info(f"Notification [{notif_type}] for store {store_id}: {message}")
        return notif

    async def get_unread(self, store_id: str, limit: int = 20) -> List[Notification]:
        """Unread notifications, newest first"""
        cursor = self.db[NOTIFICATIONS].find(
            {'store_id': store_id, 'is_read': False}
        ).sort('timestamp', -1).limit(limit)
        return [Notification.from_doc(d) for d in await cursor.to_list(length=limit)]

    async def mark_all_read(self, store_id: str) -> int:
        result = await self.db[NOTIFICATIONS].update_many(
            {'store_id': store_id}, {'$set': {'is_read': True}}
        )
        return result.modified_count

    # Convenience methods for common notifications
    async def cart_notification(self, store_id: str, item_name: str, quantity: int):
        return await self.create(store_id, f"Customer added {quantity}x {item_name} to cart.", 'cart')

    async def order_notification(self, store_id: str, order_code: str, total: float, currency: str = '₱'):
        return await self.create(
            store_id, f"New Order {order_code} received! Total: {currency}{total:,.2f}", 'order'
        )

    async def chat_notification(self, store_id: str, message: str = "New message from customer."):
        return await self.create(store_id, message, 'chat')

    def serialize(self, notifications: List[Notification]) -> List[Dict[str, Any]]:
        return [n.model_dump() for n in notifications]
