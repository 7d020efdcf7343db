"""Checkout: cart to order, with stock decrement"""
import logging
import random
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from ..config import store_defaults
from ..database import ITEMS, ORDERS, to_object_id
from ..models import CartLine, Item, Order
from ..utils.notifications import NotificationManager
from .cart import CartService

logger = logging.getLogger(__name__)


@dataclass
class CheckoutResult:
    status: str  # ok, empty, insufficient
    order: Optional[Order] = None
    message: str = ''
    short_items: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.status == 'ok'


def generate_order_code() -> str:
    return f"OR-{random.randint(1000, 9999)}"


class CheckoutEngine:
    """Turn a visitor's cart into a persisted order.

    Stock is validated for every line before anything is written, then each
    line is decremented with a conditional update. If a later step fails, the
    decrements already applied are put back, so a failed checkout leaves
    neither an order nor reduced stock behind.
    """

    def __init__(self, db, cart_service: CartService, notifications: NotificationManager):
        self.db = db
        self.cart = cart_service
        self.notifications = notifications

    async def checkout(self, session_id: str, store_id: str, customer_name: Optional[str] = None) -> CheckoutResult:
        lines = await self.cart.carts.get_lines(session_id, store_id)
        details, resolved = await self.cart.price_lines(lines, store_id)
        if not details:
            return CheckoutResult(status='empty', message="Your cart is empty.")
        total = round(sum(d.total for d in details), 2)

        short = [item.name for line, item in resolved if item.quantity < line.quantity]
        if short:
            return self._insufficient(short)

        applied = await self._decrement_stock(resolved)
        if applied is None:
            return self._insufficient([])

        order = Order(
            store_id=store_id,
            customer_name=customer_name or 'Guest',
            items=details,
            total_amount=total,
            order_code=generate_order_code(),
            status='Pending',
        )
        try:
            result = await self.db[ORDERS].insert_one(order.to_doc())
        except Exception:
            logger.error(f"Order insert failed for store {store_id}, restoring stock")
            await self._restore_stock(applied)
            raise
        order.id = str(result.inserted_id)

        await self.cart.carts.clear(session_id, store_id)
        await self.notifications.order_notification(
            store_id, order.order_code, total, store_defaults.currency_symbol
        )
        logger.info(f"Order {order.order_code} ({order.id}) created for store {store_id}: {total:.2f}")
        return CheckoutResult(status='ok', order=order, message="Order placed.")

    async def _decrement_stock(self, resolved: List[Tuple[CartLine, Item]]) -> Optional[List[Tuple[str, int]]]:
        """Decrement every line or none. Returns the applied decrements."""
        applied = []
        for line, item in resolved:
            oid = to_object_id(item.id)
            result = await self.db[ITEMS].update_one(
                {'_id': oid, 'quantity': {'$gte': line.quantity}},
                {'$inc': {'quantity': -line.quantity}}
            )
            if result.modified_count != 1:
                logger.warning(f"Stock for item {item.id} changed during checkout")
                await self._restore_stock(applied)
                return None
            applied.append((item.id, line.quantity))
        return applied

    async def _restore_stock(self, applied: List[Tuple[str, int]]) -> None:
        for item_id, quantity in applied:
            await self.db[ITEMS].update_one(
                {'_id': to_object_id(item_id)}, {'$inc': {'quantity': quantity}}
            )

    def _insufficient(self, names: List[str]) -> CheckoutResult:
        if names:
            message = f"Not enough stock for: {', '.join(names)}."
        else:
            message = "Stock changed while checking out. Please review your cart."
        return CheckoutResult(status='insufficient', message=message, short_items=names)

    async def get_receipt(self, store_id: str, order_id: str) -> Optional[Order]:
        oid = to_object_id(order_id)
        if oid is None:
            return None
        return Order.from_doc(await self.db[ORDERS].find_one({'_id': oid, 'store_id': store_id}))
