"""Report Generator for store sales and inventory"""
import logging
import random
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Tuple

from ..config import reports as report_config
from ..database import ITEMS, ORDERS, utcnow
from ..models import CartItemDetail, Item, Order, Store

logger = logging.getLogger(__name__)

PLACEHOLDER_NOTE = "Ask Sari to analyze your upcoming holidays!"


class ReportGenerator:
    """Sales KPIs, stock watch lists and the 7-day sales chart"""

    def __init__(self, db):
        self.db = db

    async def load(self, store_id: str) -> Tuple[List[Item], List[Order]]:
        """A store's items and its orders, newest first"""
        items = await self.db[ITEMS].find({'store_id': store_id}).to_list(length=None)
        orders = await self.db[ORDERS].find({'store_id': store_id}).sort('order_date', -1).to_list(length=None)
        return [Item.from_doc(d) for d in items], [Order.from_doc(d) for d in orders]

    async def count_orders(self, store_id: str) -> int:
        return await self.db[ORDERS].count_documents({'store_id': store_id})

    def calculate_kpis(self, orders: List[Order]) -> Dict[str, Any]:
        total_revenue = sum(o.total_amount for o in orders)
        total_profit = sum(o.profit for o in orders)
        return {
            'total_revenue': round(total_revenue, 2),
            'total_profit': round(total_profit, 2),
            'total_orders': len(orders),
        }

    def low_stock(self, items: List[Item]) -> List[Item]:
        low = [i for i in items if i.quantity < report_config.low_stock_threshold]
        return sorted(low, key=lambda i: i.quantity)

    def slow_moving(self, items: List[Item], orders: List[Order]) -> List[Item]:
        """Well-stocked items that never appear in an order"""
        sold = {line.item_name for o in orders for line in o.items}
        slow = [i for i in items if i.quantity > report_config.slow_moving_min_qty and i.name not in sold]
        return slow[:report_config.slow_moving_limit]

    def sales_chart(self, orders: List[Order], today: datetime = None) -> Dict[str, float]:
        """Daily revenue for the last 7 days, oldest first, labelled like 'Mar 05'"""
        today = (today or utcnow()).date()
        days = [today - timedelta(days=report_config.chart_days - 1 - i) for i in range(report_config.chart_days)]
        chart = {}
        for day in days:
            total = sum(o.total_amount for o in orders if o.order_date.date() == day)
            chart[day.strftime('%b %d')] = round(total, 2)
        return chart

    async def generate_store_report(self, store: Store, today: datetime = None) -> Dict[str, Any]:
        items, orders = await self.load(store.id)
        kpis = self.calculate_kpis(orders)
        chart = self.sales_chart(orders, today)

        report = {
            'report_type': 'store',
            'store_id': store.id,
            'kpis': kpis,
            'recent_orders': [o.model_dump() for o in orders[:report_config.recent_orders_limit]],
            'low_stock_items': [i.public() for i in self.low_stock(items)],
            'slow_moving_items': [i.public() for i in self.slow_moving(items, orders)],
            'sales_chart': {'labels': list(chart.keys()), 'data': list(chart.values())},
            'generated_at': utcnow().isoformat(),
        }

        if store.report is not None:
            report['forecast'] = {
                'data': store.report.forecast,
                'forecasted_revenue': store.report.forecasted_revenue,
                'holiday_note': store.report.holiday_note,
                'tips': store.report.tips,
                'generated_at': store.report.generated_at.isoformat(),
            }
        else:
            report['forecast'] = {
                'data': list(chart.values()),
                'forecasted_revenue': 0,
                'holiday_note': PLACEHOLDER_NOTE,
                'tips': [],
                'generated_at': None,
            }
        return report

    async def seed_history(self, store_id: str, rng: Optional[random.Random] = None) -> int:
        """Fill the last 31 days with random demo orders. Returns the number created."""
        rng = rng or random.Random()
        items, _ = await self.load(store_id)

        if not items:
            starter = Item(store_id=store_id, name='Starter Pack', price=100, cost_price=80, quantity=100, position=1)
            result = await self.db[ITEMS].insert_one(starter.to_doc())
            starter.id = str(result.inserted_id)
            items.append(starter)

        now = utcnow()
        new_orders = []
        for days_ago in range(30, -1, -1):
            if rng.random() > 0.7:
                continue
            date = now - timedelta(days=days_ago)
            for _ in range(rng.randint(1, 7)):
                lines = []
                for _ in range(rng.randint(1, 3)):
                    item = items[rng.randrange(len(items))]
                    lines.append(CartItemDetail(
                        item_name=item.name,
                        price=item.price,
                        cost=item.cost_price,
                        quantity=rng.randint(1, 2),
                    ))
                new_orders.append(Order(
                    store_id=store_id,
                    customer_name='Walk-in Customer',
                    order_code=f"RND-{rng.randint(10000, 99999)}",
                    status='Completed',
                    order_date=date,
                    items=lines,
                    total_amount=round(sum(line.total for line in lines), 2),
                ).to_doc())

        if new_orders:
            await self.db[ORDERS].insert_many(new_orders)
        logger.info(f"Seeded {len(new_orders)} demo orders for store {store_id}")
        return len(new_orders)
