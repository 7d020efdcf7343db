"""Sari's inventory insights, sales forecasts and demo inventory"""
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from ..analytics.reports import ReportGenerator
from ..catalog.positions import PositionManager
from ..config import reports as report_config
from ..database import utcnow
from ..models import Item, Store, StoreReport
from ..stores import StoreService
from .client import SariClient
from .parsing import Parsed, clean_category, parse_forecast, parse_seed_items
from .prompts import build_forecast_prompt, build_prompt, build_seed_prompt

logger = logging.getLogger(__name__)

FALLBACK_MESSAGE = "Sari is unavailable right now. Please try again later."


@dataclass
class AnalysisResult:
    ok: bool
    message: str
    report: Optional[StoreReport] = None


class InsightService:
    """Dashboard and report features backed by the AI client"""

    def __init__(self, client: SariClient, reports: ReportGenerator,
                 stores: StoreService, positions: PositionManager):
        self.client = client
        self.reports = reports
        self.stores = stores
        self.positions = positions

    async def insight(self, store: Store, mode: str, user_input: str = '') -> str:
        items: List[Item] = []
        if mode not in ('categorize', 'design', 'joke'):
            items, _ = await self.reports.load(store.id)

        text = await self.client.generate(build_prompt(mode, items, user_input))
        if not text:
            return FALLBACK_MESSAGE
        if mode == 'categorize':
            return clean_category(text)
        return text.strip()

    async def analyze(self, store: Store) -> AnalysisResult:
        """Regenerate the cached forecast.

        Refused below the minimum order count. A response that cannot be
        parsed leaves the previous cache in place.
        """
        order_count = await self.reports.count_orders(store.id)
        if order_count < report_config.min_orders_for_forecast:
            return AnalysisResult(
                ok=False,
                message=(f"Sari needs at least {report_config.min_orders_for_forecast} orders "
                         f"to forecast sales. You have {order_count}."),
            )

        items, orders = await self.reports.load(store.id)
        kpis = self.reports.calculate_kpis(orders)
        past_sales: Dict[str, float] = self.reports.sales_chart(orders)
        prompt = build_forecast_prompt(items, past_sales, kpis['total_revenue'], kpis['total_profit'])

        result = parse_forecast(await self.client.generate(prompt))
        if not isinstance(result, Parsed):
            logger.warning(f"Forecast for store {store.id} could not be parsed; keeping cached report")
            return AnalysisResult(ok=False, message="Sari could not produce a forecast. Please try again.",
                                  report=store.report)

        payload = result.payload
        report = StoreReport(
            forecast=payload.forecast,
            holiday_note=payload.holiday_note,
            tips=payload.tips,
            forecasted_revenue=round(sum(payload.forecast), 2),
            generated_at=utcnow(),
        )
        await self.stores.save_report(store.id, report)
        logger.info(f"Cached new forecast for store {store.id}")
        return AnalysisResult(ok=True, message="Forecast updated.", report=report)

    async def seed_inventory(self, store: Store) -> List[Item]:
        """Add five AI-suggested demo items, or one sample item when the model fails"""
        result = parse_seed_items(await self.client.generate(build_seed_prompt()))
        if not isinstance(result, Parsed):
            logger.info(f"Seed response unusable for store {store.id}; using sample item")
            sample = Item(store_id=store.id, name='Sample Item', category='General',
                          price=10, cost_price=8, quantity=50)
            return [await self.positions.append(sample)]

        created = []
        for seed in result.payload:
            price = max(seed.price, 0)
            created.append(await self.positions.append(Item(
                store_id=store.id,
                name=seed.name.strip(),
                category=seed.category or 'General',
                price=price,
                cost_price=seed.cost if seed.cost > 0 else round(price * 0.8, 2),
                quantity=max(seed.quantity, 0),
            )))
        return created
