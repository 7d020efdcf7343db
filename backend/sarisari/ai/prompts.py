"""Prompt templates for Sari"""
import json
from datetime import datetime
from typing import Any, Dict, List

from ..database import utcnow
from ..models import Item

CATEGORIES = [
    'Canned Goods', 'Snacks', 'Beverages', 'Toiletries',
    'Condiments', 'Rice', 'Household', 'Others',
]

MODES = ('summary', 'restock', 'categorize', 'design', 'joke')

CHAT_SYSTEM_PROMPT = (
    'You are Sari, a helpful store assistant. '
    'Return ONLY raw JSON: { "handoff": boolean, "reply": "string" }'
)


def inventory_summary(items: List[Item]) -> str:
    return "\n".join(
        f"- {i.name} ({i.category}): {i.quantity} units @ SRP: ${i.price} / Cost: ${i.cost_price}"
        for i in items
    )


def build_prompt(mode: str, items: List[Item], user_input: str = '') -> str:
    """Prompt for one of the dashboard insight modes; unknown modes get the summary"""
    if mode == 'categorize':
        return (
            f"Categorize this item: '{user_input}' into exactly ONE category: "
            f"[{', '.join(CATEGORIES)}]. Respond ONLY with category name."
        )
    if mode == 'restock':
        return (
            f"Analyze this inventory:\n{inventory_summary(items)}\n"
            "Suggest which items need restocking (< 5). Suggest 3 popular Filipino items to add."
        )
    if mode == 'design':
        return "Give me 3 creative tips to design a Filipino Sari-Sari store."
    if mode == 'joke':
        return "Tell me a joke about Sari-Sari stores."
    return f"Analyze this inventory:\n{inventory_summary(items)}\n1. Total Value (Retail vs Cost)."


def build_forecast_prompt(items: List[Item], past_sales: Dict[str, float],
                          total_revenue: float, total_profit: float,
                          today: datetime = None) -> str:
    context: Dict[str, Any] = {
        'Date': (today or utcnow()).strftime('%B %d, %Y'),
        'InventorySample': [
            {'Name': i.name, 'Category': i.category, 'Quantity': i.quantity} for i in items[:10]
        ],
        'PastSales': past_sales,
        'TotalRevenue': round(total_revenue, 2),
        'TotalProfit': round(total_profit, 2),
    }
    return (
        f"You are Sari, a smart business analyst. Analyze this data: {json.dumps(context)}. "
        "1. Predict next 7 days sales (decimal array). 2. Identify holidays. 3. Give tips. "
        'Return JSON: { "forecast": [1.0, 2.0], "holidayNote": "text", "tips": ["tip1"] }'
    )


def build_chat_prompt(user_input: str) -> str:
    return f"{CHAT_SYSTEM_PROMPT}\nUser: {user_input}"


def build_seed_prompt(count: int = 5) -> str:
    return (
        f"Generate a JSON list of {count} Filipino Sari-Sari store items. "
        "Fields: Name, Category, Price, Cost, Quantity."
    )
