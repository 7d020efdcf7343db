"""Turn free-text model output into structured payloads.

Every parser returns either `Parsed(payload)` or `Unparseable(raw)`; callers
handle both.
"""
import json
import re
from dataclasses import dataclass
from typing import Any, Generic, List, Optional, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..models import SeedItem
from .prompts import CATEGORIES

T = TypeVar('T')

_FENCE = re.compile(r"```(?:json)?", re.IGNORECASE)


@dataclass
class Parsed(Generic[T]):
    payload: T


@dataclass
class Unparseable:
    raw: Optional[str]


ParseResult = Union[Parsed, Unparseable]


class ForecastPayload(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    forecast: List[float] = []
    holiday_note: str = Field('', alias='holidayNote')
    tips: List[str] = []


class ChatPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    handoff: bool = False
    reply: str = ''


def strip_fences(text: str) -> str:
    return _FENCE.sub('', text).strip()


def _decode(text: Optional[str]) -> Any:
    if text is None:
        raise ValueError("no response")
    return json.loads(strip_fences(text))


def parse_forecast(text: Optional[str]) -> ParseResult:
    try:
        data = _decode(text)
        if not isinstance(data, dict):
            return Unparseable(text)
        return Parsed(ForecastPayload.model_validate(data))
    except (ValueError, ValidationError):
        return Unparseable(text)


def parse_chat(text: Optional[str]) -> ParseResult:
    try:
        data = _decode(text)
        if not isinstance(data, dict) or 'reply' not in data:
            return Unparseable(text)
        return Parsed(ChatPayload.model_validate(data))
    except (ValueError, ValidationError):
        return Unparseable(text)


def parse_seed_items(text: Optional[str]) -> ParseResult:
    """The JSON array between the first '[' and the last ']'"""
    if not text:
        return Unparseable(text)
    start = text.find('[')
    end = text.rfind(']')
    if start < 0 or end <= start:
        return Unparseable(text)
    try:
        data = json.loads(text[start:end + 1])
        items = [SeedItem.model_validate(d) for d in data if isinstance(d, dict)]
    except (ValueError, ValidationError):
        return Unparseable(text)
    items = [i for i in items if i.name.strip()]
    if not items:
        return Unparseable(text)
    return Parsed(items)


def clean_category(text: str) -> str:
    """Drop surrounding quotes and trailing periods; use the canonical label when it matches"""
    cleaned = text.strip().strip('"\'`').strip().rstrip('.').strip().strip('"\'`').strip()
    for label in CATEGORIES:
        if cleaned.lower() == label.lower():
            return label
    return cleaned
