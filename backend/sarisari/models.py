"""Data models for the Sari-Sari Store"""
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .config import store_defaults
from .database import serialize_doc, utcnow


class Document(BaseModel):
    """A model persisted as a Mongo document keyed by ObjectId."""
    model_config = ConfigDict(extra="ignore")

    id: Optional[str] = None

    @classmethod
    def from_doc(cls, doc: Optional[Dict[str, Any]]):
        if doc is None:
            return None
        return cls(**serialize_doc(doc))

    def to_doc(self) -> Dict[str, Any]:
        """Document body for insert/replace; `_id` is handled by the caller."""
        return self.model_dump(exclude={'id'})


# Catalog Models
class Item(Document):
    store_id: str = ''
    name: str = ''
    category: str = 'General'
    quantity: int = Field(0, ge=0)
    price: float = Field(0, ge=0)
    cost_price: float = Field(0, ge=0)
    position: int = 0
    logo_data: Optional[bytes] = Field(None, exclude=True, repr=False)
    logo_content_type: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)

    @property
    def has_logo(self) -> bool:
        return bool(self.logo_data)

    def to_doc(self) -> Dict[str, Any]:
        doc = self.model_dump(exclude={'id', 'logo_data'})
        doc['logo_data'] = self.logo_data
        return doc

    def public(self) -> Dict[str, Any]:
        data = self.model_dump()
        data['has_logo'] = self.has_logo
        return data


class SeedItem(BaseModel):
    """Item shape the model is asked to produce when seeding demo inventory."""
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    name: str = Field('', alias='Name')
    category: str = Field('', alias='Category')
    price: float = Field(0, alias='Price')
    cost: float = Field(0, alias='Cost')
    quantity: int = Field(0, alias='Quantity')


# Store Models
class StoreReport(BaseModel):
    forecast: List[float] = []
    holiday_note: str = ''
    tips: List[str] = []
    forecasted_revenue: float = 0
    generated_at: datetime = Field(default_factory=utcnow)


class Store(Document):
    owner_id: str = ''
    store_name: str = store_defaults.store_name
    description: str = store_defaults.description
    theme_color: str = store_defaults.theme_color
    report: Optional[StoreReport] = None


class StoreSettings(BaseModel):
    store_name: str = Field(..., min_length=1, max_length=100)
    description: str = ''
    theme_color: str = store_defaults.theme_color


# Order Models
class CartLine(BaseModel):
    item_id: str
    quantity: int = Field(1, ge=1)


class CartItemDetail(BaseModel):
    item_name: str = ''
    quantity: int = 0
    price: float = 0
    cost: float = 0

    @property
    def total(self) -> float:
        return self.quantity * self.price

    def to_doc(self) -> Dict[str, Any]:
        return self.model_dump()


class Order(Document):
    store_id: str = ''
    customer_name: str = ''
    items: List[CartItemDetail] = []
    total_amount: float = 0
    order_date: datetime = Field(default_factory=utcnow)
    status: str = 'Pending'
    order_code: str = ''

    @property
    def profit(self) -> float:
        return sum((line.price - line.cost) * line.quantity for line in self.items)


# Chat Models
class ChatMessage(Document):
    store_id: str = ''
    guest_id: str = ''
    sender: str = ''  # User, Seller, Sari (AI)
    content: str = ''
    timestamp: datetime = Field(default_factory=utcnow)


class Notification(Document):
    store_id: str = ''
    message: str = ''
    type: str = 'info'  # info, cart, order, chat
    timestamp: datetime = Field(default_factory=utcnow)
    is_read: bool = False


# Account Models
class User(Document):
    username: str = ''
    email: str = ''
    password_hash: str = Field('', exclude=True, repr=False)
    is_email_verified: bool = False
    email_verification_token: Optional[str] = Field(None, exclude=True, repr=False)
    email_verification_token_expires: Optional[datetime] = Field(None, exclude=True)
    role: str = 'Seller'

    def to_doc(self) -> Dict[str, Any]:
        doc = self.model_dump(exclude={'id'})
        doc['password_hash'] = self.password_hash
        doc['email_verification_token'] = self.email_verification_token
        doc['email_verification_token_expires'] = self.email_verification_token_expires
        return doc
