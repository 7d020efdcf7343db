"""Configuration for the Sari-Sari Store backend"""
import os
from dataclasses import dataclass, field
from typing import List


def _split(value: str) -> List[str]:
    return [v.strip() for v in value.split(',') if v.strip()]


@dataclass
class DatabaseConfig:
    mongo_url: str = os.getenv('MONGO_URL', os.getenv('MONGODB_URL', 'mongodb://localhost:27017'))
    db_name: str = os.getenv('DB_NAME', 'inventorydb')


@dataclass
class GeminiConfig:
    base_url: str = os.getenv('GEMINI_BASE_URL', 'https://generativelanguage.googleapis.com/v1beta/models')
    model: str = os.getenv('GEMINI_MODEL', 'gemini-2.0-flash')
    timeout_seconds: float = float(os.getenv('GEMINI_TIMEOUT', '30'))

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/{self.model}:generateContent"


@dataclass
class MailConfig:
    smtp_server: str = os.getenv('SMTP_SERVER', '')
    smtp_port: int = int(os.getenv('SMTP_PORT', '587'))
    smtp_user: str = os.getenv('SMTP_USER', '')
    smtp_pass: str = os.getenv('SMTP_PASS', '')
    sender_name: str = os.getenv('SENDER_NAME', 'Sari-Sari Store')
    sender_email: str = os.getenv('SENDER_EMAIL', '')

    @property
    def is_configured(self) -> bool:
        return bool(self.smtp_server and self.sender_email)


@dataclass
class SessionConfig:
    session_expiry_days: int = int(os.getenv('SESSION_EXPIRY_DAYS', '7'))
    cart_idle_minutes: int = int(os.getenv('CART_IDLE_MINUTES', '60'))
    verification_code_minutes: int = 15
    session_cookie: str = 'session_token'
    cart_cookie: str = 'cart_session'


@dataclass
class StoreDefaults:
    store_name: str = 'My Sari-Sari Store'
    description: str = 'Welcome to my online tindahan!'
    theme_color: str = '#4f46e5'
    currency_symbol: str = '₱'


@dataclass
class ReportConfig:
    low_stock_threshold: int = 5
    slow_moving_min_qty: int = 10
    slow_moving_limit: int = 5
    recent_orders_limit: int = 20
    min_orders_for_forecast: int = 5
    chart_days: int = 7


@dataclass
class ServerConfig:
    cors_origins: List[str] = field(default_factory=lambda: _split(os.getenv('CORS_ORIGINS', '*')))


# Global configs
database = DatabaseConfig()
gemini = GeminiConfig()
mail = MailConfig()
sessions = SessionConfig()
store_defaults = StoreDefaults()
reports = ReportConfig()
server = ServerConfig()
