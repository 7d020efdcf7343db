"""Service graph for the Sari-Sari Store backend"""
from typing import Any, Dict, Optional

from .accounts import AccountService
from .ai import ChatService, EnvCredentialStore, InsightService, SariClient
from .analytics import ReportGenerator
from .catalog import InventoryManager, PositionManager, Storefront
from .checkout import CartService, CartStore, CheckoutEngine
from .database import utcnow
from .stores import StoreService
from .utils import Mailer, NotificationManager


class SariSariSystem:
    """All services wired over one database handle.

    Built explicitly by the application factory and handed to request
    handlers; nothing here is module-level state.
    """

    def __init__(self, db, ai_client: Optional[SariClient] = None, mailer: Optional[Mailer] = None):
        self.db = db
        self.ai_client = ai_client or SariClient(EnvCredentialStore())
        self.mailer = mailer or Mailer()

        self.notifications = NotificationManager(db)
        self.stores = StoreService(db)
        self.accounts = AccountService(db, self.mailer)

        self.positions = PositionManager(db)
        self.inventory = InventoryManager(db, self.positions)
        self.storefront = Storefront(db)

        self.carts = CartStore(db)
        self.cart = CartService(db, self.carts, self.notifications)
        self.checkout = CheckoutEngine(db, self.cart, self.notifications)

        self.reports = ReportGenerator(db)
        self.insights = InsightService(self.ai_client, self.reports, self.stores, self.positions)
        self.chat = ChatService(db, self.ai_client, self.notifications)

    def get_status(self) -> Dict[str, Any]:
        """Get integration status"""
        return {
            'system': 'Sari-Sari Store',
            'version': '1.0.0',
            'integrations': {
                'gemini': self.ai_client._get_status(),
                'smtp': {
                    'configured': self.mailer.is_configured,
                    'status': 'ready' if self.mailer.is_configured else 'needs_smtp_settings'
                }
            },
            'timestamp': utcnow().isoformat()
        }
