from .positions import PositionManager
from .inventory import InventoryManager
from .storefront import Storefront

__all__ = ['PositionManager', 'InventoryManager', 'Storefront']
