from .cart import CartStore, CartService
from .orders import CheckoutEngine, CheckoutResult

__all__ = ['CartStore', 'CartService', 'CheckoutEngine', 'CheckoutResult']
