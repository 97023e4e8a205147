"""
Shopper-side state for storefront clients: a persisted cart and a wishlist
kept in sync with the signed-in user's server-side list.
"""
from .api import WishlistApi, WishlistApiError
from .cart import CartStore
from .storage import JsonFileStorage
from .wishlist import WishlistStore, WishlistSync

__all__ = [
    'CartStore',
    'JsonFileStorage',
    'WishlistApi',
    'WishlistApiError',
    'WishlistStore',
    'WishlistSync',
]
