import logging

from django.utils import timezone
from pymongo.errors import DuplicateKeyError

from storefront_backend.errors import DuplicateWishlistItemError, NotFoundError

logger = logging.getLogger(__name__)

PLACEHOLDER_IMAGE = '/placeholder.svg'


class MongoWishlistRepository:
    """
    Per-user wishlist entries in the `wishlists` collection.

    Duplicates are rejected by the unique (userId, productId) index, not by a
    read-before-write check.
    """
    def __init__(self, db, products):
        self.collection = db['wishlists']
        self.products = products

    def list_for_user(self, user_id):
        entries = self.collection.find({'userId': user_id}).sort('createdAt', -1)
        items = []
        for entry in entries:
            product = self.products.get(entry['productId'])
            if not product:
                logger.warning(f"Wishlist entry for missing product {entry['productId']} (user {user_id})")
                continue
            items.append(wishlist_item(product, entry.get('createdAt')))
        return items

    def add(self, user_id, product_id):
        product = self.products.get(product_id)
        if not product:
            raise NotFoundError("Product not found")
        now = timezone.now()
        try:
            self.collection.insert_one({'userId': user_id, 'productId': str(product_id), 'createdAt': now})
        except DuplicateKeyError:
            raise DuplicateWishlistItemError("Product already in wishlist")
        logger.info(f"Product {product_id} added to wishlist of user {user_id}")
        return wishlist_item(product, now)

    def remove(self, user_id, product_id):
        result = self.collection.delete_one({'userId': user_id, 'productId': str(product_id)})
        if result.deleted_count == 0:
            raise NotFoundError("Item not found in wishlist")
        logger.info(f"Product {product_id} removed from wishlist of user {user_id}")


def wishlist_item(product, added_at=None):
    images = product.get('images') or []
    return {
        'productId': product['_id'],
        'name': product.get('name'),
        'price': product.get('price'),
        'image': images[0] if images else PLACEHOLDER_IMAGE,
        'slug': product.get('slug'),
        'addedAt': added_at.isoformat() if added_at else None,
    }
