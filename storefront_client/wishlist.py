import logging

from .api import WishlistApiError

logger = logging.getLogger(__name__)

WISHLIST_STORAGE_KEY = 'wishlist'
ITEM_FIELDS = ('productId', 'name', 'price', 'image', 'slug')


def _local_item(item):
    return {field: item.get(field) for field in ITEM_FIELDS}


class WishlistStore:
    """Saved products keyed by productId, persisted after every change."""

    def __init__(self, storage):
        self.storage = storage
        self._items = list(storage.load(WISHLIST_STORAGE_KEY, []))

    @property
    def items(self):
        return [dict(item) for item in self._items]

    def contains(self, product_id):
        return any(item['productId'] == str(product_id) for item in self._items)

    def add_item(self, item):
        if self.contains(item['productId']):
            return False
        self._items.append(_local_item({**item, 'productId': str(item['productId'])}))
        self._persist()
        return True

    def remove_item(self, product_id):
        self._items = [item for item in self._items if item['productId'] != str(product_id)]
        self._persist()

    def replace_all(self, items):
        self._items = [_local_item(item) for item in items]
        self._persist()

    def clear(self):
        self.replace_all([])

    def _persist(self):
        self.storage.save(WISHLIST_STORAGE_KEY, self._items)


class WishlistSync:
    """
    Keeps the local wishlist consistent with the signed-in shopper's list.

    The server is authoritative: logging in replaces the local list
    wholesale. Mutations are applied locally first and then either confirmed
    by the server or undone.
    """
    def __init__(self, store, api):
        self.store = store
        self.api = api

    def refresh(self):
        self.store.replace_all(self.api.fetch())

    def on_login(self):
        self.refresh()

    def on_logout(self):
        self.store.clear()

    def add(self, item):
        """
        Optimistically adds `item` and confirms it with the server.

        Returns True on success. On any rejection (duplicate included) the
        local list is restored to exactly what it was before the call.
        """
        before = self.store.items
        self.store.add_item(item)
        try:
            self.api.add(str(item['productId']))
        except WishlistApiError as e:
            if e.is_duplicate:
                logger.info(f"Product {item['productId']} is already in the wishlist")
            else:
                logger.error(f"Failed to add {item['productId']} to wishlist: {e}")
            self.store.replace_all(before)
            return False
        return True

    def remove(self, product_id):
        """
        Optimistically removes the product. A failed delete re-fetches the
        authoritative list instead of leaving local state ahead of the server.
        """
        self.store.remove_item(product_id)
        try:
            self.api.remove(str(product_id))
        except WishlistApiError as e:
            logger.error(f"Failed to remove {product_id} from wishlist: {e}")
            try:
                self.refresh()
            except WishlistApiError as refresh_error:
                logger.error(f"Could not re-fetch wishlist after failed delete: {refresh_error}")
            return False
        return True

    def toggle(self, item):
        if self.store.contains(item['productId']):
            return self.remove(item['productId'])
        return self.add(item)
