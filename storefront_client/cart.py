import logging

logger = logging.getLogger(__name__)

CART_STORAGE_KEY = 'cart'
DEFAULT_VARIANT = 'default'


def item_key(product_id, size=None, color=None):
    return (str(product_id), size or DEFAULT_VARIANT, color or DEFAULT_VARIANT)


class CartStore:
    """
    The shopper's cart, persisted in `storage` after every change.

    Lines are keyed by (productId, size, color); adding an existing key
    merges quantities. `total_items` and `total_price` are always derived
    from the lines, never stored.
    """
    def __init__(self, storage):
        self.storage = storage
        self._items = list(storage.load(CART_STORAGE_KEY, []))

    @property
    def items(self):
        return [dict(item) for item in self._items]

    @property
    def total_items(self):
        return sum(item['quantity'] for item in self._items)

    @property
    def total_price(self):
        return sum(item['price'] * item['quantity'] for item in self._items)

    def _persist(self):
        self.storage.save(CART_STORAGE_KEY, self._items)

    def _find(self, key):
        for index, item in enumerate(self._items):
            if item_key(item['productId'], item.get('size'), item.get('color')) == key:
                return index
        return None

    def add_item(self, product_id, name, price, image=None, quantity=1, slug=None, size=None, color=None):
        if quantity < 1:
            raise ValueError("quantity must be at least 1")
        index = self._find(item_key(product_id, size, color))
        if index is not None:
            self._items[index] = {**self._items[index], 'quantity': self._items[index]['quantity'] + quantity}
        else:
            item = {'productId': str(product_id), 'name': name, 'price': price, 'image': image, 'quantity': quantity}
            if slug:
                item['slug'] = slug
            if size:
                item['size'] = size
            if color:
                item['color'] = color
            self._items.append(item)
        self._persist()

    def remove_item(self, product_id, size=None, color=None):
        key = item_key(product_id, size, color)
        self._items = [
            item for item in self._items
            if item_key(item['productId'], item.get('size'), item.get('color')) != key
        ]
        self._persist()

    def update_quantity(self, product_id, quantity, size=None, color=None):
        if quantity <= 0:
            self.remove_item(product_id, size, color)
            return
        index = self._find(item_key(product_id, size, color))
        if index is None:
            logger.debug(f"update_quantity for {product_id} not in cart; ignored")
            return
        self._items[index] = {**self._items[index], 'quantity': quantity}
        self._persist()

    def clear(self):
        self._items = []
        self._persist()

    def checkout_lines(self):
        """The `{productId, quantity}` payload for POST /api/orders/."""
        return [{'productId': item['productId'], 'quantity': item['quantity']} for item in self._items]
