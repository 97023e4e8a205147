import logging

logger = logging.getLogger(__name__)

ACTIVE = 'ACTIVE'


class MongoProductRepository:
    """
    Catalog reads and the stock decrement used at order creation.

    Products are keyed by their own string id (`_id`), as imported.
    """
    def __init__(self, db):
        self.collection = db['products']

    def get(self, product_id):
        return self.collection.find_one({'_id': str(product_id)})

    def get_by_slug(self, slug):
        return self.collection.find_one({'slug': slug, 'status': ACTIVE})

    def list_active(self, skip=0, limit=20):
        cursor = self.collection.find({'status': ACTIVE}).sort('syncedAt', -1).skip(skip).limit(limit)
        return list(cursor)

    def count_active(self) -> int:
        return self.collection.count_documents({'status': ACTIVE})

    def decrement_stock(self, product_id, quantity):
        result = self.collection.update_one({'_id': str(product_id)}, {'$inc': {'stock': -int(quantity)}})
        return result.modified_count == 1

    def upsert(self, product: dict):
        return self.collection.replace_one({'_id': product['_id']}, product, upsert=True)
