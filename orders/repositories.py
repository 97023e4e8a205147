import logging
from decimal import Decimal

from bson.decimal128 import Decimal128
from pymongo import ReturnDocument

from .models import MONEY_FIELDS, PaymentStatus, OrderStatus

logger = logging.getLogger(__name__)


def _to_bson(order: dict) -> dict:
    doc = dict(order)
    for field in MONEY_FIELDS:
        if isinstance(doc.get(field), Decimal):
            doc[field] = Decimal128(doc[field])
    doc['items'] = [
        {k: Decimal128(v) if isinstance(v, Decimal) else v for k, v in item.items()}
        for item in doc.get('items', [])
    ]
    return doc


def _from_bson(doc):
    if doc is None:
        return None
    order = dict(doc)
    for field in MONEY_FIELDS:
        if isinstance(order.get(field), Decimal128):
            order[field] = order[field].to_decimal()
    order['items'] = [
        {k: v.to_decimal() if isinstance(v, Decimal128) else v for k, v in item.items()}
        for item in order.get('items', [])
    ]
    return order


class MongoOrderRepository:
    """
    Order persistence over the `orders` collection.

    Payment transitions are single conditional `find_one_and_update` calls,
    so the redirect callback and the webhook can race without a lost or
    doubled update.
    """
    def __init__(self, db):
        self.collection = db['orders']

    def insert(self, order: dict):
        """Raises pymongo.errors.DuplicateKeyError when the order number is taken."""
        self.collection.insert_one(_to_bson(order))

    def get(self, order_id):
        return _from_bson(self.collection.find_one({'_id': order_id}))

    def get_for_user(self, order_id, user_id):
        return _from_bson(self.collection.find_one({'_id': order_id, 'userId': user_id}))

    def list_for_user(self, user_id, skip=0, limit=10):
        cursor = self.collection.find({'userId': user_id}).sort('createdAt', -1).skip(skip).limit(limit)
        return [_from_bson(doc) for doc in cursor]

    def count_for_user(self, user_id) -> int:
        return self.collection.count_documents({'userId': user_id})

    def set_payment_reference(self, order_id, reference, now) -> bool:
        """Records the open session's reference. False if the order is missing or already paid."""
        result = self.collection.update_one(
            {'_id': order_id, 'paymentStatus': {'$ne': PaymentStatus.PAID.value}},
            {'$set': {'paymentId': reference, 'updatedAt': now}},
        )
        return result.matched_count == 1

    def mark_paid(self, order_id, reference, now):
        """
        PENDING/FAILED payment -> PAID with fulfillment PROCESSING.

        Returns the updated order, or None when the order is missing or was
        already paid.
        """
        doc = self.collection.find_one_and_update(
            {'_id': order_id, 'paymentStatus': {'$ne': PaymentStatus.PAID.value}},
            {'$set': {
                'paymentStatus': PaymentStatus.PAID.value,
                'status': OrderStatus.PROCESSING.value,
                'paymentId': reference,
                'updatedAt': now,
            }},
            return_document=ReturnDocument.AFTER,
        )
        return _from_bson(doc)

    def mark_payment_failed(self, order_id, now):
        """Records a failed payment unless the order is already paid."""
        doc = self.collection.find_one_and_update(
            {'_id': order_id, 'paymentStatus': {'$ne': PaymentStatus.PAID.value}},
            {'$set': {'paymentStatus': PaymentStatus.FAILED.value, 'updatedAt': now}},
            return_document=ReturnDocument.AFTER,
        )
        return _from_bson(doc)


class MongoOrderSequence:
    """
    Per-day order sequence backed by an atomic counter document.

    Each call to `next` returns a distinct, strictly increasing value for the
    given day, however many requests run concurrently.
    """
    def __init__(self, db):
        self.collection = db['counters']

    def next(self, day_key) -> int:
        doc = self.collection.find_one_and_update(
            {'_id': f"order:{day_key}"},
            {'$inc': {'seq': 1}},
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
        return doc['seq']
