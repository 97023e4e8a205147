"""The Mongo adapters, checked against a recording collection stub."""
from decimal import Decimal

import pytest
from bson.decimal128 import Decimal128
from pymongo import ReturnDocument

from orders.notifications import MongoNotificationSink, NotificationEvent
from orders.repositories import MongoOrderRepository, MongoOrderSequence
from tests.conftest import NOW


class RecordingCollection:

    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error
        self.calls = []

    def _record(self, name, *args, **kwargs):
        self.calls.append((name, args, kwargs))
        if self.error:
            raise self.error
        return self.result

    def insert_one(self, *args, **kwargs):
        return self._record('insert_one', *args, **kwargs)

    def find_one(self, *args, **kwargs):
        return self._record('find_one', *args, **kwargs)

    def find_one_and_update(self, *args, **kwargs):
        return self._record('find_one_and_update', *args, **kwargs)

    def update_one(self, *args, **kwargs):
        return self._record('update_one', *args, **kwargs)

    def aggregate(self, *args, **kwargs):
        return self._record('aggregate', *args, **kwargs)


def _db(collection):
    return {'orders': collection, 'counters': collection, 'notifications': collection}


def test_insert_stores_money_as_decimal128():
    collection = RecordingCollection()
    MongoOrderRepository(_db(collection)).insert({
        '_id': 'O1', 'orderNumber': 'ORD261019001', 'subtotal': Decimal('5000.00'), 'tax': Decimal('375.00'),
        'shipping': Decimal('2500.00'), 'discount': Decimal('0'), 'total': Decimal('7875.00'),
        'items': [{'productId': 'P1', 'quantity': 2, 'price': Decimal('2500.00'), 'total': Decimal('5000.00')}],
    })

    (name, (doc,), _), = collection.calls
    assert doc['total'] == Decimal128('7875.00')
    assert doc['items'][0]['price'] == Decimal128('2500.00')
    assert doc['items'][0]['quantity'] == 2


def test_get_converts_back_to_decimal():
    collection = RecordingCollection({'_id': 'O1', 'total': Decimal128('7875.00'), 'items': []})
    order = MongoOrderRepository(_db(collection)).get('O1')
    assert order['total'] == Decimal('7875.00')


def test_mark_paid_is_conditional_on_not_paid():
    collection = RecordingCollection(None)
    assert MongoOrderRepository(_db(collection)).mark_paid('O1', 'ref-1', NOW) is None

    (name, (query, update), kwargs), = collection.calls
    assert name == 'find_one_and_update'
    assert query == {'_id': 'O1', 'paymentStatus': {'$ne': 'PAID'}}
    assert update['$set']['status'] == 'PROCESSING'
    assert update['$set']['paymentId'] == 'ref-1'
    assert kwargs['return_document'] == ReturnDocument.AFTER


def test_mark_payment_failed_leaves_status_alone():
    collection = RecordingCollection({'_id': 'O1', 'paymentStatus': 'FAILED', 'items': []})
    MongoOrderRepository(_db(collection)).mark_payment_failed('O1', NOW)

    (_, (query, update), _), = collection.calls
    assert query['paymentStatus'] == {'$ne': 'PAID'}
    assert 'status' not in update['$set']


def test_order_sequence_increments_day_counter():
    collection = RecordingCollection({'_id': 'order:261019', 'seq': 7})
    assert MongoOrderSequence(_db(collection)).next('261019') == 7

    (_, (query, update), kwargs), = collection.calls
    assert query == {'_id': 'order:261019'}
    assert update == {'$inc': {'seq': 1}}
    assert kwargs['upsert'] is True


class TestNotificationSink:

    def test_unknown_type_rejected(self):
        with pytest.raises(ValueError):
            NotificationEvent(type='shipment', message='x', link='/x')

    def test_emit_writes_unread_notification(self):
        collection = RecordingCollection()
        MongoNotificationSink(_db(collection)).emit(NotificationEvent('order', 'New order placed: ORD1', '/admin/orders/1'))

        (_, (doc,), _), = collection.calls
        assert doc['type'] == 'order'
        assert doc['read'] is False

    def test_emit_failure_does_not_propagate(self):
        collection = RecordingCollection(error=RuntimeError("write failed"))
        MongoNotificationSink(_db(collection)).emit(NotificationEvent('order', 'New order placed: ORD1', '/x'))

    def test_counts_fill_missing_types(self):
        collection = RecordingCollection([{'_id': 'order', 'count': 3}, {'_id': 'spam', 'count': 9}])
        counts = MongoNotificationSink(_db(collection)).counts()
        assert counts['order'] == 3
        assert counts['review'] == 0
        assert 'spam' not in counts


class UpdateResult:

    def __init__(self, matched_count):
        self.matched_count = matched_count


def test_payment_reference_write_skips_paid_orders():
    collection = RecordingCollection(UpdateResult(0))
    assert MongoOrderRepository(_db(collection)).set_payment_reference('O1', 'ref-2', NOW) is False

    (name, (query, update), _), = collection.calls
    assert query == {'_id': 'O1', 'paymentStatus': {'$ne': 'PAID'}}
    assert update == {'$set': {'paymentId': 'ref-2', 'updatedAt': NOW}}
