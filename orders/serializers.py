from decimal import Decimal

from .models import MONEY_FIELDS
from .status import describe_order_status, describe_payment_status


def _money(value):
    return float(value) if isinstance(value, Decimal) else value


def _timestamp(value):
    return value.isoformat() if value is not None else None


def order_summary(order):
    status = describe_order_status(order['status'])
    payment_status = describe_payment_status(order['paymentStatus'])
    return {
        '_id': order['_id'],
        'orderNumber': order['orderNumber'],
        'total': _money(order['total']),
        'status': order['status'],
        'paymentStatus': order['paymentStatus'],
        'statusDisplay': {'label': status.label, 'color': status.color},
        'paymentStatusDisplay': {'label': payment_status.label, 'color': payment_status.color},
    }


def serialize_order(order):
    data = order_summary(order)
    data.update({field: _money(order[field]) for field in MONEY_FIELDS})
    data.update({
        'userId': order['userId'],
        'paymentMethod': order.get('paymentMethod'),
        'paymentId': order.get('paymentId'),
        'items': [
            {
                'productId': item['productId'],
                'name': item.get('name'),
                'quantity': item['quantity'],
                'price': _money(item['price']),
                'total': _money(item['total']),
            }
            for item in order['items']
        ],
        'shippingAddress': order['shippingAddress'],
        'billingAddress': order.get('billingAddress'),
        'notes': order.get('notes'),
        'createdAt': _timestamp(order.get('createdAt')),
        'updatedAt': _timestamp(order.get('updatedAt')),
    })
    return data
