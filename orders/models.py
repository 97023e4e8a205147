"""
Order documents as stored in the `orders` collection.

Orders are plain dicts (camelCase keys, as the storefront API exposes them).
Money fields are `Decimal` in code; the Mongo repository converts them to
BSON Decimal128 on the way in and back on the way out.
"""
import uuid

from django.db import models

from storefront_backend.errors import ValidationError


class OrderStatus(models.TextChoices):
    PENDING = 'PENDING', 'Pending'
    PROCESSING = 'PROCESSING', 'Processing'
    SHIPPED = 'SHIPPED', 'Shipped'
    DELIVERED = 'DELIVERED', 'Delivered'
    CANCELLED = 'CANCELLED', 'Cancelled'
    REFUNDED = 'REFUNDED', 'Refunded'


class PaymentStatus(models.TextChoices):
    PENDING = 'PENDING', 'Pending'
    PAID = 'PAID', 'Paid'
    FAILED = 'FAILED', 'Failed'
    REFUNDED = 'REFUNDED', 'Refunded'


REQUIRED_ADDRESS_FIELDS = ('firstName', 'lastName', 'address1', 'city', 'state', 'postalCode')
OPTIONAL_ADDRESS_FIELDS = ('company', 'address2', 'country', 'phone')

MONEY_FIELDS = ('subtotal', 'tax', 'shipping', 'discount', 'total')


def clean_address(address, label='Shipping address'):
    """
    Validates a postal address and returns a copy holding only known fields.
    """
    if not isinstance(address, dict):
        raise ValidationError(f"{label} is required")

    missing = [f for f in REQUIRED_ADDRESS_FIELDS if not str(address.get(f) or '').strip()]
    if missing:
        raise ValidationError(f"{label} is missing required fields: {', '.join(missing)}")

    cleaned = {f: str(address[f]).strip() for f in REQUIRED_ADDRESS_FIELDS}
    for f in OPTIONAL_ADDRESS_FIELDS:
        if address.get(f):
            cleaned[f] = str(address[f]).strip()
    return cleaned


def new_order_document(order_number, user_id, items, totals, shipping_address,
                       billing_address=None, payment_method=None, notes=None, now=None):
    """
    Builds a new order in PENDING / PENDING(payment).

    `items` are the line snapshots `{productId, name, quantity, price, total}`;
    they are never linked back to the live product price.
    """
    return {
        '_id': uuid.uuid4().hex,
        'orderNumber': order_number,
        'userId': user_id,
        'status': OrderStatus.PENDING.value,
        'paymentStatus': PaymentStatus.PENDING.value,
        'paymentMethod': payment_method,
        'paymentId': None,
        'subtotal': totals['subtotal'],
        'tax': totals['tax'],
        'shipping': totals['shipping'],
        'discount': totals['discount'],
        'total': totals['total'],
        'items': items,
        'shippingAddress': shipping_address,
        'billingAddress': billing_address or shipping_address,
        'notes': notes,
        'createdAt': now,
        'updatedAt': now,
    }
