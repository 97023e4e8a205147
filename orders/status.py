"""
Display projection of the order and payment status fields.

Customer and admin views render the same badges. Colors are semantic
categories; the frontend maps them to its own palette.
"""
from collections import namedtuple

from .models import OrderStatus, PaymentStatus

StatusBadge = namedtuple('StatusBadge', ['label', 'color'])

NEUTRAL = 'neutral'

ORDER_STATUS_COLORS = {
    OrderStatus.PENDING: 'warning',
    OrderStatus.PROCESSING: 'info',
    OrderStatus.SHIPPED: 'accent',
    OrderStatus.DELIVERED: 'success',
    OrderStatus.CANCELLED: 'danger',
    OrderStatus.REFUNDED: NEUTRAL,
}

PAYMENT_STATUS_COLORS = {
    PaymentStatus.PENDING: 'warning',
    PaymentStatus.PAID: 'success',
    PaymentStatus.FAILED: 'danger',
    PaymentStatus.REFUNDED: NEUTRAL,
}


def _describe(choices, colors, value):
    if value in choices.values:
        member = choices(value)
        return StatusBadge(member.label, colors.get(member, NEUTRAL))
    return StatusBadge(str(value or ''), NEUTRAL)


def describe_order_status(value) -> StatusBadge:
    return _describe(OrderStatus, ORDER_STATUS_COLORS, value)


def describe_payment_status(value) -> StatusBadge:
    return _describe(PaymentStatus, PAYMENT_STATUS_COLORS, value)
