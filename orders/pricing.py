from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from django.conf import settings

CENT = Decimal('0.01')


@dataclass(frozen=True)
class PricingPolicy:
    tax_rate: Decimal = Decimal('0.075')
    free_shipping_threshold: Decimal = Decimal('50000')
    flat_shipping_fee: Decimal = Decimal('2500')

    @classmethod
    def from_settings(cls):
        return cls(
            tax_rate=Decimal(settings.TAX_RATE),
            free_shipping_threshold=Decimal(settings.FREE_SHIPPING_THRESHOLD),
            flat_shipping_fee=Decimal(settings.FLAT_SHIPPING_FEE),
        )


def to_money(value) -> Decimal:
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def calculate_order_totals(items, policy=None, discount=Decimal('0')):
    """
    Computes checkout totals from `{price, quantity}` lines.

    Shipping is free once the subtotal reaches the threshold (inclusive).
    Tax is rounded to the cent before summing, so
    `total == subtotal + tax + shipping - discount` holds exactly.
    """
    policy = policy or PricingPolicy.from_settings()

    subtotal = sum((to_money(item['price']) * int(item['quantity']) for item in items), Decimal('0'))
    subtotal = to_money(subtotal)
    shipping = Decimal('0') if subtotal >= policy.free_shipping_threshold else policy.flat_shipping_fee
    shipping = to_money(shipping)
    tax = to_money(subtotal * policy.tax_rate)
    discount = to_money(discount)
    total = subtotal + tax + shipping - discount

    return {
        'subtotal': subtotal,
        'tax': tax,
        'shipping': shipping,
        'discount': discount,
        'total': total,
    }


def to_minor_units(amount) -> int:
    """Gateway amounts are integers in the currency's minor unit (kobo, cents)."""
    return int((Decimal(str(amount)) * 100).quantize(Decimal('1'), rounding=ROUND_HALF_UP))
