"""
Downloadable HTML invoice built from an order's stored snapshot.

Lines and totals come from the order document as placed, never from the
live catalog or a recalculation.
"""
from django.conf import settings
from django.template.loader import render_to_string
from django.utils import timezone

from .models import MONEY_FIELDS
from .pricing import to_money
from .status import describe_order_status


def format_money(value) -> str:
    return f"{settings.STORE_CURRENCY} {to_money(value):,.2f}"


def invoice_filename(order) -> str:
    return f"invoice-{order['orderNumber']}.html"


def invoice_context(order, customer_email=None):
    status = describe_order_status(order['status'])
    created_at = order.get('createdAt')
    return {
        'store_name': settings.STORE_NAME,
        'order_number': order['orderNumber'],
        'date': timezone.localtime(created_at).date() if created_at else None,
        'status': status.label,
        'status_color': status.color,
        'email': customer_email,
        'address': order.get('billingAddress') or order['shippingAddress'],
        'lines': [
            {
                'name': item.get('name') or item['productId'],
                'quantity': item['quantity'],
                'price': format_money(item['price']),
                'total': format_money(item['total']),
            }
            for item in order['items']
        ],
        'totals': {field: format_money(order[field]) for field in MONEY_FIELDS},
        'has_discount': to_money(order['discount']) > 0,
        'tax_rate': f"{(settings.TAX_RATE * 100).normalize():f}",
    }


def render_invoice(order, customer_email=None) -> str:
    return render_to_string('orders/invoice.html', invoice_context(order, customer_email))
