import logging
import math

from django.conf import settings
from django.utils import timezone
from pymongo.errors import DuplicateKeyError

from storefront_backend.errors import (
    ExternalServiceError,
    InsufficientStockError,
    NotFoundError,
    ValidationError,
)
from .models import PaymentStatus, clean_address, new_order_document
from .notifications import NotificationEvent
from .pricing import PricingPolicy, calculate_order_totals, to_money
from .serializers import order_summary

logger = logging.getLogger(__name__)

GATEWAY_PAYMENT_METHODS = ('paystack',)
MAX_ORDER_NUMBER_ATTEMPTS = 5
MAX_PAGE_SIZE = 50


class PaymentInitializationError(ExternalServiceError):
    """The order was placed but no payment session could be opened."""
    default_message = "Payment initialization failed"

    def __init__(self, order, message=None):
        super().__init__(message)
        self.order = order


def format_order_number(prefix, day, sequence) -> str:
    return f"{prefix}{day:%y%m%d}{sequence:03d}"


def _clean_items(items):
    """
    Validates `{productId, quantity}` lines and merges repeated products, so
    the stock check sees the full requested quantity.
    """
    if not isinstance(items, list) or not items:
        raise ValidationError("No items in order")

    merged = {}
    for index, item in enumerate(items):
        if not isinstance(item, dict):
            raise ValidationError(f"Item {index + 1} is invalid")
        product_id = item.get('productId')
        quantity = item.get('quantity')
        if not product_id:
            raise ValidationError(f"Item {index + 1} is missing productId")
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
            raise ValidationError(f"Item {index + 1} must have a positive whole quantity")
        product_id = str(product_id)
        merged[product_id] = merged.get(product_id, 0) + quantity
    return merged


class OrderService:
    """
    Turns a submitted cart into a persisted PENDING order.

    Every line is re-validated against the live catalog and priced from the
    current product price; client-supplied prices and totals are ignored.
    Stock is decremented when the order is placed and is not released if
    payment later fails or never completes.
    """
    def __init__(self, orders, products, sequence, notifications, payments=None,
                 policy=None, order_number_prefix=None, clock=timezone.now):
        self.orders = orders
        self.products = products
        self.sequence = sequence
        self.notifications = notifications
        self.payments = payments
        self.policy = policy or PricingPolicy.from_settings()
        self.order_number_prefix = order_number_prefix or settings.ORDER_NUMBER_PREFIX
        self.clock = clock

    # --- Checkout ---

    def place_order(self, customer, items, shipping_address, billing_address=None,
                    payment_method=None, notes=None):
        quantities = _clean_items(items)
        shipping_address = clean_address(shipping_address, 'Shipping address')
        if billing_address:
            billing_address = clean_address(billing_address, 'Billing address')
        if payment_method in GATEWAY_PAYMENT_METHODS and not customer.get('email'):
            raise ValidationError("An email address is required for online payment")

        logger.info(f"Placing order for user {customer['id']} with {len(quantities)} products.")

        # --- Live stock and price validation; nothing is written before this passes ---
        lines = []
        for product_id, quantity in quantities.items():
            product = self.products.get(product_id)
            if not product:
                logger.warning(f"Order rejected: product {product_id} not found")
                raise NotFoundError(f"Product not found: {product_id}")

            stock = product.get('stock') or 0
            if stock < quantity:
                logger.warning(f"Order rejected: {product_id} requested {quantity}, available {stock}")
                raise InsufficientStockError(f"Insufficient stock for {product.get('name', product_id)}")

            price = to_money(product['price'])
            lines.append({
                'productId': product_id,
                'name': product.get('name'),
                'quantity': quantity,
                'price': price,
                'total': price * quantity,
            })

        totals = calculate_order_totals(lines, self.policy)
        order = self._insert_with_order_number(
            user_id=customer['id'],
            items=lines,
            totals=totals,
            shipping_address=shipping_address,
            billing_address=billing_address,
            payment_method=payment_method,
            notes=notes,
        )

        for line in lines:
            try:
                if not self.products.decrement_stock(line['productId'], line['quantity']):
                    logger.warning(f"Stock decrement matched no product {line['productId']} for order {order['orderNumber']}")
            except Exception as e:
                logger.error(f"Failed to decrement stock of {line['productId']} for order {order['orderNumber']}: {e}")

        self.notifications.emit(NotificationEvent(
            type='order',
            message=f"New order placed: {order['orderNumber']}",
            link=f"/admin/orders/{order['_id']}",
        ))

        payment_url = None
        if payment_method in GATEWAY_PAYMENT_METHODS:
            payment_url = self._open_payment(order, customer['email'])

        return {'order': order_summary(order), 'paymentUrl': payment_url}

    def _insert_with_order_number(self, **fields):
        now = self.clock()
        day = timezone.localdate(now)
        day_key = f"{day:%y%m%d}"

        for attempt in range(1, MAX_ORDER_NUMBER_ATTEMPTS + 1):
            order_number = format_order_number(self.order_number_prefix, day, self.sequence.next(day_key))
            order = new_order_document(order_number=order_number, now=now, **fields)
            try:
                self.orders.insert(order)
            except DuplicateKeyError:
                logger.warning(f"Order number {order_number} already taken (attempt {attempt}); retrying")
                continue
            logger.info(f"Order {order_number} created for user {order['userId']}. Total: {order['total']}")
            return order

        logger.error(f"Could not allocate a unique order number for {day_key}")
        raise ExternalServiceError("Could not create order")

    def _open_payment(self, order, email):
        if self.payments is None:
            raise PaymentInitializationError(order_summary(order))
        try:
            return self.payments.initialize_payment(order, email)
        except ExternalServiceError as e:
            raise PaymentInitializationError(order_summary(order), e.message)

    # --- Resume payment ---

    def resume_payment(self, order_id, customer):
        """
        Opens a fresh payment session for an unpaid order the customer owns,
        e.g. after a failed initialization or an abandoned gateway page.
        """
        order = self.get_order_for_user(order_id, customer['id'])
        if order['paymentStatus'] == PaymentStatus.PAID:
            raise ValidationError("Order is already paid")
        if not customer.get('email'):
            raise ValidationError("An email address is required for online payment")
        return {'order': order_summary(order), 'paymentUrl': self._open_payment(order, customer['email'])}

    # --- Queries ---

    def get_order_for_user(self, order_id, user_id):
        order = self.orders.get_for_user(order_id, user_id)
        if order is None:
            raise NotFoundError("Order not found")
        return order

    def list_orders_for_user(self, user_id, page=1, limit=10):
        if page < 1 or not 1 <= limit <= MAX_PAGE_SIZE:
            raise ValidationError(f"page must be >= 1 and limit between 1 and {MAX_PAGE_SIZE}")

        orders = self.orders.list_for_user(user_id, skip=(page - 1) * limit, limit=limit)
        total_count = self.orders.count_for_user(user_id)
        total_pages = math.ceil(total_count / limit)
        return orders, {
            'currentPage': page,
            'totalPages': total_pages,
            'totalCount': total_count,
            'hasNext': page < total_pages,
            'hasPrev': page > 1,
        }
