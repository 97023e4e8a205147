import hashlib
import hmac
import json
import logging
import time
from urllib.parse import quote, urlencode

import requests
from django.conf import settings
from django.core.exceptions import ImproperlyConfigured
from django.utils import timezone

from orders.models import PaymentStatus
from orders.pricing import to_minor_units
from storefront_backend.errors import (
    ExternalServiceError,
    NotFoundError,
    SignatureError,
    ValidationError,
)

logger = logging.getLogger(__name__)

CHARGE_SUCCESS = 'charge.success'

# Outcomes of PaymentService.confirm_payment
APPLIED = 'APPLIED'
ALREADY_PAID = 'ALREADY_PAID'


# --- Paystack Service ---

class PaystackService:
    """
    A service class for interacting with the Paystack REST API.
    """
    def __init__(self, secret_key=None, base_url=None, timeout=None, session=None):
        self.secret_key = secret_key or settings.PAYSTACK_SECRET_KEY
        self.base_url = (base_url or settings.PAYSTACK_API_BASE).rstrip('/')
        self.timeout = timeout or settings.PAYSTACK_TIMEOUT
        self.session = session or requests.Session()

        # Only the presence of the secret is logged, never its value.
        logger.debug(f"PaystackService initialized. Secret key loaded: {bool(self.secret_key)}")

        if not all([self.secret_key, self.base_url]):
            raise ImproperlyConfigured("Paystack settings are not configured properly.")

    def _headers(self):
        return {
            "Authorization": f"Bearer {self.secret_key}",
            "Content-Type": "application/json",
        }

    def _call(self, method, path, payload=None):
        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(method, url, headers=self._headers(), json=payload, timeout=self.timeout)
            response.raise_for_status()
            result = response.json()
        except requests.exceptions.HTTPError as e:
            logger.error(f"Paystack API error on {path}: {e.response.status_code} - {e.response.text}")
            raise ExternalServiceError("Payment gateway request failed") from e
        except (requests.exceptions.RequestException, ValueError) as e:
            logger.error(f"Paystack request to {path} failed: {e}")
            raise ExternalServiceError("Payment gateway unreachable") from e

        if not result.get('status'):
            logger.error(f"Paystack rejected {path}: {result.get('message')}")
            raise ExternalServiceError(result.get('message') or "Payment gateway rejected the request")
        return result.get('data') or {}

    def initialize_transaction(self, email, amount_minor, reference, callback_url, metadata, channels=None):
        """
        Opens a hosted checkout session and returns Paystack's `data` block
        (`authorization_url`, `access_code`, `reference`).
        """
        payload = {
            "email": email,
            "amount": amount_minor,
            "currency": settings.STORE_CURRENCY,
            "reference": reference,
            "callback_url": callback_url,
            "metadata": metadata,
            "channels": channels or settings.PAYSTACK_CHANNELS,
        }
        logger.info(f"Initializing Paystack transaction {reference} for {amount_minor} minor units")
        return self._call('POST', '/transaction/initialize', payload)

    def verify_transaction(self, reference):
        """
        Fetches the gateway's view of a transaction. `data.status` is
        'success' for a completed charge.
        """
        logger.info(f"Verifying Paystack transaction {reference}")
        return self._call('GET', f"/transaction/verify/{quote(reference, safe='')}")

    def compute_signature(self, raw_body: bytes) -> str:
        return hmac.new(self.secret_key.encode(), raw_body, hashlib.sha512).hexdigest()

    def verify_webhook_signature(self, raw_body: bytes, signature) -> bool:
        if not signature:
            return False
        return hmac.compare_digest(self.compute_signature(raw_body).encode(), signature.encode())


# --- Payment reconciliation ---

class PaymentService:
    """
    Opens payment sessions for orders and reconciles their outcome.

    The redirect callback and the webhook both funnel into `confirm_payment`,
    which relies on the repository's conditional update: whichever arrives
    first applies the transition, the other is a no-op.
    """
    def __init__(self, orders, gateway, callback_url=None, frontend_url=None, clock=timezone.now):
        self.orders = orders
        self.gateway = gateway
        self.callback_url = callback_url or settings.PAYSTACK_CALLBACK_URL
        self.frontend_url = (frontend_url or settings.FRONTEND_URL).rstrip('/')
        self.clock = clock

    # --- Session initialization ---

    def initialize_payment(self, order, email):
        """
        Starts a hosted checkout for a persisted order and returns the
        redirect URL. On failure the order stays PENDING with no reference.
        """
        if order['paymentStatus'] == PaymentStatus.PAID:
            raise ValidationError("Order is already paid")

        reference = f"order_{order['_id']}_{int(time.time() * 1000)}"
        metadata = {
            "orderId": order['_id'],
            "userId": order['userId'],
            "orderNumber": order['orderNumber'],
        }

        try:
            data = self.gateway.initialize_transaction(
                email=email,
                amount_minor=to_minor_units(order['total']),
                reference=reference,
                callback_url=self.callback_url,
                metadata=metadata,
            )
        except ExternalServiceError:
            logger.error(f"Payment initialization failed for order {order['orderNumber']}")
            raise ExternalServiceError("Payment initialization failed")

        authorization_url = data.get('authorization_url')
        if not authorization_url:
            logger.error(f"Paystack returned no authorization URL for order {order['orderNumber']}: {data}")
            raise ExternalServiceError("Payment initialization failed")

        if not self.orders.set_payment_reference(order['_id'], reference, self.clock()):
            # Paid through another path while the session was being opened.
            logger.warning(f"Order {order['orderNumber']} was paid before session {reference} could be recorded")
            raise ValidationError("Order is already paid")
        logger.info(f"Payment session {reference} opened for order {order['orderNumber']}")
        return authorization_url

    # --- Idempotent transition ---

    def confirm_payment(self, order_id, succeeded, reference):
        """
        Applies a verified gateway outcome to an order.

        Success moves the order to PROCESSING/PAID exactly once and returns
        APPLIED, or ALREADY_PAID if another path got there first. Failure
        marks the payment FAILED unless it is already PAID, leaving the
        fulfillment status alone.
        """
        now = self.clock()
        if succeeded:
            updated = self.orders.mark_paid(order_id, reference, now)
            if updated is not None:
                logger.info(f"Order {updated['orderNumber']} marked PAID via {reference}")
                return APPLIED
        else:
            updated = self.orders.mark_payment_failed(order_id, now)
            if updated is not None:
                logger.warning(f"Payment {reference} failed for order {updated['orderNumber']}")
                return PaymentStatus.FAILED.value

        existing = self.orders.get(order_id)
        if existing is None:
            raise NotFoundError("Order not found")
        logger.info(f"Order {existing['orderNumber']} already PAID; ignoring outcome from {reference}")
        return ALREADY_PAID

    # --- Redirect callback ---

    def _frontend(self, path, **params):
        url = f"{self.frontend_url}{path}"
        return f"{url}?{urlencode(params)}" if params else url

    def checkout_error_url(self, reason):
        return self._frontend('/checkout', error=reason)

    def handle_redirect_callback(self, reference):
        """
        Verifies the reference the gateway sent the browser back with and
        returns the frontend URL to redirect to.
        """
        if not reference:
            return self.checkout_error_url('invalid_reference')

        try:
            data = self.gateway.verify_transaction(reference)
        except ExternalServiceError:
            logger.error(f"Payment verification failed for reference {reference}")
            return self.checkout_error_url('verification_failed')

        order_id = (data.get('metadata') or {}).get('orderId')
        if not order_id:
            logger.error(f"Order ID not found in payment metadata for reference {reference}")
            return self.checkout_error_url('order_not_found')

        succeeded = data.get('status') == 'success'
        try:
            outcome = self.confirm_payment(order_id, succeeded, reference)
        except NotFoundError:
            logger.error(f"Order {order_id} from reference {reference} not found")
            return self.checkout_error_url('order_not_found')

        if succeeded or outcome == ALREADY_PAID:
            return self._frontend(f"/orders/{order_id}", success='true')
        return self.checkout_error_url('payment_failed')

    # --- Webhook ---

    def handle_webhook(self, raw_body: bytes, signature):
        """
        Processes a signed gateway event. Returns the event name.

        The HMAC is checked before the body is even parsed; a bad or missing
        signature never touches any order.
        """
        if not signature:
            logger.warning("Webhook rejected: no signature provided")
            raise SignatureError("No signature provided")
        if not self.gateway.verify_webhook_signature(raw_body, signature):
            logger.warning("Webhook rejected: invalid signature")
            raise SignatureError("Invalid signature")

        try:
            event = json.loads(raw_body)
        except (json.JSONDecodeError, UnicodeDecodeError):
            raise ValidationError("Invalid webhook payload")
        if not isinstance(event, dict):
            raise ValidationError("Invalid webhook payload")

        name = event.get('event')
        data = event.get('data') or {}
        logger.info(f"Received Paystack webhook '{name}' for reference {data.get('reference')}")

        if name == CHARGE_SUCCESS:
            order_id = (data.get('metadata') or {}).get('orderId')
            if not order_id:
                logger.warning(f"Webhook {name} carries no orderId; ignoring")
                return name
            try:
                self.confirm_payment(order_id, True, data.get('reference'))
            except NotFoundError:
                logger.error(f"Webhook {name} references unknown order {order_id}")
        return name
