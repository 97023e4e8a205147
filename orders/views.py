import logging

from django.http import HttpResponse, JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods, require_POST

from payments.services import PaymentService, PaystackService
from products.repositories import MongoProductRepository
from storefront_backend.errors import StorefrontError, ValidationError
from storefront_backend.http import (
    admin_required_json,
    error_response,
    internal_error_response,
    login_required_json,
    parse_json_body,
)
from storefront_backend.mongo_config import get_db
from .invoice import invoice_filename, render_invoice
from .notifications import MongoNotificationSink
from .repositories import MongoOrderRepository, MongoOrderSequence
from .serializers import serialize_order
from .services import GATEWAY_PAYMENT_METHODS, OrderService, PaymentInitializationError

logger = logging.getLogger(__name__)

RECENT_NOTIFICATIONS = 50


def build_order_service(with_payments=False):
    """
    Wires the order service to Mongo. The Paystack client is only built for
    the flows that open a payment session.
    """
    db = get_db()
    orders = MongoOrderRepository(db)
    return OrderService(
        orders=orders,
        products=MongoProductRepository(db),
        sequence=MongoOrderSequence(db),
        notifications=MongoNotificationSink(db),
        payments=PaymentService(orders, PaystackService()) if with_payments else None,
    )


def _int_param(request, name, default):
    try:
        return int(request.GET.get(name, default))
    except (TypeError, ValueError):
        raise ValidationError(f"{name} must be an integer")


@csrf_exempt
@require_http_methods(['GET', 'POST'])
@login_required_json
def orders_collection(request):
    if request.method == 'POST':
        return create_order(request)
    return list_orders(request)


def create_order(request):
    """
    Places an order from the submitted cart and, for gateway payments,
    returns the hosted checkout URL.
    """
    try:
        data = parse_json_body(request)
        service = build_order_service(with_payments=data.get('paymentMethod') in GATEWAY_PAYMENT_METHODS)
        result = service.place_order(
            customer=request.customer,
            items=data.get('items'),
            shipping_address=data.get('shippingAddress'),
            billing_address=data.get('billingAddress'),
            payment_method=data.get('paymentMethod'),
            notes=data.get('notes'),
        )
        return JsonResponse(result, status=201)
    except PaymentInitializationError as e:
        # The order exists; the client can resume payment with its id.
        return JsonResponse({'error': e.message, 'order': e.order}, status=e.status_code)
    except StorefrontError as e:
        return error_response(e)
    except Exception as e:
        logger.exception(f"Order creation error: {e}")
        return internal_error_response()


def list_orders(request):
    try:
        page = _int_param(request, 'page', 1)
        limit = _int_param(request, 'limit', 10)
        orders, pagination = build_order_service().list_orders_for_user(request.customer['id'], page, limit)
        return JsonResponse({'orders': [serialize_order(o) for o in orders], 'pagination': pagination})
    except StorefrontError as e:
        return error_response(e)
    except Exception as e:
        logger.exception(f"Error fetching orders: {e}")
        return internal_error_response()


@require_http_methods(['GET'])
@login_required_json
def order_detail(request, order_id):
    try:
        order = build_order_service().get_order_for_user(order_id, request.customer['id'])
        return JsonResponse(serialize_order(order))
    except StorefrontError as e:
        return error_response(e)
    except Exception as e:
        logger.exception(f"Error fetching order {order_id}: {e}")
        return internal_error_response()


@csrf_exempt
@require_POST
@login_required_json
def resume_payment(request, order_id):
    try:
        result = build_order_service(with_payments=True).resume_payment(order_id, request.customer)
        return JsonResponse(result)
    except PaymentInitializationError as e:
        return JsonResponse({'error': e.message, 'order': e.order}, status=e.status_code)
    except StorefrontError as e:
        return error_response(e)
    except Exception as e:
        logger.exception(f"Error resuming payment for order {order_id}: {e}")
        return internal_error_response()


@require_http_methods(['GET'])
@login_required_json
def order_invoice(request, order_id):
    """
    Downloads the customer's invoice for one of their orders as an HTML file.
    """
    try:
        order = build_order_service().get_order_for_user(order_id, request.customer['id'])
        html = render_invoice(order, request.customer.get('email'))
        response = HttpResponse(html, content_type='text/html; charset=utf-8')
        response['Content-Disposition'] = f'attachment; filename="{invoice_filename(order)}"'
        return response
    except StorefrontError as e:
        return error_response(e)
    except Exception as e:
        logger.exception(f"Error generating invoice for order {order_id}: {e}")
        return internal_error_response()


# --- Admin notifications ---

def build_notification_sink():
    return MongoNotificationSink(get_db())


def _serialize_notification(doc):
    created_at = doc.get('createdAt')
    return {
        '_id': str(doc['_id']),
        'type': doc['type'],
        'message': doc['message'],
        'link': doc.get('link'),
        'read': doc.get('read', False),
        'createdAt': created_at.isoformat() if created_at else None,
    }


@require_http_methods(['GET'])
@admin_required_json
def admin_notifications(request):
    """
    The admin bell: the 50 newest notifications plus a count per type.
    """
    try:
        sink = build_notification_sink()
        return JsonResponse({
            'notifications': [_serialize_notification(doc) for doc in sink.recent(RECENT_NOTIFICATIONS)],
            'counts': sink.counts(),
        })
    except Exception as e:
        logger.exception(f"Error fetching notifications: {e}")
        return JsonResponse({'error': "Failed to fetch notifications"}, status=500)
