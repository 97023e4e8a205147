import logging

from django.conf import settings
from django.http import JsonResponse
from django.shortcuts import redirect
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_POST

from orders.repositories import MongoOrderRepository
from storefront_backend.errors import StorefrontError
from storefront_backend.http import error_response
from storefront_backend.mongo_config import get_db
from .services import PaymentService, PaystackService

logger = logging.getLogger(__name__)


def build_payment_service():
    return PaymentService(MongoOrderRepository(get_db()), PaystackService())


@require_GET
def paystack_callback(request):
    """
    Handle the user returning from the Paystack hosted page.

    Always answers with a redirect to the frontend: the order page with
    `success=true`, or the checkout page with `error=<reason>`.
    """
    reference = request.GET.get('reference')
    try:
        return redirect(build_payment_service().handle_redirect_callback(reference))
    except Exception as e:
        logger.exception(f"Payment callback error for reference {reference}: {e}")
        return redirect(f"{settings.FRONTEND_URL}/checkout?error=callback_error")


@csrf_exempt
@require_POST
def paystack_webhook(request):
    """
    Listener for Paystack webhooks, authenticated only by the
    `x-paystack-signature` HMAC over the raw body.
    """
    try:
        build_payment_service().handle_webhook(request.body, request.headers.get('X-Paystack-Signature'))
        return JsonResponse({'status': 'success'})
    except StorefrontError as e:
        return error_response(e)
    except Exception as e:
        logger.exception(f"Webhook error: {e}")
        return JsonResponse({'error': "Webhook processing failed"}, status=500)
