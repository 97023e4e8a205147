import logging

from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods

from products.repositories import MongoProductRepository
from storefront_backend.errors import StorefrontError, ValidationError
from storefront_backend.http import error_response, internal_error_response, login_required_json, parse_json_body
from storefront_backend.mongo_config import get_db
from .repositories import MongoWishlistRepository

logger = logging.getLogger(__name__)


def build_wishlist_repository():
    db = get_db()
    return MongoWishlistRepository(db, MongoProductRepository(db))


@csrf_exempt
@require_http_methods(['GET', 'POST'])
@login_required_json
def wishlist_collection(request):
    user_id = request.customer['id']
    try:
        wishlist = build_wishlist_repository()
        if request.method == 'GET':
            return JsonResponse({'items': wishlist.list_for_user(user_id)})

        product_id = parse_json_body(request).get('productId')
        if not product_id:
            raise ValidationError("Product ID is required")
        item = wishlist.add(user_id, product_id)
        return JsonResponse({'message': "Added to wishlist", 'item': item}, status=201)
    except StorefrontError as e:
        return error_response(e)
    except Exception as e:
        logger.exception(f"Error handling wishlist of user {user_id}: {e}")
        return internal_error_response()


@csrf_exempt
@require_http_methods(['DELETE'])
@login_required_json
def wishlist_item(request, product_id):
    user_id = request.customer['id']
    try:
        build_wishlist_repository().remove(user_id, product_id)
        return JsonResponse({'message': "Item removed from wishlist", 'productId': product_id})
    except StorefrontError as e:
        return error_response(e)
    except Exception as e:
        logger.exception(f"Error removing {product_id} from wishlist of user {user_id}: {e}")
        return internal_error_response()
