import logging
import math

from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_POST

from storefront_backend.errors import NotFoundError, StorefrontError, ValidationError
from storefront_backend.http import error_response, internal_error_response, parse_json_body
from storefront_backend.mongo_config import get_db
from .catalog import build_product_document
from .repositories import MongoProductRepository

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 50


def build_product_repository():
    return MongoProductRepository(get_db())


def serialize_product(product):
    return {
        'id': product['_id'],
        'name': product.get('name'),
        'slug': product.get('slug'),
        'description': product.get('description'),
        'parsedDescription': product.get('parsedDescription', {}),
        'price': product.get('price'),
        'comparePrice': product.get('comparePrice'),
        'stock': product.get('stock', 0),
        'images': product.get('images', []),
    }


@require_GET
def product_list(request):
    try:
        try:
            page = int(request.GET.get('page', 1))
            limit = int(request.GET.get('limit', 20))
        except ValueError:
            raise ValidationError("page and limit must be integers")
        if page < 1 or not 1 <= limit <= MAX_PAGE_SIZE:
            raise ValidationError(f"page must be >= 1 and limit between 1 and {MAX_PAGE_SIZE}")

        products = build_product_repository()
        items = products.list_active(skip=(page - 1) * limit, limit=limit)
        total_count = products.count_active()
        return JsonResponse({
            'products': [serialize_product(p) for p in items],
            'pagination': {
                'currentPage': page,
                'totalPages': math.ceil(total_count / limit),
                'totalCount': total_count,
            },
        })
    except StorefrontError as e:
        return error_response(e)
    except Exception as e:
        logger.exception(f"Error listing products: {e}")
        return internal_error_response()


@require_GET
def product_detail(request, slug):
    try:
        product = build_product_repository().get_by_slug(slug)
        if not product:
            raise NotFoundError("Product not found")
        return JsonResponse(serialize_product(product))
    except StorefrontError as e:
        return error_response(e)
    except Exception as e:
        logger.exception(f"Error fetching product {slug}: {e}")
        return internal_error_response()


@csrf_exempt
@require_POST
def process_product(request):
    """
    Imports one product record: the HTML description is flattened to text
    and its `<h2>` sections parsed, then the document is upserted by id.
    """
    try:
        product = build_product_document(parse_json_body(request))
        result = build_product_repository().upsert(product)
        logger.info(f"Product {product['_id']} upserted")

        return JsonResponse({
            'status': 'success',
            'product_id': product['_id'],
            'mongo_result': {
                'acknowledged': result.acknowledged,
                'upserted_id': str(result.upserted_id) if result.upserted_id else None,
                'modified_count': result.modified_count,
            }
        })
    except StorefrontError as e:
        return error_response(e)
    except Exception as e:
        logger.exception(f"Error processing product: {e}")
        return internal_error_response()
