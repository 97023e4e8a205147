import logging

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured
from pymongo import ASCENDING, DESCENDING, MongoClient

logger = logging.getLogger(__name__)

_client = None


def get_client() -> MongoClient:
    """
    Returns the process-wide MongoClient, creating it on first use.
    """
    global _client
    if _client is None:
        if not settings.MONGO_URI or not settings.MONGO_DB_NAME:
            raise ImproperlyConfigured("MONGO_URI and MONGO_DB_NAME must be set in the environment.")
        _client = MongoClient(settings.MONGO_URI, tz_aware=True)
        logger.info(f"MongoDB client created for database '{settings.MONGO_DB_NAME}'.")
    return _client


def get_db():
    return get_client()[settings.MONGO_DB_NAME]


def ensure_indexes(db):
    """
    Creates the indexes the order and wishlist flows depend on.

    The unique indexes are load-bearing: order numbers and wishlist entries
    rely on them to reject duplicates.
    """
    db['orders'].create_index([('orderNumber', ASCENDING)], unique=True)
    db['orders'].create_index([('userId', ASCENDING)])
    db['orders'].create_index([('status', ASCENDING)])
    db['orders'].create_index([('createdAt', DESCENDING)])
    db['wishlists'].create_index([('userId', ASCENDING), ('productId', ASCENDING)], unique=True)
    db['notifications'].create_index([('createdAt', DESCENDING)])
    db['products'].create_index([('slug', ASCENDING)], unique=True, sparse=True)
    logger.info("MongoDB indexes ensured.")
