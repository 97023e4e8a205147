"""
Client-facing error taxonomy.

Views catch StorefrontError and answer with `{"error": message}` and the
class's status code. Anything else is logged and answered with a generic 500.
"""


class StorefrontError(Exception):
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(StorefrontError):
    status_code = 400
    default_message = "Invalid request"


class AuthenticationError(StorefrontError):
    status_code = 401
    default_message = "Authentication required"


class NotFoundError(StorefrontError):
    status_code = 404
    default_message = "Not found"


class ConflictError(StorefrontError):
    status_code = 409
    default_message = "Conflict"


class InsufficientStockError(ConflictError):
    # The checkout UI has always received stock failures as a 400.
    status_code = 400
    default_message = "Insufficient stock"


class DuplicateWishlistItemError(ConflictError):
    default_message = "Product already in wishlist"


class ExternalServiceError(StorefrontError):
    status_code = 500
    default_message = "External service unavailable"


class SignatureError(StorefrontError):
    status_code = 400
    default_message = "Invalid signature"
