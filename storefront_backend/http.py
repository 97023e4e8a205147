import functools
import json
import logging

from django.http import JsonResponse

from .errors import AuthenticationError, StorefrontError, ValidationError

logger = logging.getLogger(__name__)

ADMIN_ROLE = 'ADMIN'


def error_response(exc: StorefrontError) -> JsonResponse:
    return JsonResponse({'error': exc.message}, status=exc.status_code)


def internal_error_response() -> JsonResponse:
    return JsonResponse({'error': "Internal server error"}, status=500)


def parse_json_body(request) -> dict:
    """
    Decodes a JSON object body, raising ValidationError on anything else.
    """
    try:
        data = json.loads(request.body or b'{}')
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise ValidationError("Invalid JSON")
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def login_required_json(view):
    """
    Resolves the customer the login flow stored in the session.

    The view receives `request.customer = {'id': ..., 'email': ...}`; requests
    without a session user get a 401 JSON response.
    """
    @functools.wraps(view)
    def wrapper(request, *args, **kwargs):
        session = getattr(request, 'session', None) or {}
        user_id = session.get('user_id')
        if not user_id:
            return error_response(AuthenticationError())
        request.customer = {'id': str(user_id), 'email': session.get('email')}
        return view(request, *args, **kwargs)
    return wrapper


def admin_required_json(view):
    """
    Like `login_required_json`, but the session user must carry the ADMIN role.
    """
    @functools.wraps(view)
    def wrapper(request, *args, **kwargs):
        session = getattr(request, 'session', None) or {}
        if not session.get('user_id') or session.get('role') != ADMIN_ROLE:
            return error_response(AuthenticationError("Admin access required"))
        request.customer = {'id': str(session['user_id']), 'email': session.get('email')}
        return view(request, *args, **kwargs)
    return wrapper
