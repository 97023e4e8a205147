import logging

import requests

logger = logging.getLogger(__name__)


class WishlistApiError(Exception):
    def __init__(self, status_code, message):
        super().__init__(f"{status_code}: {message}")
        self.status_code = status_code
        self.message = message

    @property
    def is_duplicate(self):
        return self.status_code == 409


class WishlistApi:
    """
    Client for the storefront's `/api/user/wishlist/` endpoints.

    `session` must carry the shopper's session cookie.
    """
    def __init__(self, base_url, session=None, timeout=10):
        self.base_url = base_url.rstrip('/')
        self.session = session or requests.Session()
        self.timeout = timeout

    def _request(self, method, path, **kwargs):
        url = f"{self.base_url}/api/user/wishlist/{path}"
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.exceptions.RequestException as e:
            logger.error(f"Wishlist request {method} {url} failed: {e}")
            raise WishlistApiError(0, str(e)) from e

        if not response.ok:
            try:
                message = response.json().get('error', response.reason)
            except ValueError:
                message = response.reason
            raise WishlistApiError(response.status_code, message)
        return response.json()

    def fetch(self):
        return self._request('GET', '')['items']

    def add(self, product_id):
        return self._request('POST', '', json={'productId': product_id})['item']

    def remove(self, product_id):
        self._request('DELETE', f"{product_id}/")
