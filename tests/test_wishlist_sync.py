"""Local wishlist reconciled against the server-side list."""
import pytest
import requests

from storefront_client import JsonFileStorage, WishlistApi, WishlistApiError, WishlistStore, WishlistSync
from tests.fakes import FakeWishlistApi


def _item(product_id, name=None):
    return {'productId': product_id, 'name': name or f"Product {product_id}", 'price': 100, 'image': None, 'slug': None}


@pytest.fixture
def store(tmp_path):
    return WishlistStore(JsonFileStorage(tmp_path / 'client.json'))


def test_login_replaces_local_list_wholesale(store):
    store.add_item(_item('LOCAL'))
    api = FakeWishlistApi([_item('P1'), _item('P2')])

    WishlistSync(store, api).on_login()

    assert [i['productId'] for i in store.items] == ['P1', 'P2']


def test_logout_clears(store):
    sync = WishlistSync(store, FakeWishlistApi([_item('P1')]))
    sync.on_login()
    sync.on_logout()
    assert store.items == []


def test_add_confirmed_by_server(store):
    api = FakeWishlistApi()
    assert WishlistSync(store, api).add(_item('P1'))
    assert store.contains('P1')
    assert [i['productId'] for i in api.items] == ['P1']


def test_rejected_duplicate_leaves_list_as_before(store):
    # Server already has P1 but the local copy is stale.
    api = FakeWishlistApi([_item('P1')])
    store.add_item(_item('P2'))
    before = store.items

    assert not WishlistSync(store, api).add(_item('P1'))
    assert store.items == before


def test_unreachable_server_reverts_add(store):
    api = FakeWishlistApi()
    api.unreachable = True
    assert not WishlistSync(store, api).add(_item('P1'))
    assert store.items == []


def test_failed_delete_refetches(store):
    api = FakeWishlistApi([_item('P1'), _item('P2')])
    sync = WishlistSync(store, api)
    sync.on_login()

    api.fail_next_remove = True
    assert not sync.remove('P1')

    assert [i['productId'] for i in store.items] == ['P1', 'P2']


def test_toggle(store):
    api = FakeWishlistApi()
    sync = WishlistSync(store, api)
    sync.toggle(_item('P1'))
    assert store.contains('P1')
    sync.toggle(_item('P1'))
    assert not store.contains('P1')
    assert api.items == []


def test_local_list_persists(tmp_path):
    WishlistStore(JsonFileStorage(tmp_path / 'client.json')).add_item(_item('P9', 'Saved'))
    reloaded = WishlistStore(JsonFileStorage(tmp_path / 'client.json'))
    assert reloaded.items == [_item('P9', 'Saved')]


class StubResponse:

    def __init__(self, status_code, payload, reason='OK'):
        self.status_code = status_code
        self._payload = payload
        self.reason = reason

    @property
    def ok(self):
        return self.status_code < 400

    def json(self):
        return self._payload


class StubSession:

    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def request(self, method, url, timeout=None, **kwargs):
        self.calls.append((method, url, kwargs))
        if self.error:
            raise self.error
        return self.response


class TestWishlistApi:

    def test_add_posts_product_id(self):
        session = StubSession(StubResponse(201, {'message': 'Added to wishlist', 'item': _item('P1')}))
        item = WishlistApi('https://api.example/', session=session).add('P1')
        assert item['productId'] == 'P1'
        assert session.calls == [('POST', 'https://api.example/api/user/wishlist/', {'json': {'productId': 'P1'}})]

    def test_conflict_is_duplicate(self):
        session = StubSession(StubResponse(409, {'error': 'Product already in wishlist'}, reason='Conflict'))
        with pytest.raises(WishlistApiError) as excinfo:
            WishlistApi('https://api.example', session=session).add('P1')
        assert excinfo.value.is_duplicate
        assert excinfo.value.message == 'Product already in wishlist'

    def test_network_failure(self):
        session = StubSession(error=requests.exceptions.ConnectionError("refused"))
        with pytest.raises(WishlistApiError) as excinfo:
            WishlistApi('https://api.example', session=session).fetch()
        assert excinfo.value.status_code == 0
        assert not excinfo.value.is_duplicate
