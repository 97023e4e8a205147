import os
from datetime import datetime, timezone

import django
import pytest

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'storefront_backend.settings')
os.environ.setdefault('PAYSTACK_SECRET_KEY', 'sk_test_secret')
django.setup()

from django.test.utils import setup_test_environment  # noqa: E402

setup_test_environment()

from tests.fakes import (  # noqa: E402
    FakeGateway,
    FakeOrderRepository,
    FakeOrderSequence,
    FakeProductRepository,
    RecordingNotificationSink,
)

SECRET = 'sk_test_secret'
FRONTEND = 'https://shop.example'
NOW = datetime(2026, 10, 19, 10, 30, tzinfo=timezone.utc)


@pytest.fixture
def products():
    return FakeProductRepository([
        {'_id': 'P1', 'name': 'Linen Shirt', 'price': 2500, 'stock': 10, 'slug': 'linen-shirt', 'images': ['/img/p1.jpg']},
        {'_id': 'P2', 'name': 'Leather Bag', 'price': 30000, 'stock': 1, 'slug': 'leather-bag', 'images': []},
        {'_id': 'P3', 'name': 'Silk Scarf', 'price': 12500.50, 'stock': 5, 'slug': 'silk-scarf', 'images': []},
    ])


@pytest.fixture
def orders():
    return FakeOrderRepository()


@pytest.fixture
def sequence():
    return FakeOrderSequence()


@pytest.fixture
def notifications():
    return RecordingNotificationSink()


@pytest.fixture
def gateway():
    return FakeGateway(SECRET)


@pytest.fixture
def customer():
    return {'id': 'U1', 'email': 'ada@example.com'}


@pytest.fixture
def shipping_address():
    return {
        'firstName': 'Ada',
        'lastName': 'Obi',
        'address1': '12 Marina Road',
        'city': 'Lagos',
        'state': 'Lagos',
        'postalCode': '101001',
        'country': 'NG',
    }
