import pytest

from products.catalog import build_product_document, clean_html_text, parse_description_sections
from seed_products import seed_products
from storefront_backend.errors import ValidationError
from tests.fakes import FakeProductRepository

DESCRIPTION = (
    '<p>Soft <b>linen</b> shirt.</p><script>track()</script>'
    '<h2>Features</h2><ul><li>Breathable</li><li>Relaxed fit</li></ul>'
    '<h2>Care Instructions</h2><p>Machine wash cold.</p>'
)


def test_clean_html_text():
    assert clean_html_text(DESCRIPTION).startswith('Soft linen shirt.')
    assert 'track()' not in clean_html_text(DESCRIPTION)
    assert clean_html_text(None) == ''


def test_parse_description_sections():
    assert parse_description_sections(DESCRIPTION) == {
        'features': ['Breathable', 'Relaxed fit'],
        'care_instructions': 'Machine wash cold.',
    }


def test_build_product_document():
    doc = build_product_document({
        'id': 101, 'name': ' Linen Shirt ', 'price': '2500', 'stock': '10', 'description': DESCRIPTION,
    })
    assert doc['_id'] == '101'
    assert doc['name'] == 'Linen Shirt'
    assert doc['slug'] == 'linen-shirt'
    assert (doc['price'], doc['stock'], doc['status']) == (2500.0, 10, 'ACTIVE')
    assert doc['parsedDescription']['features'] == ['Breathable', 'Relaxed fit']
    assert doc['syncedAt'] is not None


@pytest.mark.parametrize('raw', [
    {'name': 'No id', 'price': 1},
    {'id': 1, 'price': 1},
    {'id': 1, 'name': 'No price'},
    {'id': 1, 'name': 'Negative', 'price': -5},
    {'id': 1, 'name': 'Odd status', 'price': 5, 'status': 'archived'},
])
def test_rejects_invalid_records(raw):
    with pytest.raises(ValidationError):
        build_product_document(raw)


def test_seed_products_skips_invalid_records():
    repository = FakeProductRepository()
    written, skipped = seed_products([
        {'id': 'A', 'name': 'Alpha', 'price': 10, 'stock': 1},
        {'id': 'B', 'name': 'Beta'},
        {'id': 'C', 'name': 'Gamma', 'price': 30, 'stock': 3},
    ], repository)

    assert (written, skipped) == (2, 1)
    assert repository.get('C')['slug'] == 'gamma'
    assert repository.get('B') is None
