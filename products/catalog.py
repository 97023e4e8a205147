"""
Normalization of imported product records into catalog documents.
"""
import re
from datetime import datetime, timezone

from bs4 import BeautifulSoup

from storefront_backend.errors import ValidationError

PRODUCT_STATUSES = ('ACTIVE', 'INACTIVE', 'DRAFT')


def clean_html_text(html_content):
    """Convert HTML to plain text, removing tags and cleaning up spacing."""
    if not html_content:
        return ""

    soup = BeautifulSoup(html_content, 'html.parser')
    for script in soup(["script", "style"]):
        script.decompose()

    return ' '.join(soup.get_text(separator=' ').split())


def parse_description_sections(html_content):
    """
    Collects `<h2>` headed sections: a following `<ul>` becomes a list of
    its items, anything else becomes its text.
    """
    if not html_content:
        return {}

    soup = BeautifulSoup(html_content, 'html.parser')
    parsed = {}
    for h2 in soup.find_all('h2'):
        key = h2.text.strip().lower().replace(' ', '_')
        content_node = h2.find_next_sibling()
        if content_node:
            if content_node.name == 'ul':
                parsed[key] = [li.text.strip() for li in content_node.find_all('li')]
            else:
                parsed[key] = content_node.text.strip()
    return parsed


def slugify(name):
    return re.sub(r'[^a-z0-9]+', '-', name.lower()).strip('-')


def build_product_document(raw):
    """
    Validates a raw product record and returns the document to upsert.

    The record's own `id` becomes `_id`. Price and stock are required since
    checkout prices and reserves stock from them.
    """
    product_id = raw.get('id') or raw.get('_id')
    if not product_id:
        raise ValidationError("Product ID is missing")
    name = (raw.get('name') or raw.get('title') or '').strip()
    if not name:
        raise ValidationError("Product name is required")

    try:
        price = float(raw['price'])
        stock = int(raw.get('stock', 0))
    except (KeyError, TypeError, ValueError):
        raise ValidationError("Product price and stock must be numbers")
    if price < 0 or stock < 0:
        raise ValidationError("Product price and stock cannot be negative")

    status = str(raw.get('status') or 'ACTIVE').upper()
    if status not in PRODUCT_STATUSES:
        raise ValidationError(f"Unknown product status: {status}")

    html_description = raw.get('description', '')
    return {
        '_id': str(product_id),
        'name': name,
        'slug': raw.get('slug') or slugify(name),
        'description': clean_html_text(html_description),
        'parsedDescription': parse_description_sections(html_description),
        'price': price,
        'comparePrice': float(raw['comparePrice']) if raw.get('comparePrice') else None,
        'stock': stock,
        'images': list(raw.get('images') or []),
        'status': status,
        'categoryId': raw.get('categoryId'),
        'syncedAt': datetime.now(timezone.utc),
    }
