import argparse
import json
import logging
import os

import django
from dotenv import load_dotenv
from tqdm import tqdm

# --- Setup Logging ---
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')


def seed_products(products, repository):
    """
    Upserts raw product records through `repository`. Records that fail
    validation are skipped and logged. Returns (written, skipped).
    """
    from products.catalog import build_product_document
    from storefront_backend.errors import ValidationError

    written, skipped = 0, 0
    for raw in tqdm(products, desc="Seeding products"):
        try:
            product = build_product_document(raw)
        except ValidationError as e:
            logging.warning(f"Skipping product {raw.get('id', '<no id>')}: {e.message}")
            skipped += 1
            continue
        repository.upsert(product)
        written += 1
    return written, skipped


def main():
    parser = argparse.ArgumentParser(description="Load catalog products from a JSON file into MongoDB.")
    parser.add_argument('json_file', nargs='?', default='products.json')
    args = parser.parse_args()

    load_dotenv()
    os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'storefront_backend.settings')
    django.setup()

    from products.repositories import MongoProductRepository
    from storefront_backend.mongo_config import ensure_indexes, get_db

    try:
        logging.info(f"Reading data from '{args.json_file}'...")
        with open(args.json_file, 'r', encoding='utf-8') as f:
            products = json.load(f)
    except FileNotFoundError:
        logging.error(f"Error: The file '{args.json_file}' was not found.")
        return 1
    except json.JSONDecodeError:
        logging.error(f"Error: Could not decode JSON from the file '{args.json_file}'.")
        return 1

    if not products:
        logging.warning(f"No products found in '{args.json_file}'. Exiting.")
        return 0

    db = get_db()
    ensure_indexes(db)
    written, skipped = seed_products(products, MongoProductRepository(db))
    logging.info(f"Seeding complete: {written} written, {skipped} skipped.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
