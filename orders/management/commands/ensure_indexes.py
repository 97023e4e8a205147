from django.core.management.base import BaseCommand

from storefront_backend.mongo_config import ensure_indexes, get_db


class Command(BaseCommand):
    help = "Create the MongoDB indexes the order, wishlist and catalog flows rely on."

    def handle(self, *args, **options):
        ensure_indexes(get_db())
        self.stdout.write(self.style.SUCCESS("Indexes ensured."))
