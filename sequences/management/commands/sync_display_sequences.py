import re

from django.core.management.base import BaseCommand

from products.models import Product
from sequences.models import DisplaySequence
from sequences.services import (
    DISPLAY_ID_FORMATS,
    advance_sequence,
    product_sequence_name,
    scan_max_display_value,
    scan_max_product_value,
)

PRODUCT_ID_PATTERN = re.compile(r'^([A-Z]{2,3})-\d+-(\d{4})$')


class Command(BaseCommand):
    help = 'Fast-forward display ID counters to the highest ID already stored'

    def add_arguments(self, parser):
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Show what would be updated without making changes',
        )

    def handle(self, *args, **options):
        dry_run = options['dry_run']

        if dry_run:
            self.stdout.write(self.style.WARNING('DRY RUN MODE - No changes will be made'))

        targets = {name: scan_max_display_value(name) for name in DISPLAY_ID_FORMATS}

        product_keys = set()
        for product_id in Product.objects.filter(product_id__isnull=False).values_list('product_id', flat=True):
            match = PRODUCT_ID_PATTERN.match(product_id)
            if match:
                product_keys.add((match.group(1), int(match.group(2))))
        for category_code, year in sorted(product_keys):
            targets[product_sequence_name(category_code, year)] = scan_max_product_value(category_code, year)

        current = dict(DisplaySequence.objects.values_list('name', 'last_value'))
        updated_count = 0

        for name, highest in sorted(targets.items()):
            last_value = current.get(name, 0)
            if highest <= last_value:
                continue

            self.stdout.write(f'{name}: {last_value} -> {highest}')
            if not dry_run:
                advance_sequence(name, highest)
            updated_count += 1

        if dry_run:
            self.stdout.write(self.style.SUCCESS(f'DRY RUN: Would advance {updated_count} sequences'))
        else:
            self.stdout.write(self.style.SUCCESS(f'Successfully advanced {updated_count} sequences'))
