"""
Unit tests for display ID generation
Tests sequential IDs, category scoped product codes and counter sync
"""

import threading
from io import StringIO

from django.core.management import call_command
from django.db import connection
from django.test import TestCase, TransactionTestCase, skipUnlessDBFeature

from products.models import Category, Product
from sequences.exceptions import InvalidCategoryCode, SequenceError
from sequences.models import DisplaySequence
from sequences.services import (
    advance_sequence, generate_product_id, next_display_id, scan_next_product_id,
)


class DisplayIdTest(TestCase):
    """Test prefix based display IDs"""

    def test_ids_are_sequential_and_distinct(self):
        ids = [next_display_id('order') for _ in range(5)]

        self.assertEqual(ids, ['SAL0001', 'SAL0002', 'SAL0003', 'SAL0004', 'SAL0005'])
        self.assertEqual(DisplaySequence.objects.get(name='order').last_value, 5)

    def test_sequences_are_independent(self):
        self.assertEqual(next_display_id('customer'), 'CUS0001')
        self.assertEqual(next_display_id('order_receipt'), 'REC0001')
        self.assertEqual(next_display_id('on_demand_receipt'), 'ODR-000001')
        self.assertEqual(next_display_id('customer'), 'CUS0002')

    def test_unregistered_name_rejected(self):
        with self.assertRaises(ValueError):
            next_display_id('invoice')

    def test_advance_only_moves_forward(self):
        self.assertTrue(advance_sequence('order', 41))
        self.assertFalse(advance_sequence('order', 10))
        self.assertEqual(next_display_id('order'), 'SAL0042')


class ProductIdTest(TestCase):
    """Test category scoped product codes"""

    def setUp(self):
        Category.objects.create(category_name='White Coconut', category_code='WC')
        Category.objects.create(category_name='Vegetables', category_code='VG')

    def test_product_ids_per_category_and_year(self):
        self.assertEqual(generate_product_id('WC', 2025), 'WC-00001-2025')
        self.assertEqual(generate_product_id('WC', 2025), 'WC-00002-2025')
        self.assertEqual(generate_product_id('VG', 2025), 'VG-00001-2025')
        self.assertEqual(generate_product_id('WC', 2026), 'WC-00001-2026')

    def test_unknown_category_code(self):
        with self.assertRaises(InvalidCategoryCode) as context:
            generate_product_id('ZZ', 2025)

        self.assertEqual(context.exception.category_code, 'ZZ')
        self.assertIsInstance(context.exception, SequenceError)

    def test_malformed_category_code(self):
        for code in ['', 'wc', 'W', 'WCXY', 'W1']:
            with self.assertRaises(InvalidCategoryCode):
                generate_product_id(code, 2025)

    def test_scan_gives_same_code_until_insert(self):
        """Test the scan based generator repeats itself without a write in between"""
        first = scan_next_product_id('WC', 2025)
        second = scan_next_product_id('WC', 2025)

        self.assertEqual(first, 'WC-00001-2025')
        self.assertEqual(first, second)


@skipUnlessDBFeature('has_select_for_update')
class ConcurrentDisplayIdTest(TransactionTestCase):
    """Test concurrent callers never share a display ID"""

    serialized_rollback = True

    def test_threads_get_distinct_ids(self):
        results = []
        errors = []
        lock = threading.Lock()

        def worker():
            try:
                for _ in range(5):
                    value = next_display_id('order')
                    with lock:
                        results.append(value)
            except Exception as e:
                errors.append(e)
            finally:
                connection.close()

        threads = [threading.Thread(target=worker) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        self.assertEqual(errors, [])
        self.assertEqual(len(results), 20)
        self.assertEqual(len(set(results)), 20)


class SyncDisplaySequencesCommandTest(TestCase):
    """Test the sync_display_sequences management command"""

    def setUp(self):
        category = Category.objects.create(category_name='White Coconut', category_code='WC')
        product = Product.objects.create(name='Coconut', category=category, sku='WC-1')
        # Simulate IDs loaded by an import that bypassed the counters
        Product.objects.filter(pk=product.pk).update(product_id='WC-00007-2025', product_display_id='PRO0042')

    def test_counters_fast_forwarded(self):
        out = StringIO()
        call_command('sync_display_sequences', stdout=out)

        self.assertIn('Successfully advanced', out.getvalue())
        self.assertEqual(next_display_id('product'), 'PRO0043')
        self.assertEqual(generate_product_id('WC', 2025), 'WC-00008-2025')

    def test_dry_run_changes_nothing(self):
        out = StringIO()
        call_command('sync_display_sequences', '--dry-run', stdout=out)

        self.assertIn('DRY RUN', out.getvalue())
        self.assertIn('product: 1 -> 42', out.getvalue())
        self.assertEqual(next_display_id('product'), 'PRO0002')
