import re
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.test import TestCase
from django.utils import timezone
from rest_framework.test import APITestCase
from rest_framework import status

from accounts.models import Role, User
from customers.models import Customer
from sequences.exceptions import InvalidCategoryCode
from .models import Category, Product
from .services import adjust_stock


class CategoryModelTest(TestCase):
    """Test Category model functionality"""

    def test_category_gets_display_id(self):
        """Test categories are numbered CAT0001, CAT0002, ..."""
        first = Category.objects.create(category_name='Vegetables', category_code='VG')
        second = Category.objects.create(category_name='Fruits', category_code='FR')

        self.assertEqual(first.category_display_id, 'CAT0001')
        self.assertEqual(second.category_display_id, 'CAT0002')

    def test_display_id_kept_on_update(self):
        category = Category.objects.create(category_name='Vegetables', category_code='VG')
        category.description = 'Leafy and root vegetables'
        category.save()

        category.refresh_from_db()
        self.assertEqual(category.category_display_id, 'CAT0001')

    def test_category_code_format_validated(self):
        """Test lowercase or overlong codes fail model validation"""
        category = Category(category_name='Herbs', category_code='h1')
        with self.assertRaises(ValidationError):
            category.full_clean()


class ProductModelTest(TestCase):
    """Test Product model functionality"""

    def setUp(self):
        self.category = Category.objects.create(category_name='White Coconut', category_code='WC')
        self.year = timezone.localdate().year

    def make_product(self, sku, **kwargs):
        defaults = {
            'name': f'Product {sku}',
            'category': self.category,
            'sku': sku,
            'quantity': Decimal('100.00'),
            'price_dealer_cash': Decimal('100.00'),
            'price_dealer_credit': Decimal('110.00'),
            'price_hotel_cash': Decimal('120.00'),
            'price_hotel_credit': Decimal('130.00'),
            'threshold': Decimal('10.00'),
        }
        defaults.update(kwargs)
        return Product.objects.create(**defaults)

    def test_product_ids_are_category_scoped(self):
        """Test product IDs run per category code and year"""
        first = self.make_product('WC-1')
        second = self.make_product('WC-2')

        self.assertEqual(first.product_id, f'WC-00001-{self.year}')
        self.assertEqual(second.product_id, f'WC-00002-{self.year}')
        self.assertRegex(first.product_display_id, r'^PRO\d{4}$')

    def test_product_without_category_has_no_product_id(self):
        product = self.make_product('LOOSE-1', category=None)
        self.assertIsNone(product.product_id)
        self.assertTrue(re.match(r'^PRO\d{4}$', product.product_display_id))

    def test_unknown_category_code_rejected(self):
        """Test a category code that no longer matches a category fails product creation"""
        Category.objects.filter(pk=self.category.pk).update(category_code='ZZ')
        self.category.category_code = 'QQ'

        with self.assertRaises(InvalidCategoryCode):
            self.make_product('BAD-1')

    def test_low_stock_flag(self):
        self.assertTrue(self.make_product('LOW-1', quantity=Decimal('10.00')).is_low_stock)
        self.assertFalse(self.make_product('OK-1', quantity=Decimal('10.01')).is_low_stock)

    def test_customer_price_tiers(self):
        """Test dealer/hotel and cash/credit price selection"""
        product = self.make_product('TIER-1')

        def customer(category, payment):
            return Customer(name='C', customer_category=category, type=payment)

        self.assertEqual(product.get_customer_price(customer('Dealer', 'Cash')), Decimal('100.00'))
        self.assertEqual(product.get_customer_price(customer('Dealer', 'Credit')), Decimal('110.00'))
        self.assertEqual(product.get_customer_price(customer('Hotel', 'Cash')), Decimal('120.00'))
        self.assertEqual(product.get_customer_price(customer('Hotel', 'Cheque')), Decimal('130.00'))
        self.assertEqual(product.get_customer_price(customer('Other', 'Credit')), Decimal('100.00'))


class StockAdjustmentTest(TestCase):
    """Test stock moves through adjust_stock"""

    def setUp(self):
        self.product = Product.objects.create(name='Kurakkan Flour', sku='KF-1', quantity=Decimal('5.00'))

    def test_take_and_return_stock(self):
        adjust_stock(self.product, Decimal('-2.50'))
        self.assertEqual(self.product.quantity, Decimal('2.50'))

        adjust_stock(self.product, Decimal('1.00'))
        self.product.refresh_from_db()
        self.assertEqual(self.product.quantity, Decimal('3.50'))

    def test_insufficient_stock_rejected(self):
        with self.assertRaises(ValidationError):
            adjust_stock(self.product, Decimal('-5.01'))

        self.product.refresh_from_db()
        self.assertEqual(self.product.quantity, Decimal('5.00'))


class ProductAPITest(APITestCase):
    """Test product and category endpoints"""

    def setUp(self):
        self.admin = User.objects.create_user(email='admin@farm.test', password='testpass123', role=Role.ADMIN)
        self.rep = User.objects.create_user(email='rep@farm.test', password='testpass123', role=Role.SALES_REP)
        self.category = Category.objects.create(category_name='White Coconut', category_code='WC')
        self.product = Product.objects.create(
            name='Coconut Oil', category=self.category, sku='CO-1',
            quantity=Decimal('3.00'), threshold=Decimal('5.00'),
            price_dealer_cash=Decimal('400.00'), price_hotel_credit=Decimal('480.00'),
        )

    def test_admin_creates_category(self):
        self.client.force_authenticate(user=self.admin)
        response = self.client.post('/api/products/categories/', {
            'category_name': 'Spices', 'category_code': 'SP'
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertRegex(response.data['category_display_id'], r'^CAT\d{4}$')

    def test_sales_rep_cannot_create_category(self):
        self.client.force_authenticate(user=self.rep)
        response = self.client.post('/api/products/categories/', {
            'category_name': 'Spices', 'category_code': 'SP'
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_category_with_products_cannot_be_deleted(self):
        self.client.force_authenticate(user=self.admin)
        response = self.client.delete(f'/api/products/categories/{self.category.id}/')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertTrue(Category.objects.filter(pk=self.category.pk).exists())

    def test_category_code_locked_once_products_exist(self):
        self.client.force_authenticate(user=self.admin)
        response = self.client.patch(f'/api/products/categories/{self.category.id}/', {
            'category_code': 'CC'
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_admin_creates_product_with_ids(self):
        self.client.force_authenticate(user=self.admin)
        response = self.client.post('/api/products/products/', {
            'name': 'Desiccated Coconut',
            'category': self.category.id,
            'sku': 'DC-1',
            'quantity': '50.00',
            'price_dealer_cash': '300.00',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(response.data['product_id'].startswith('WC-00002-'))

    def test_inactive_category_rejected(self):
        self.category.status = False
        self.category.save()
        self.client.force_authenticate(user=self.admin)

        response = self.client.post('/api/products/products/', {
            'name': 'Coconut Milk', 'category': self.category.id, 'sku': 'CM-1'
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_sales_rep_reads_but_cannot_edit_products(self):
        self.client.force_authenticate(user=self.rep)

        list_response = self.client.get('/api/products/products/')
        edit_response = self.client.patch(f'/api/products/products/{self.product.id}/', {'name': 'X'}, format='json')

        self.assertEqual(list_response.status_code, status.HTTP_200_OK)
        self.assertEqual(edit_response.status_code, status.HTTP_403_FORBIDDEN)

    def test_low_stock_listing(self):
        Product.objects.create(name='Plenty', sku='PL-1', quantity=Decimal('99.00'), threshold=Decimal('5.00'))
        self.client.force_authenticate(user=self.rep)

        response = self.client.get('/api/products/products/low-stock/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['products'][0]['sku'], 'CO-1')

    def test_customer_price_endpoint(self):
        hotel = Customer.objects.create(
            name='Lagoon Hotel', address='Negombo', phone_number='0771234567',
            customer_category='Hotel', type='Credit',
        )
        self.client.force_authenticate(user=self.rep)

        response = self.client.get(f'/api/products/products/{self.product.id}/customer-price/', {'customer': hotel.id})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['price'], Decimal('480.00'))

    def test_customer_price_needs_known_customer(self):
        self.client.force_authenticate(user=self.rep)
        url = f'/api/products/products/{self.product.id}/customer-price/'

        missing = self.client.get(url)
        unknown = self.client.get(url, {'customer': 9999})

        self.assertEqual(missing.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('customer', missing.data)
        self.assertEqual(unknown.status_code, status.HTTP_400_BAD_REQUEST)


class ProductBulkAPITest(APITestCase):
    """Test creating products in a batch"""

    def setUp(self):
        self.admin = User.objects.create_user(email='admin@farm.test', password='testpass123', role=Role.ADMIN)
        self.rep = User.objects.create_user(email='rep@farm.test', password='testpass123', role=Role.SALES_REP)
        self.category = Category.objects.create(category_name='White Coconut', category_code='WC')
        Product.objects.create(name='Coconut Oil', category=self.category, sku='CO-1')
        self.rows = [
            {'name': 'Desiccated Coconut', 'category': self.category.id, 'sku': 'DC-1',
             'quantity': '40.00', 'price_dealer_cash': '300.00'},
            {'name': 'Coconut Milk', 'category': self.category.id, 'sku': 'CM-1',
             'quantity': '25.00', 'price_hotel_credit': '220.00'},
        ]

    def test_bulk_create_issues_ids_per_row(self):
        self.client.force_authenticate(user=self.admin)
        response = self.client.post('/api/products/products/bulk/', self.rows, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['created'], 2)
        products = response.data['products']
        self.assertEqual([p['product_display_id'] for p in products], ['PRO0002', 'PRO0003'])
        self.assertTrue(products[0]['product_id'].startswith('WC-00002-'))
        self.assertTrue(products[1]['product_id'].startswith('WC-00003-'))
        self.assertEqual(Product.objects.count(), 3)

    def test_invalid_row_rejects_the_batch(self):
        self.rows[1]['sku'] = 'CO-1'
        self.client.force_authenticate(user=self.admin)

        response = self.client.post('/api/products/products/bulk/', self.rows, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data[0], {})
        self.assertIn('sku', response.data[1])
        self.assertEqual(Product.objects.count(), 1)

    def test_failed_save_rolls_back_rows_and_ids(self):
        """Test a row failing at the database undoes earlier rows in the batch"""
        self.rows[1]['sku'] = 'DC-1'
        self.client.force_authenticate(user=self.admin)

        response = self.client.post('/api/products/products/bulk/', self.rows, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Constraint violation')
        self.assertFalse(Product.objects.filter(sku='DC-1').exists())

        retry = self.client.post('/api/products/products/', self.rows[0], format='json')
        self.assertEqual(retry.data['product_display_id'], 'PRO0002')
        self.assertTrue(retry.data['product_id'].startswith('WC-00002-'))

    def test_empty_or_non_list_batch_rejected(self):
        self.client.force_authenticate(user=self.admin)

        empty = self.client.post('/api/products/products/bulk/', [], format='json')
        single = self.client.post('/api/products/products/bulk/', self.rows[0], format='json')

        self.assertEqual(empty.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(single.status_code, status.HTTP_400_BAD_REQUEST)

    def test_sales_rep_cannot_bulk_create(self):
        self.client.force_authenticate(user=self.rep)
        response = self.client.post('/api/products/products/bulk/', self.rows, format='json')

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(Product.objects.count(), 1)
