from django.test import TestCase
from rest_framework.test import APITestCase
from rest_framework import status

from accounts.models import Role, User
from .models import ContactPerson, Customer


class CustomerModelTest(TestCase):
    """Test Customer model functionality"""

    def test_customer_display_ids_are_sequential(self):
        first = Customer.objects.create(name='Green Grocers', address='Kandy', phone_number='0711111111')
        second = Customer.objects.create(name='Hill Hotel', address='Ella', phone_number='0722222222')

        self.assertEqual(first.customer_display_id, 'CUS0001')
        self.assertEqual(second.customer_display_id, 'CUS0002')

    def test_vat_registration_flag(self):
        customer = Customer(name='Lagoon Hotel', vat_status='VAT', tin_number='TIN-1')
        self.assertTrue(customer.is_vat_registered)
        self.assertFalse(Customer(name='Corner Shop').is_vat_registered)


class CustomerAPITest(APITestCase):
    """Test customer endpoints and their role policy"""

    def setUp(self):
        self.admin = User.objects.create_user(email='admin@farm.test', password='testpass123', role=Role.ADMIN)
        self.rep = User.objects.create_user(email='rep@farm.test', password='testpass123', role=Role.SALES_REP)
        self.guard = User.objects.create_user(email='guard@farm.test', password='testpass123', role=Role.SECURITY_GUARD)
        self.customer = Customer.objects.create(
            name='Green Grocers', address='Kandy', phone_number='0711111111', email='orders@greengrocers.test'
        )
        self.customer_data = {
            'name': 'Lagoon Hotel',
            'address': 'Negombo',
            'phone_number': '0771234567',
            'customer_category': 'Hotel',
            'type': 'Credit',
            'contact_persons': [
                {'name': 'Nimal', 'phone_number': '0770000001'},
                {'name': 'Kamala', 'phone_number': '0770000002'},
            ],
        }

    def test_sales_rep_creates_customer_with_contacts(self):
        self.client.force_authenticate(user=self.rep)
        response = self.client.post('/api/customers/customers/', self.customer_data, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['customer_display_id'], 'CUS0002')
        self.assertEqual(len(response.data['contact_persons']), 2)
        self.assertEqual(response.data['total_orders'], 0)

    def test_security_guard_cannot_create_customer(self):
        self.client.force_authenticate(user=self.guard)
        response = self.client.post('/api/customers/customers/', self.customer_data, format='json')

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_vat_customer_needs_tin(self):
        self.client.force_authenticate(user=self.admin)
        response = self.client.post('/api/customers/customers/', {
            **self.customer_data, 'vat_status': 'VAT'
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('tin_number', response.data)

    def test_tin_cleared_for_non_vat_customer(self):
        self.client.force_authenticate(user=self.admin)
        response = self.client.post('/api/customers/customers/', {
            **self.customer_data, 'vat_status': 'Non-VAT', 'tin_number': 'TIN-99'
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['tin_number'], '')

    def test_update_replaces_contact_persons(self):
        ContactPerson.objects.create(customer=self.customer, name='Old Contact', phone_number='0700000000')
        self.client.force_authenticate(user=self.rep)

        response = self.client.patch(f'/api/customers/customers/{self.customer.id}/', {
            'contact_persons': [{'name': 'New Contact', 'phone_number': '0700000009'}]
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        names = list(self.customer.contact_persons.values_list('name', flat=True))
        self.assertEqual(names, ['New Contact'])

    def test_only_admins_delete_customers(self):
        self.client.force_authenticate(user=self.rep)
        rep_response = self.client.delete(f'/api/customers/customers/{self.customer.id}/')
        self.assertEqual(rep_response.status_code, status.HTTP_403_FORBIDDEN)

        self.client.force_authenticate(user=self.admin)
        admin_response = self.client.delete(f'/api/customers/customers/{self.customer.id}/')
        self.assertEqual(admin_response.status_code, status.HTTP_204_NO_CONTENT)

    def test_search_customers(self):
        Customer.objects.create(name='Hill Hotel', address='Ella', phone_number='0722222222')
        self.client.force_authenticate(user=self.guard)

        response = self.client.get('/api/customers/customers/', {'search': 'greengrocers'})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['name'], 'Green Grocers')

    def test_bulk_create_customers_with_contacts(self):
        self.client.force_authenticate(user=self.rep)
        response = self.client.post('/api/customers/customers/bulk/', [
            self.customer_data,
            {'name': 'Hill Hotel', 'address': 'Ella', 'phone_number': '0722222222',
             'vat_status': 'VAT', 'tin_number': 'TIN-7'},
        ], format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['created'], 2)
        customers = response.data['customers']
        self.assertEqual([c['customer_display_id'] for c in customers], ['CUS0002', 'CUS0003'])
        self.assertEqual(len(customers[0]['contact_persons']), 2)
        self.assertEqual(ContactPerson.objects.filter(customer__name='Lagoon Hotel').count(), 2)

    def test_bulk_create_rejects_whole_batch_on_bad_row(self):
        self.client.force_authenticate(user=self.admin)
        response = self.client.post('/api/customers/customers/bulk/', [
            self.customer_data,
            {'name': 'Hill Hotel', 'address': 'Ella', 'phone_number': '0722222222', 'vat_status': 'VAT'},
        ], format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('tin_number', response.data[1])
        self.assertEqual(Customer.objects.count(), 1)
        self.assertFalse(ContactPerson.objects.exists())

        retry = self.client.post('/api/customers/customers/', self.customer_data, format='json')
        self.assertEqual(retry.data['customer_display_id'], 'CUS0002')

    def test_security_guard_cannot_bulk_create(self):
        self.client.force_authenticate(user=self.guard)
        response = self.client.post('/api/customers/customers/bulk/', [self.customer_data], format='json')

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
