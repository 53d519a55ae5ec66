from django.db import IntegrityError, transaction
from django.test import TestCase
from rest_framework.test import APITestCase
from rest_framework import status

from .models import Role, User


class UserModelTest(TestCase):
    """Test the custom User model"""

    def setUp(self):
        self.user_data = {
            'email': 'test@farm.test',
            'first_name': 'Test',
            'last_name': 'User',
            'password': 'testpass123'
        }

    def test_create_user(self):
        """Test creating a regular user"""
        user = User.objects.create_user(**self.user_data)

        self.assertEqual(user.email, 'test@farm.test')
        self.assertEqual(user.role, Role.SALES_REP)  # default
        self.assertTrue(user.first_login)
        self.assertTrue(user.check_password('testpass123'))
        self.assertFalse(user.is_staff)

    def test_create_superuser(self):
        """Test creating a superuser makes a Super Admin"""
        user = User.objects.create_superuser(email='root@farm.test', password='testpass123')

        self.assertEqual(user.role, Role.SUPER_ADMIN)
        self.assertTrue(user.is_staff)
        self.assertTrue(user.is_superuser)
        self.assertFalse(user.first_login)

    def test_email_required(self):
        """Test creating a user without an email fails"""
        with self.assertRaises(ValueError):
            User.objects.create_user(email='', password='testpass123')

    def test_display_name(self):
        """Test display name falls back to the email local part"""
        named = User.objects.create_user(**self.user_data)
        unnamed = User.objects.create_user(email='guard@farm.test', password='testpass123')

        self.assertEqual(named.display_name, 'Test User')
        self.assertEqual(unnamed.display_name, 'guard')

    def test_unknown_role_rejected_by_database(self):
        """Test the role check constraint"""
        with self.assertRaises(IntegrityError), transaction.atomic():
            User.objects.create_user(email='x@farm.test', password='testpass123', role='Janitor')

    def test_has_role(self):
        user = User.objects.create_user(email='om@farm.test', password='testpass123', role=Role.ORDER_MANAGER)
        self.assertTrue(user.has_role(Role.ADMIN, Role.ORDER_MANAGER))
        self.assertFalse(user.has_role(Role.ADMIN))


class AuthenticationAPITest(APITestCase):
    """Test login, profile and password change"""

    def setUp(self):
        self.user = User.objects.create_user(
            email='rep@farm.test', password='testpass123', first_name='Ravi', last_name='Perera'
        )

    def test_login_returns_user_and_tokens(self):
        response = self.client.post('/api/auth/login/', {
            'email': 'rep@farm.test', 'password': 'testpass123'
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access', response.data['tokens'])
        self.assertIn('refresh', response.data['tokens'])
        self.assertEqual(response.data['user']['role'], Role.SALES_REP)
        self.assertEqual(response.data['user']['username'], 'Ravi Perera')

    def test_login_with_wrong_password(self):
        response = self.client.post('/api/auth/login/', {
            'email': 'rep@farm.test', 'password': 'wrong'
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_inactive_user_cannot_login(self):
        self.user.is_active = False
        self.user.save()

        response = self.client.post('/api/auth/login/', {
            'email': 'rep@farm.test', 'password': 'testpass123'
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_token_authenticates_profile_request(self):
        """Test the access token from login works on protected endpoints"""
        login = self.client.post('/api/auth/login/', {
            'email': 'rep@farm.test', 'password': 'testpass123'
        }, format='json')
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {login.data['tokens']['access']}")

        response = self.client.get('/api/auth/profile/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['email'], 'rep@farm.test')

    def test_profile_requires_authentication(self):
        response = self.client.get('/api/auth/profile/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_change_password_clears_first_login(self):
        self.client.force_authenticate(user=self.user)
        response = self.client.post('/api/auth/change-password/', {
            'current_password': 'testpass123', 'new_password': 'FreshHarvest#2025'
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.user.refresh_from_db()
        self.assertFalse(self.user.first_login)
        self.assertTrue(self.user.check_password('FreshHarvest#2025'))

    def test_change_password_checks_current_password(self):
        self.client.force_authenticate(user=self.user)
        response = self.client.post('/api/auth/change-password/', {
            'current_password': 'nope', 'new_password': 'FreshHarvest#2025'
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class UserManagementAPITest(APITestCase):
    """Test that only a Super Admin manages users"""

    def setUp(self):
        self.super_admin = User.objects.create_user(
            email='super@farm.test', password='testpass123', role=Role.SUPER_ADMIN
        )
        self.admin = User.objects.create_user(email='admin@farm.test', password='testpass123', role=Role.ADMIN)

    def test_super_admin_creates_user(self):
        self.client.force_authenticate(user=self.super_admin)
        response = self.client.post('/api/auth/users/', {
            'email': 'guard@farm.test',
            'first_name': 'Gate',
            'last_name': 'Keeper',
            'role': Role.SECURITY_GUARD,
            'password': 'FreshHarvest#2025',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        guard = User.objects.get(email='guard@farm.test')
        self.assertEqual(guard.role, Role.SECURITY_GUARD)
        self.assertTrue(guard.first_login)
        self.assertNotIn('password', response.data)

    def test_new_user_needs_password(self):
        self.client.force_authenticate(user=self.super_admin)
        response = self.client.post('/api/auth/users/', {
            'email': 'nopass@farm.test', 'role': Role.SALES_REP,
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_admin_cannot_create_users(self):
        self.client.force_authenticate(user=self.admin)
        response = self.client.post('/api/auth/users/', {
            'email': 'rep2@farm.test', 'role': Role.SALES_REP, 'password': 'FreshHarvest#2025',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_any_user_can_list_users(self):
        self.client.force_authenticate(user=self.admin)
        response = self.client.get('/api/auth/users/', {'role': Role.ADMIN})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 1)

    def test_super_admin_cannot_delete_self(self):
        self.client.force_authenticate(user=self.super_admin)
        response = self.client.delete(f'/api/auth/users/{self.super_admin.id}/')

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertTrue(User.objects.filter(pk=self.super_admin.pk).exists())

    def test_super_admin_deletes_other_user(self):
        self.client.force_authenticate(user=self.super_admin)
        response = self.client.delete(f'/api/auth/users/{self.admin.id}/')

        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(User.objects.filter(pk=self.admin.pk).exists())

    def test_password_reset_by_super_admin_forces_first_login(self):
        self.admin.first_login = False
        self.admin.save()
        self.client.force_authenticate(user=self.super_admin)

        response = self.client.patch(f'/api/auth/users/{self.admin.id}/', {
            'password': 'FreshHarvest#2025'
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.admin.refresh_from_db()
        self.assertTrue(self.admin.first_login)
        self.assertTrue(self.admin.check_password('FreshHarvest#2025'))
