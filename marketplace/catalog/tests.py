"""
Test suite for Catalog module
Tests: package browsing, creation, ownership rules and soft deletion
"""
from decimal import Decimal

from django.test import TestCase, override_settings
from rest_framework import status

from marketplace.catalog.models import Package, default_currency
from marketplace.core.models import AuditLog
from marketplace.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from marketplace.orders.models import CartItem


class PackageModelTests(TestCase):
    """Test Package defaults"""

    def test_default_currency(self):
        """New packages default to INR"""
        self.assertEqual(default_currency(), 'INR')
        creator = TestDataFactory.create_creator()
        package = Package.objects.create(creator=creator, title='Story', price=Decimal('10.00'))
        self.assertEqual(package.currency, 'INR')

    @override_settings(MARKETPLACE={'DEFAULT_CURRENCY': 'USD'})
    def test_default_currency_setting(self):
        """The default follows the marketplace setting"""
        self.assertEqual(default_currency(), 'USD')


class PackageListTests(TestCase):
    """Test browsing packages"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.creator = TestDataFactory.create_creator()
        self.reel = TestDataFactory.create_package(creator=self.creator, title='Instagram Reel', price=Decimal('5000.00'))
        self.video = TestDataFactory.create_package(creator=self.creator, title='YouTube Video', platform='youtube', price=Decimal('20000.00'))
        self.hidden = TestDataFactory.create_package(creator=self.creator, title='Old offer', is_active=False)

    def test_list_is_public_and_active_only(self):
        """Anonymous users see active packages"""
        response = self.client.get('/api/v1/packages/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 2)
        ids = {p['id'] for p in response.data['results']}
        self.assertNotIn(self.hidden.id, ids)

    def test_filters(self):
        """Platform, price and search filters narrow the list"""
        response = self.client.get('/api/v1/packages/', {'platform': 'youtube'})
        self.assertEqual([p['id'] for p in response.data['results']], [self.video.id])
        response = self.client.get('/api/v1/packages/', {'max_price': '10000'})
        self.assertEqual([p['id'] for p in response.data['results']], [self.reel.id])
        response = self.client.get('/api/v1/packages/', {'search': 'youtube video'})
        self.assertEqual(response.data['count'], 1)

    def test_pagination(self):
        """limit and offset page through results"""
        response = self.client.get('/api/v1/packages/', {'limit': 1, 'offset': 1})
        self.assertEqual(response.data['count'], 2)
        self.assertEqual(len(response.data['results']), 1)
        response = self.client.get('/api/v1/packages/', {'limit': 'x'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_suspended_creator_packages_hidden(self):
        """Packages of suspended creators are not listed"""
        self.creator.user.status = 'suspended'
        self.creator.user.save()
        response = self.client.get('/api/v1/packages/')
        self.assertEqual(response.data['count'], 0)

    def test_inactive_detail_only_for_owner(self):
        """Inactive packages are visible to their owner only"""
        response = self.client.get(f'/api/v1/packages/{self.hidden.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.client.authenticate_user(self.creator.user)
        response = self.client.get(f'/api/v1/packages/{self.hidden.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_my_packages(self):
        """Creators list all their packages including inactive ones"""
        self.client.authenticate_user(self.creator.user)
        response = self.client.get('/api/v1/packages/mine/')
        self.assertEqual(len(response.data), 3)


class PackageWriteTests(TestCase):
    """Test creating, updating and deleting packages"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.creator = TestDataFactory.create_creator()
        self.other_creator = TestDataFactory.create_creator()
        self.brand = TestDataFactory.create_brand()

    def test_create_package(self):
        """Creators create packages with an uppercased currency"""
        self.client.authenticate_user(self.creator.user)
        response = self.client.post('/api/v1/packages/', {
            'title': 'Reel + Story',
            'platform': 'instagram',
            'content_type': 'Reel',
            'price': '7500.00',
            'currency': 'inr',
            'revisions': 2,
            'delivery_days': 5,
            'deliverables': ['1 reel', '2 stories'],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        package = Package.objects.get(pk=response.data['id'])
        self.assertEqual(package.creator, self.creator)
        self.assertEqual(package.currency, 'INR')
        self.assertTrue(AuditLog.objects.filter(model_name='Package', action='create').exists())

    def test_create_requires_creator(self):
        """Anonymous users and brands cannot create packages"""
        payload = {'title': 'X', 'price': '1.00'}
        response = self.client.post('/api/v1/packages/', payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.client.authenticate_user(self.brand.user)
        response = self.client.post('/api/v1/packages/', payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_create_validation(self):
        """Negative prices and bad currencies are rejected"""
        self.client.authenticate_user(self.creator.user)
        response = self.client.post('/api/v1/packages/', {'title': 'X', 'price': '-1'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        response = self.client.post('/api/v1/packages/', {'title': 'X', 'price': '1', 'currency': 'RUPEE'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_update_own_package(self):
        """Owners can patch their packages"""
        package = TestDataFactory.create_package(creator=self.creator)
        self.client.authenticate_user(self.creator.user)
        response = self.client.patch(f'/api/v1/packages/{package.id}/', {'price': '1500.00'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        package.refresh_from_db()
        self.assertEqual(package.price, Decimal('1500.00'))

    def test_update_other_package_forbidden(self):
        """Other creators cannot modify a package"""
        package = TestDataFactory.create_package(creator=self.creator)
        self.client.authenticate_user(self.other_creator.user)
        response = self.client.patch(f'/api/v1/packages/{package.id}/', {'price': '1.00'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_delete_unordered_package(self):
        """Packages without orders are removed"""
        package = TestDataFactory.create_package(creator=self.creator)
        self.client.authenticate_user(self.creator.user)
        response = self.client.delete(f'/api/v1/packages/{package.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Package.objects.filter(pk=package.id).exists())

    def test_delete_ordered_package_deactivates(self):
        """Packages with orders are deactivated and dropped from carts"""
        package = TestDataFactory.create_package(creator=self.creator)
        TestDataFactory.create_order(brand=self.brand, package=package)
        TestDataFactory.create_cart_item(self.brand.user, package)
        self.client.authenticate_user(self.creator.user)
        response = self.client.delete(f'/api/v1/packages/{package.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['deactivated'])
        package.refresh_from_db()
        self.assertFalse(package.is_active)
        self.assertFalse(CartItem.objects.filter(package=package).exists())
