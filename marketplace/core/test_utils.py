"""
Test utilities and factories for creating test data
"""
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from marketplace.profiles.models import CreatorProfile, BrandProfile, SocialMediaAccount
from marketplace.catalog.models import Package
from marketplace.orders.models import CartItem, Order
from marketplace.support.models import Ticket
from decimal import Decimal
from django.utils import timezone
import random
import string

User = get_user_model()


class TestDataFactory:
    """Factory class for creating test data"""

    @staticmethod
    def random_string(length=10):
        """Generate a random string"""
        return ''.join(random.choices(string.ascii_letters + string.digits, k=length))

    @staticmethod
    def create_user(username=None, email=None, password='testpass123', user_type='creator',
                    name=None, status='active', phone=None, is_staff=False):
        """Create a test user"""
        if not username:
            username = f'testuser_{TestDataFactory.random_string(6)}'
        if not email:
            email = f'{username}@test.com'
        user = User.objects.create_user(
            username=username,
            email=email,
            password=password,
            is_staff=is_staff,
            user_type=user_type,
            name=name or f'Test {username}',
            status=status,
            phone=phone,
            auth_provider='password',
        )
        return user

    @staticmethod
    def create_creator(user=None, city='Mumbai', categories=None, languages=None, **kwargs):
        """Create a creator user with a profile"""
        if not user:
            user = TestDataFactory.create_user(user_type='creator', **kwargs)
        return CreatorProfile.objects.create(
            user=user,
            bio='Lifestyle creator',
            location_city=city,
            location_state='Maharashtra',
            content_categories=categories if categories is not None else ['Fashion'],
            languages=languages if languages is not None else ['English'],
        )

    @staticmethod
    def create_brand(user=None, company_name=None, **kwargs):
        """Create a brand user with a profile"""
        if not user:
            user = TestDataFactory.create_user(user_type='brand', **kwargs)
        return BrandProfile.objects.create(
            user=user,
            company_name=company_name or f'Company_{TestDataFactory.random_string(6)}',
            industry='Fashion',
            business_type='Startup',
        )

    @staticmethod
    def create_social_account(creator, platform='instagram', username=None, follower_count=1000):
        """Create a social media account for a creator"""
        return SocialMediaAccount.objects.create(
            creator=creator,
            platform=platform,
            username=username or f'handle_{TestDataFactory.random_string(6)}',
            follower_count=follower_count,
        )

    @staticmethod
    def create_package(creator=None, title=None, price=None, currency='INR', platform='instagram',
                       revisions=2, delivery_days=7, is_active=True):
        """Create a test package"""
        if not creator:
            creator = TestDataFactory.create_creator()
        return Package.objects.create(
            creator=creator,
            title=title or f'Package_{TestDataFactory.random_string(6)}',
            description='Test package',
            platform=platform,
            content_type='Reel',
            quantity=1,
            revisions=revisions,
            delivery_days=delivery_days,
            price=price if price is not None else Decimal('1000.00'),
            currency=currency,
            is_active=is_active,
        )

    @staticmethod
    def create_agent(email=None, name=None, status='active', user_type='admin'):
        """Create a support agent (or super admin with user_type='super_admin')"""
        return TestDataFactory.create_user(
            email=email,
            name=name or f'Agent {TestDataFactory.random_string(4)}',
            user_type=user_type,
            status=status,
        )

    @staticmethod
    def create_cart_item(user, package, quantity=1):
        """Create a test cart item"""
        return CartItem.objects.create(user=user, package=package, quantity=quantity)

    @staticmethod
    def create_order(brand=None, package=None, status='pending', quantity=1, with_ticket=True, agent=None):
        """Create a test order, with its ticket unless with_ticket is False"""
        if not package:
            package = TestDataFactory.create_package()
        if not brand:
            brand = TestDataFactory.create_brand()
        order = Order.objects.create(
            order_number=f'ORD-TEST-{TestDataFactory.random_string(8).upper()}',
            package=package,
            brand=brand,
            creator=package.creator,
            quantity=quantity,
            unit_price=package.price,
            total_amount=package.price * quantity,
            currency=package.currency,
            status=status,
            order_date=timezone.now(),
            delivery_time=package.delivery_days,
        )
        if with_ticket:
            Ticket.objects.create(
                ticket_number=f'TKT-TEST-{TestDataFactory.random_string(8).upper()}',
                order=order,
                agent=agent,
                stream_channel_id=f'order-{order.id}',
            )
        return order


class AuthenticatedAPIClient(APIClient):
    """APIClient with authentication helper"""

    def authenticate_user(self, user):
        """Authenticate the client with a user"""
        refresh = RefreshToken.for_user(user)
        self.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
        return self

    def logout(self):
        """Remove authentication"""
        self.credentials()
