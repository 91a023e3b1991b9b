"""
Test suite for Profiles module
Tests: onboarding (basic info, preferences), portfolio, KYC, campaigns and creator discovery
"""
from decimal import Decimal
from unittest import mock

from django.test import TestCase, override_settings
from rest_framework import status

from marketplace.core.cache_utils import make_cache_key, invalidate_cache_pattern
from marketplace.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from marketplace.profiles.models import CreatorProfile, BrandProfile, KYC, Campaign, PortfolioItem


class CreatorProfileModelTests(TestCase):
    """Test CreatorProfile helpers"""

    def test_primary_platform_defaults_to_instagram(self):
        """Creators without accounts are listed under instagram"""
        creator = TestDataFactory.create_creator()
        self.assertEqual(creator.primary_platform, 'instagram')

    def test_primary_platform_is_largest_account(self):
        """The account with the most followers wins"""
        creator = TestDataFactory.create_creator()
        TestDataFactory.create_social_account(creator, platform='instagram', follower_count=500)
        TestDataFactory.create_social_account(creator, platform='youtube', follower_count=9000)
        self.assertEqual(creator.primary_platform, 'youtube')


class BasicInfoTests(TestCase):
    """Test the profile setup step"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()

    def test_creator_basic_info_creates_profile(self):
        """A creator's first save creates the profile and advances onboarding"""
        user = TestDataFactory.create_user(user_type='creator')
        self.client.authenticate_user(user)
        response = self.client.post('/api/v1/profile/update-basic-info/', {
            'name': 'Kiran',
            'gender': 'Female',
            'city': 'Pune',
            'state': 'Maharashtra',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        profile = CreatorProfile.objects.get(user=user)
        self.assertEqual(profile.location_city, 'Pune')
        user.refresh_from_db()
        self.assertEqual(user.onboarding_step, 2)
        self.assertEqual(user.name, 'Kiran')

    def test_city_required(self):
        """City is mandatory"""
        user = TestDataFactory.create_user(user_type='creator')
        self.client.authenticate_user(user)
        response = self.client.post('/api/v1/profile/update-basic-info/', {'name': 'Kiran'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_brand_requires_role_and_business_type(self):
        """Brands must give their role and business type"""
        user = TestDataFactory.create_user(user_type='brand')
        self.client.authenticate_user(user)
        response = self.client.post('/api/v1/profile/update-basic-info/', {'city': 'Delhi'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        response = self.client.post('/api/v1/profile/update-basic-info/', {
            'city': 'Delhi', 'role': 'Founder'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_brand_basic_info(self):
        """Brand profile gets role, business type and a normalised website"""
        user = TestDataFactory.create_user(user_type='brand', name='Acme Owner')
        self.client.authenticate_user(user)
        response = self.client.post('/api/v1/profile/update-basic-info/', {
            'city': 'Delhi',
            'role': 'Founder',
            'business_type': 'Startup',
            'website_url': 'acme.example.com',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        brand = BrandProfile.objects.get(user=user)
        self.assertEqual(brand.website_url, 'https://acme.example.com')
        self.assertEqual(brand.company_name, 'Acme Owner')
        self.assertEqual(brand.role_in_organization, 'Founder')

    def test_duplicate_email(self):
        """Emails used by another account are refused"""
        TestDataFactory.create_user(email='used@test.com')
        user = TestDataFactory.create_user(user_type='creator')
        self.client.authenticate_user(user)
        response = self.client.post('/api/v1/profile/update-basic-info/', {
            'city': 'Pune', 'email': 'USED@test.com'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)

    def test_agents_rejected(self):
        """Only creators and brands have onboarding"""
        self.client.authenticate_user(TestDataFactory.create_agent())
        response = self.client.post('/api/v1/profile/update-basic-info/', {'city': 'Pune'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class PreferencesTests(TestCase):
    """Test the preferences step"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()

    def test_creator_preferences(self):
        """Categories, languages and platforms are stored"""
        user = TestDataFactory.create_user(user_type='creator')
        self.client.authenticate_user(user)
        response = self.client.post('/api/v1/profile/update-preferences/', {
            'categories': ['Fashion', 'Travel'],
            'about': 'I make travel reels',
            'languages': ['English', 'Hindi'],
            'platform': ['Instagram', 'youtube'],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        profile = CreatorProfile.objects.get(user=user)
        self.assertEqual(profile.platforms, ['instagram', 'youtube'])
        self.assertEqual(profile.content_categories, ['Fashion', 'Travel'])
        user.refresh_from_db()
        self.assertEqual(user.onboarding_step, 1)

    def test_onboarding_step_never_goes_back(self):
        """Saving preferences after basic info keeps step 2"""
        user = TestDataFactory.create_user(user_type='creator')
        user.onboarding_step = 2
        user.save()
        self.client.authenticate_user(user)
        self.client.post('/api/v1/profile/update-preferences/', {
            'categories': ['Fashion'], 'about': 'Hi there', 'languages': ['English'], 'platform': ['instagram'],
        }, format='json')
        user.refresh_from_db()
        self.assertEqual(user.onboarding_step, 2)

    def test_creator_requires_platform(self):
        """Creators must pick a supported platform"""
        user = TestDataFactory.create_user(user_type='creator')
        self.client.authenticate_user(user)
        payload = {'categories': ['Fashion'], 'about': 'Hi there', 'languages': ['English']}
        response = self.client.post('/api/v1/profile/update-preferences/', payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        payload['platform'] = ['myspace']
        response = self.client.post('/api/v1/profile/update-preferences/', payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_too_many_categories(self):
        """At most five categories"""
        user = TestDataFactory.create_user(user_type='creator')
        self.client.authenticate_user(user)
        response = self.client.post('/api/v1/profile/update-preferences/', {
            'categories': ['a', 'b', 'c', 'd', 'e', 'f'], 'about': 'Hi', 'languages': ['English'], 'platform': ['instagram'],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_brand_preferences_sets_industry(self):
        """A brand's first category becomes its industry"""
        user = TestDataFactory.create_user(user_type='brand')
        self.client.authenticate_user(user)
        response = self.client.post('/api/v1/profile/update-preferences/', {
            'categories': ['E-commerce', 'Retail'], 'about': 'We sell shoes', 'languages': ['English'],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        brand = BrandProfile.objects.get(user=user)
        self.assertEqual(brand.industry, 'E-commerce')
        self.assertEqual(brand.industries, ['E-commerce', 'Retail'])


class PortfolioKYCCampaignTests(TestCase):
    """Test portfolio items, KYC and campaigns"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.creator = TestDataFactory.create_creator()
        self.brand = TestDataFactory.create_brand()

    def test_create_portfolio(self):
        """Creators can add portfolio media"""
        self.client.authenticate_user(self.creator.user)
        response = self.client.post('/api/v1/profile/create-portfolio/', {
            'mediaUrl': 'https://cdn.example.com/reel.mp4',
            'mediaType': 'video',
            'fileName': 'reel.mp4',
            'fileSize': 2048,
            'mimeType': 'video/mp4',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(PortfolioItem.objects.filter(creator=self.creator).count(), 1)

    def test_portfolio_without_profile(self):
        """Users without a profile get 404"""
        self.client.authenticate_user(TestDataFactory.create_user(user_type='creator'))
        response = self.client.post('/api/v1/profile/create-portfolio/', {
            'mediaUrl': 'https://cdn.example.com/a.png', 'mediaType': 'image',
            'fileName': 'a.png', 'fileSize': 1, 'mimeType': 'image/png',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_submit_kyc_and_resubmit(self):
        """KYC is created pending and replaced on resubmission"""
        self.client.authenticate_user(self.creator.user)
        payload = {
            'documentType': 'pan',
            'documentNumber': 'ABCDE1234F',
            'frontImageUrl': 'https://cdn.example.com/front.png',
            'backImageUrl': 'https://cdn.example.com/back.png',
        }
        response = self.client.post('/api/v1/profile/submit-kyc/', payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        kyc = KYC.objects.get(creator=self.creator)
        kyc.status = 'rejected'
        kyc.save()
        response = self.client.post('/api/v1/profile/submit-kyc/', payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        kyc.refresh_from_db()
        self.assertEqual(kyc.status, 'pending')
        self.assertEqual(kyc.document_type, 'PAN')

    def test_ekyc_requires_uid(self):
        """eKYC needs Aadhaar data with a uid"""
        self.client.authenticate_user(self.creator.user)
        response = self.client.post('/api/v1/profile/submit-kyc/', {'documentType': 'ekyc', 'aadhaarData': {}}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        response = self.client.post('/api/v1/profile/submit-kyc/', {
            'documentType': 'ekyc', 'aadhaarData': {'uid': '123412341234', 'name': 'K'}
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(KYC.objects.get(creator=self.creator).document_number, '123412341234')

    def test_brand_cannot_submit_kyc(self):
        """KYC is creator only"""
        self.client.authenticate_user(self.brand.user)
        response = self.client.post('/api/v1/profile/submit-kyc/', {'documentType': 'pan'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_create_campaign(self):
        """Brands can publish campaigns"""
        self.client.authenticate_user(self.brand.user)
        response = self.client.post('/api/v1/profile/create-campaign/', {
            'title': 'Diwali launch',
            'description': 'Festive reels',
            'budget': '50000.00',
            'duration': '2 weeks',
            'requirements': '3 reels',
            'targetAudience': '18-30',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        campaign = Campaign.objects.get(brand=self.brand)
        self.assertEqual(campaign.budget_max, Decimal('50000.00'))

    def test_campaign_budget_range(self):
        """Maximum budget cannot be below the budget"""
        self.client.authenticate_user(self.brand.user)
        response = self.client.post('/api/v1/profile/create-campaign/', {
            'title': 'Launch', 'description': 'x', 'budget': '100', 'budgetMax': '50',
            'duration': '1 week', 'requirements': 'x', 'targetAudience': 'x',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_my_profile(self):
        """The profile endpoint returns the role profile"""
        self.client.authenticate_user(self.creator.user)
        response = self.client.get('/api/v1/profile/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['creator_profile']['id'], self.creator.id)
        self.assertIsNone(response.data['brand_profile'])


class CreatorDiscoveryTests(TestCase):
    """Test creator listings"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(TestDataFactory.create_brand().user)
        self.insta = TestDataFactory.create_creator(city='Mumbai', categories=['Fashion'])
        TestDataFactory.create_social_account(self.insta, platform='instagram', follower_count=5000)
        self.youtuber = TestDataFactory.create_creator(city='Chennai', categories=['Tech'], languages=['Tamil'])
        TestDataFactory.create_social_account(self.youtuber, platform='youtube', follower_count=200000)
        self.no_accounts = TestDataFactory.create_creator(city='Goa', categories=['Travel'])
        self.suspended = TestDataFactory.create_creator(status='suspended')

    def test_grouped_listing(self):
        """Creators are grouped by platform; no accounts means instagram"""
        response = self.client.get('/api/v1/profile/creators/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        instagram_ids = {c['id'] for c in response.data['instagram']}
        youtube_ids = {c['id'] for c in response.data['youtube']}
        self.assertEqual(instagram_ids, {self.insta.id, self.no_accounts.id})
        self.assertEqual(youtube_ids, {self.youtuber.id})

    def test_platform_listing_filters(self):
        """Platform listings support category, language and follower filters"""
        response = self.client.get('/api/v1/profile/creators/youtube/', {'language': 'Tamil'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 1)
        response = self.client.get('/api/v1/profile/creators/instagram/', {'category': 'Fashion'})
        self.assertEqual([c['id'] for c in response.data['results']], [self.insta.id])
        response = self.client.get('/api/v1/profile/creators/youtube/', {'min_followers': 300000})
        self.assertEqual(response.data['count'], 0)

    def test_invalid_platform(self):
        """Unknown platforms return 400"""
        response = self.client.get('/api/v1/profile/creators/myspace/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_suspended_creator_hidden(self):
        """Suspended creators are not visible"""
        response = self.client.get(f'/api/v1/profile/creator/{self.suspended.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_detail_by_platform(self):
        """Platform detail includes the matching account"""
        response = self.client.get(f'/api/v1/profile/creators/youtube/{self.youtuber.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['platform_account']['platform'], 'youtube')

    def test_industries_public(self):
        """The industry list needs no login"""
        self.client.logout()
        response = self.client.get('/api/v1/profile/industries/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('IT & Technology', response.data['industries'])


class CacheUtilsTests(TestCase):
    """Test cache helpers"""

    def test_cache_key_is_stable(self):
        """Same arguments give the same key regardless of kwarg order"""
        self.assertEqual(make_cache_key('p', 1, a=1, b=2), make_cache_key('p', 1, b=2, a=1))
        self.assertNotEqual(make_cache_key('p', 1), make_cache_key('p', 2))

    def test_invalidate_without_redis(self):
        """Pattern invalidation is skipped on non-Redis caches"""
        with mock.patch('marketplace.core.cache_utils.redis_cache_enabled', return_value=False):
            self.assertEqual(invalidate_cache_pattern('creators_list'), 0)

    @override_settings(MARKETPLACE={'CREATORS_CACHE_TTL': 7})
    def test_listing_ttl_read_at_call_time(self):
        """The grouped listing is cached with the TTL configured when it runs"""
        from marketplace.profiles.views import creators_by_platform

        with mock.patch('marketplace.core.cache_utils.cache') as fake_cache:
            fake_cache.get.return_value = None
            creators_by_platform()
        self.assertEqual(fake_cache.set.call_args[0][2], 7)
