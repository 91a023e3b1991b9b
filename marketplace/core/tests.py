"""
Test suite for Core module
Tests: phone OTP sign-in, Google sign-in, account endpoints, audit logs, search and helpers
"""
from datetime import timedelta
from unittest import mock

import requests
from django.test import TestCase, override_settings
from django.utils import timezone
from rest_framework import status
from rest_framework_simplejwt.tokens import AccessToken

from marketplace.core.accounts import delete_user_account, create_staff_account, AccountExists
from marketplace.core.integrations import send_sms, verify_google_id_token, GoogleTokenError
from marketplace.core.models import User, PhoneVerification, AuditLog
from marketplace.core.otp import issue_code, verify_code, normalize_phone, is_valid_phone, OTPThrottled, OTPInvalid
from marketplace.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from marketplace.core.utils import create_audit_log, generate_reference
from marketplace.orders.models import Order
from marketplace.support.models import Ticket


def google_response(status_code=200, **claims):
    response = mock.Mock()
    response.status_code = status_code
    payload = {
        'aud': 'client-1',
        'email': 'jane@example.com',
        'email_verified': 'true',
        'name': 'Jane Doe',
        'picture': 'https://example.com/jane.png',
    }
    payload.update(claims)
    response.json.return_value = payload
    return response


class PhoneHelperTests(TestCase):
    """Test phone normalisation and validation"""

    def test_normalize_phone_strips_formatting(self):
        """Spaces, dashes and brackets are removed"""
        self.assertEqual(normalize_phone('+91 (987) 654-3210'), '+919876543210')
        self.assertEqual(normalize_phone(None), '')

    def test_is_valid_phone(self):
        """International numbers are accepted, short or zero-led ones are not"""
        self.assertTrue(is_valid_phone('+919876543210'))
        self.assertFalse(is_valid_phone('12345'))
        self.assertFalse(is_valid_phone('0123456789'))


class OTPTests(TestCase):
    """Test issuing and verifying phone codes"""

    def setUp(self):
        self.phone = '+919876543210'

    def test_issue_code_creates_six_digit_code(self):
        """A new code is six digits and expires in the future"""
        verification, delivered = issue_code(self.phone)
        self.assertEqual(len(verification.code), 6)
        self.assertTrue(verification.code.isdigit())
        self.assertGreater(verification.expires_at, timezone.now())
        self.assertFalse(delivered)

    def test_issue_code_throttles_resend(self):
        """A second code inside the resend window is refused"""
        issue_code(self.phone)
        with self.assertRaises(OTPThrottled) as ctx:
            issue_code(self.phone)
        self.assertGreater(ctx.exception.retry_after, 0)

    def test_verify_code_marks_verified(self):
        """The right code is accepted once"""
        verification, _ = issue_code(self.phone)
        verify_code(self.phone, verification.code)
        verification.refresh_from_db()
        self.assertIsNotNone(verification.verified_at)
        with self.assertRaises(OTPInvalid):
            verify_code(self.phone, verification.code)

    def test_wrong_code_counts_attempt(self):
        """A wrong code is rejected and the attempt is recorded"""
        verification, _ = issue_code(self.phone)
        wrong = '000000' if verification.code != '000000' else '111111'
        with self.assertRaises(OTPInvalid):
            verify_code(self.phone, wrong)
        verification.refresh_from_db()
        self.assertEqual(verification.attempts, 1)

    def test_too_many_attempts_blocks_correct_code(self):
        """After the attempt limit even the right code fails"""
        verification, _ = issue_code(self.phone)
        verification.attempts = 5
        verification.save()
        with self.assertRaises(OTPInvalid):
            verify_code(self.phone, verification.code)

    def test_earlier_live_code_accepted_after_resend(self):
        """An older code that has not expired still works after a resend"""
        now = timezone.now()
        older = PhoneVerification.objects.create(phone=self.phone, code='111111', expires_at=now + timedelta(minutes=8))
        PhoneVerification.objects.filter(pk=older.pk).update(created_at=now - timedelta(minutes=2))
        newer = PhoneVerification.objects.create(phone=self.phone, code='222222', expires_at=now + timedelta(minutes=10))

        verification = verify_code(self.phone, '111111')

        self.assertEqual(verification.pk, older.pk)
        newer.refresh_from_db()
        self.assertIsNone(newer.verified_at)
        self.assertEqual(newer.attempts, 0)

    def test_miss_counts_against_newest_code(self):
        """Wrong codes are recorded on the newest live code"""
        now = timezone.now()
        older = PhoneVerification.objects.create(phone=self.phone, code='111111', expires_at=now + timedelta(minutes=8))
        PhoneVerification.objects.filter(pk=older.pk).update(created_at=now - timedelta(minutes=2))
        newer = PhoneVerification.objects.create(phone=self.phone, code='222222', expires_at=now + timedelta(minutes=10))

        with self.assertRaises(OTPInvalid):
            verify_code(self.phone, '333333')

        newer.refresh_from_db()
        older.refresh_from_db()
        self.assertEqual(newer.attempts, 1)
        self.assertEqual(older.attempts, 0)

    def test_expired_code_rejected(self):
        """Expired codes cannot be used"""
        verification, _ = issue_code(self.phone)
        verification.expires_at = timezone.now() - timedelta(seconds=1)
        verification.save()
        with self.assertRaises(OTPInvalid):
            verify_code(self.phone, verification.code)


class PhoneAuthAPITests(TestCase):
    """Test the phone sign-in endpoints"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.phone = '+919876543210'

    def test_send_code(self):
        """Sending a code returns 200 and stores a verification"""
        response = self.client.post('/api/v1/auth/send-phone-verification-code/', {'phone': self.phone}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(PhoneVerification.objects.filter(phone=self.phone).exists())
        self.assertNotIn('code', response.data)

    def test_send_code_invalid_phone(self):
        """Malformed numbers are rejected"""
        response = self.client.post('/api/v1/auth/send-phone-verification-code/', {'phone': 'abc'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_send_code_throttled(self):
        """A second request inside the resend window returns 429"""
        self.client.post('/api/v1/auth/send-phone-verification-code/', {'phone': self.phone}, format='json')
        response = self.client.post('/api/v1/auth/send-phone-verification-code/', {'phone': self.phone}, format='json')
        self.assertEqual(response.status_code, status.HTTP_429_TOO_MANY_REQUESTS)
        self.assertIn('retry_after', response.data)

    def test_verify_creates_user(self):
        """A correct code signs up a new user with tokens"""
        verification, _ = issue_code(self.phone)
        response = self.client.post('/api/v1/auth/verify-phone-code/', {
            'phone': self.phone,
            'code': verification.code,
            'fullName': 'Asha Rao',
            'userType': 'brand',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(response.data['is_new_user'])
        self.assertIn('access', response.data)
        self.assertIn('refresh', response.data)
        user = User.objects.get(phone=self.phone)
        self.assertEqual(user.user_type, 'brand')
        self.assertEqual(user.name, 'Asha Rao')
        self.assertTrue(user.phone_verified)
        self.assertTrue(AuditLog.objects.filter(action='login', user=user).exists())

    def test_verify_existing_user(self):
        """A returning user gets 200 and keeps their type"""
        TestDataFactory.create_user(user_type='creator', phone=self.phone)
        verification, _ = issue_code(self.phone)
        response = self.client.post('/api/v1/auth/verify-phone-code/', {
            'phone': self.phone,
            'code': verification.code,
            'userType': 'brand',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.data['is_new_user'])
        self.assertEqual(response.data['user']['user_type'], 'creator')
        user = User.objects.get(phone=self.phone)
        self.assertIsNotNone(user.last_login)
        self.assertIsNotNone(response.data['user']['last_login'])

    def test_verify_wrong_code(self):
        """A wrong code returns 400"""
        verification, _ = issue_code(self.phone)
        wrong = '000000' if verification.code != '000000' else '111111'
        response = self.client.post('/api/v1/auth/verify-phone-code/', {'phone': self.phone, 'code': wrong}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_verify_suspended_user(self):
        """Suspended accounts cannot sign in"""
        TestDataFactory.create_user(phone=self.phone, status='suspended')
        verification, _ = issue_code(self.phone)
        response = self.client.post('/api/v1/auth/verify-phone-code/', {'phone': self.phone, 'code': verification.code}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


@override_settings(GOOGLE_CLIENT_IDS=['client-1'])
class GoogleAuthTests(TestCase):
    """Test Google sign-in"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()

    @mock.patch('marketplace.core.integrations.requests.get')
    def test_google_login_creates_user(self, mock_get):
        """A valid token creates a verified account"""
        mock_get.return_value = google_response()
        response = self.client.post('/api/v1/auth/google/', {'idToken': 'token', 'userType': 'creator'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        user = User.objects.get(email='jane@example.com')
        self.assertEqual(user.auth_provider, 'google')
        self.assertEqual(user.name, 'Jane Doe')
        self.assertTrue(user.email_verified)

    @mock.patch('marketplace.core.integrations.requests.get')
    def test_google_login_wrong_audience(self, mock_get):
        """Tokens for another client are rejected"""
        mock_get.return_value = google_response(aud='someone-else')
        response = self.client.post('/api/v1/auth/google/', {'idToken': 'token'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    @mock.patch('marketplace.core.integrations.requests.get')
    def test_google_unverified_email(self, mock_get):
        """Unverified Google emails are rejected"""
        mock_get.return_value = google_response(email_verified='false')
        with self.assertRaises(GoogleTokenError):
            verify_google_id_token('token')

    @mock.patch('marketplace.core.integrations.requests.get')
    def test_google_unreachable(self, mock_get):
        """Network failures surface as token errors"""
        mock_get.side_effect = requests.exceptions.ConnectionError('down')
        with self.assertRaises(GoogleTokenError):
            verify_google_id_token('token')


class SMSTests(TestCase):
    """Test Twilio delivery"""

    def test_not_configured(self):
        """Without credentials nothing is sent"""
        with mock.patch('marketplace.core.integrations.requests.post') as mock_post:
            self.assertFalse(send_sms('+919876543210', 'hi'))
            mock_post.assert_not_called()

    @override_settings(TWILIO_ACCOUNT_SID='AC1', TWILIO_AUTH_TOKEN='secret', TWILIO_FROM_NUMBER='+15550000000')
    @mock.patch('marketplace.core.integrations.requests.post')
    def test_sent(self, mock_post):
        """A 201 from Twilio counts as delivered"""
        mock_post.return_value = mock.Mock(status_code=201, text='')
        self.assertTrue(send_sms('+919876543210', 'hi'))
        args, kwargs = mock_post.call_args
        self.assertIn('AC1', args[0])
        self.assertEqual(kwargs['data']['To'], '+919876543210')

    @override_settings(TWILIO_ACCOUNT_SID='AC1', TWILIO_AUTH_TOKEN='secret', TWILIO_FROM_NUMBER='+15550000000')
    @mock.patch('marketplace.core.integrations.requests.post')
    def test_rejected(self, mock_post):
        """Twilio errors are reported as not delivered"""
        mock_post.return_value = mock.Mock(status_code=400, text='bad number')
        self.assertFalse(send_sms('+919876543210', 'hi'))


class AccountAPITests(TestCase):
    """Test account endpoints"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.user = TestDataFactory.create_user(user_type='brand', email='brand@test.com')
        self.client.authenticate_user(self.user)

    def test_me(self):
        """Current user data includes profile flags"""
        response = self.client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['id'], self.user.id)
        self.assertFalse(response.data['has_brand_profile'])
        self.assertFalse(response.data['is_agent'])

    def test_me_requires_auth(self):
        """Anonymous requests are rejected"""
        self.client.logout()
        response = self.client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_update_name(self):
        """Name is trimmed and saved"""
        response = self.client.post('/api/v1/auth/update-name/', {'name': '  New Name '}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.user.refresh_from_db()
        self.assertEqual(self.user.name, 'New Name')

    def test_update_name_too_short(self):
        """One-character names are rejected"""
        response = self.client.post('/api/v1/auth/update-name/', {'name': 'A'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_check_user_exists(self):
        """Existing emails are reported with their type"""
        response = self.client.post('/api/v1/auth/check-user-exists/', {'email': 'BRAND@test.com'}, format='json')
        self.assertTrue(response.data['exists'])
        self.assertEqual(response.data['user_type'], 'brand')
        response = self.client.post('/api/v1/auth/check-user-exists/', {'email': 'nobody@test.com'}, format='json')
        self.assertFalse(response.data['exists'])

    def test_check_user_exists_requires_input(self):
        """Either phone or email must be sent"""
        response = self.client.post('/api/v1/auth/check-user-exists/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_token_claims(self):
        """Login tokens carry the user type and name"""
        response = self.client.post('/api/v1/auth/login/', {
            'username': self.user.username,
            'password': 'testpass123',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        token = AccessToken(response.data['access'])
        self.assertEqual(token['user_type'], 'brand')
        self.assertEqual(response.data['user']['id'], self.user.id)


class DeleteUserTests(TestCase):
    """Test account deletion cascade"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.creator = TestDataFactory.create_creator()
        self.brand = TestDataFactory.create_brand()
        self.package = TestDataFactory.create_package(creator=self.creator)
        self.order = TestDataFactory.create_order(brand=self.brand, package=self.package)

    def test_delete_creator_removes_orders_and_packages(self):
        """Deleting a creator removes their packages, orders and tickets"""
        self.client.authenticate_user(self.creator.user)
        response = self.client.delete('/api/v1/auth/delete-user/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['deleted']['orders'], 1)
        self.assertFalse(User.objects.filter(pk=self.creator.user.pk).exists())
        self.assertFalse(Order.objects.exists())
        self.assertFalse(Ticket.objects.exists())
        self.assertTrue(User.objects.filter(pk=self.brand.user.pk).exists())

    def test_delete_user_account_summary(self):
        """The helper returns counts of what was removed"""
        summary = delete_user_account(self.brand.user)
        self.assertEqual(summary['orders'], 1)
        self.assertEqual(summary['tickets'], 1)


class StaffAccountTests(TestCase):
    """Test agent and super admin creation"""

    def test_create_agent_without_password(self):
        """Agents without a password cannot use password login"""
        agent = create_staff_account('Agent@Test.com', 'Agent One')
        self.assertEqual(agent.user_type, 'admin')
        self.assertEqual(agent.email, 'agent@test.com')
        self.assertFalse(agent.has_usable_password())
        self.assertTrue(agent.is_agent)

    def test_create_super_admin(self):
        """Super admins get staff access"""
        admin = create_staff_account('boss@test.com', 'Boss', user_type='super_admin', password='longpassword')
        self.assertTrue(admin.is_super_admin)
        self.assertTrue(admin.is_staff)
        self.assertTrue(admin.check_password('longpassword'))

    def test_duplicate_email(self):
        """Existing emails are refused"""
        TestDataFactory.create_user(email='taken@test.com')
        with self.assertRaises(AccountExists):
            create_staff_account('taken@test.com', 'Someone')


class AuditLogTests(TestCase):
    """Test audit log helper and endpoints"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.user = TestDataFactory.create_user()
        self.other = TestDataFactory.create_user()
        self.agent = TestDataFactory.create_agent()

    def test_missing_fields_skipped(self):
        """Entries without an action are not written"""
        self.assertIsNone(create_audit_log(user=self.user, model_name='User', object_id='1'))
        self.assertEqual(AuditLog.objects.count(), 0)

    def test_users_see_only_their_logs(self):
        """Regular users only list their own entries"""
        create_audit_log(user=self.user, action='update', model_name='User', object_id=str(self.user.id))
        create_audit_log(user=self.other, action='update', model_name='User', object_id=str(self.other.id))
        self.client.authenticate_user(self.user)
        response = self.client.get('/api/v1/audit-logs/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 1)

    def test_agents_see_all_logs(self):
        """Agents list every entry"""
        create_audit_log(user=self.user, action='update', model_name='User', object_id=str(self.user.id))
        create_audit_log(user=self.other, action='update', model_name='User', object_id=str(self.other.id))
        self.client.authenticate_user(self.agent)
        response = self.client.get('/api/v1/audit-logs/')
        self.assertEqual(len(response.data), 2)

    def test_detail_permission(self):
        """Another user's entry is forbidden"""
        log = create_audit_log(user=self.other, action='update', model_name='User', object_id=str(self.other.id))
        self.client.authenticate_user(self.user)
        response = self.client.get(f'/api/v1/audit-logs/{log.id}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class ReferenceTests(TestCase):
    """Test reference number generation"""

    def test_format(self):
        """References carry the prefix and today's date"""
        reference = generate_reference('ORD', Order, 'order_number')
        prefix, date_part, suffix = reference.split('-')
        self.assertEqual(prefix, 'ORD')
        self.assertEqual(date_part, timezone.now().strftime('%Y%m%d'))
        self.assertEqual(len(suffix), 8)


class GlobalSearchTests(TestCase):
    """Test global search"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.creator = TestDataFactory.create_creator(name='Priya Sharma')
        self.package = TestDataFactory.create_package(creator=self.creator, title='Sunrise Reel')
        self.brand = TestDataFactory.create_brand()
        self.client.authenticate_user(self.brand.user)

    def test_empty_query(self):
        """An empty query returns empty groups"""
        response = self.client.get('/api/v1/search/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['packages'], [])

    def test_finds_packages_and_creators(self):
        """Matching packages and creators are returned"""
        response = self.client.get('/api/v1/search/', {'q': 'Sunrise'})
        self.assertEqual(len(response.data['packages']), 1)
        response = self.client.get('/api/v1/search/', {'q': 'Priya'})
        self.assertEqual(len(response.data['creators']), 1)
