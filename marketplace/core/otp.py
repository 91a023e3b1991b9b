"""Phone one-time passcodes: issuing, throttling and verification"""
import logging
import re
import secrets
from datetime import timedelta

from django.db import transaction
from django.utils import timezone

from .conf import get_setting
from .integrations import send_sms
from .models import PhoneVerification

logger = logging.getLogger(__name__)

PHONE_PATTERN = re.compile(r'^\+?[1-9]\d{6,14}$')


class OTPError(Exception):
    """Base class for passcode failures"""


class OTPThrottled(OTPError):
    def __init__(self, retry_after):
        super().__init__(f'Please wait {retry_after} seconds before requesting a new code')
        self.retry_after = retry_after


class OTPInvalid(OTPError):
    pass


def normalize_phone(phone):
    """Strip spaces, dashes and brackets; returns '' for empty input"""
    if not phone:
        return ''
    return re.sub(r'[\s\-()]', '', str(phone))


def is_valid_phone(phone):
    return bool(PHONE_PATTERN.match(normalize_phone(phone)))


def generate_code(length=None):
    length = length or get_setting('OTP_LENGTH')
    return ''.join(secrets.choice('0123456789') for _ in range(length))


def issue_code(phone):
    """
    Create a new code for `phone` and try to deliver it.

    Returns (verification, delivered). Raises OTPThrottled when a code was
    issued for the same phone within OTP_RESEND_SECONDS.
    """
    phone = normalize_phone(phone)
    now = timezone.now()
    resend_window = get_setting('OTP_RESEND_SECONDS')

    latest = PhoneVerification.objects.filter(phone=phone).order_by('-created_at').first()
    if latest and latest.created_at > now - timedelta(seconds=resend_window):
        elapsed = int((now - latest.created_at).total_seconds())
        raise OTPThrottled(max(resend_window - elapsed, 1))

    verification = PhoneVerification.objects.create(
        phone=phone,
        code=generate_code(),
        expires_at=now + timedelta(seconds=get_setting('OTP_TTL_SECONDS')),
    )
    ttl_minutes = get_setting('OTP_TTL_SECONDS') // 60
    delivered = send_sms(
        phone,
        f"Your verification code is {verification.code}. It expires in {ttl_minutes} minutes."
    )
    if not delivered:
        logger.info(f"Verification code for {phone} created without SMS delivery")
    return verification, delivered


def verify_code(phone, code):
    """
    Find the newest live code for `phone` matching `code` and mark it verified.

    Any unverified, unexpired code matches, so a resend does not void an
    earlier code. Misses count against the newest live code; once it is
    exhausted every attempt is refused until a new code is issued.

    Raises OTPInvalid for unknown, expired, exhausted or wrong codes.
    """
    phone = normalize_phone(phone)
    now = timezone.now()
    error = None
    with transaction.atomic():
        live = (
            PhoneVerification.objects.select_for_update()
            .filter(phone=phone, verified_at__isnull=True, expires_at__gt=now)
            .order_by('-created_at')
        )
        newest = live.first()
        verification = live.filter(code=str(code)).first() if newest else None
        if newest is None:
            error = 'Invalid or expired verification code'
        elif newest.attempts >= get_setting('OTP_MAX_ATTEMPTS'):
            error = 'Too many failed attempts. Please request a new code'
        elif verification is None:
            # The failed attempt must be committed, so raise outside the block
            newest.attempts += 1
            newest.save(update_fields=['attempts'])
            error = 'Invalid or expired verification code'
        else:
            verification.verified_at = now
            verification.save(update_fields=['verified_at'])

    if error:
        raise OTPInvalid(error)
    return verification
