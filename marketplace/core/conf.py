"""Access to the MARKETPLACE settings block with built-in defaults"""
from django.conf import settings

DEFAULTS = {
    'DEFAULT_CURRENCY': 'INR',
    'OTP_LENGTH': 6,
    'OTP_TTL_SECONDS': 600,
    'OTP_RESEND_SECONDS': 60,
    'OTP_MAX_ATTEMPTS': 5,
    'CHECKOUT_DUPLICATE_WINDOW_SECONDS': 300,
    'CREATORS_CACHE_TTL': 120,
}


def get_setting(name):
    overrides = getattr(settings, 'MARKETPLACE', {}) or {}
    if name in overrides:
        return overrides[name]
    return DEFAULTS[name]
