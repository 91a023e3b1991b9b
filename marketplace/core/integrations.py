"""
Outbound calls to third-party identity services.
SMS delivery goes through the Twilio REST API and Google sign-in tokens are
checked against Google's tokeninfo endpoint.
"""
import logging
from typing import Optional, Dict, Any

import requests
from django.conf import settings

logger = logging.getLogger(__name__)

TWILIO_MESSAGES_URL = 'https://api.twilio.com/2010-04-01/Accounts/{sid}/Messages.json'
GOOGLE_TOKENINFO_URL = 'https://oauth2.googleapis.com/tokeninfo'

REQUEST_TIMEOUT = 10


class GoogleTokenError(Exception):
    """Raised when a Google ID token cannot be verified"""


def twilio_configured() -> bool:
    return bool(
        getattr(settings, 'TWILIO_ACCOUNT_SID', '')
        and getattr(settings, 'TWILIO_AUTH_TOKEN', '')
        and getattr(settings, 'TWILIO_FROM_NUMBER', '')
    )


def send_sms(phone: str, body: str) -> bool:
    """
    Send a text message through Twilio.

    Returns True when Twilio accepted the message. Delivery failures are
    logged and reported as False so callers can decide how to respond.
    """
    if not twilio_configured():
        logger.info(f"Twilio not configured, SMS to {phone} not sent")
        return False

    url = TWILIO_MESSAGES_URL.format(sid=settings.TWILIO_ACCOUNT_SID)
    try:
        response = requests.post(
            url,
            data={
                'To': phone,
                'From': settings.TWILIO_FROM_NUMBER,
                'Body': body,
            },
            auth=(settings.TWILIO_ACCOUNT_SID, settings.TWILIO_AUTH_TOKEN),
            timeout=REQUEST_TIMEOUT,
        )
    except requests.exceptions.RequestException as e:
        logger.error(f"Failed to send SMS to {phone}: {str(e)}")
        return False

    if response.status_code >= 400:
        logger.error(f"Twilio rejected SMS to {phone}: {response.status_code} {response.text[:200]}")
        return False

    logger.info(f"SMS sent to {phone}")
    return True


def verify_google_id_token(id_token: str) -> Dict[str, Any]:
    """
    Verify a Google ID token and return its claims.

    Raises GoogleTokenError if Google rejects the token, the audience is not
    one of GOOGLE_CLIENT_IDS, or the email is not verified.
    """
    if not id_token:
        raise GoogleTokenError('ID token is required')

    try:
        response = requests.get(
            GOOGLE_TOKENINFO_URL,
            params={'id_token': id_token},
            timeout=REQUEST_TIMEOUT,
        )
    except requests.exceptions.RequestException as e:
        logger.error(f"Google token verification request failed: {str(e)}")
        raise GoogleTokenError('Could not reach Google to verify token') from e

    if response.status_code != 200:
        raise GoogleTokenError('Invalid Google token')

    claims = response.json()
    allowed_audiences = getattr(settings, 'GOOGLE_CLIENT_IDS', []) or []
    if allowed_audiences and claims.get('aud') not in allowed_audiences:
        raise GoogleTokenError('Token was issued for a different client')

    if str(claims.get('email_verified', '')).lower() != 'true':
        raise GoogleTokenError('Google email is not verified')

    return claims


def google_display_name(claims: Dict[str, Any]) -> Optional[str]:
    name = claims.get('name')
    if name:
        return name
    parts = [claims.get('given_name'), claims.get('family_name')]
    joined = ' '.join(p for p in parts if p)
    return joined or None
