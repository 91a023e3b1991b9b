"""
Stream Chat user tokens.

Stream authenticates client connections with an HS256 JWT whose only
required claim is `user_id`, signed with the app's API secret.
"""
import logging
from datetime import timedelta
from typing import Optional

import jwt
from django.conf import settings
from django.utils import timezone

logger = logging.getLogger(__name__)


def stream_configured() -> bool:
    return bool(getattr(settings, 'STREAM_API_KEY', '') and getattr(settings, 'STREAM_API_SECRET', ''))


def stream_user_id(user) -> str:
    return str(user.id)


def create_user_token(user_id: str, expires_in: Optional[timedelta] = None) -> str:
    """Sign a Stream Chat token for `user_id`"""
    payload = {'user_id': user_id}
    if expires_in is not None:
        now = timezone.now()
        payload['iat'] = int(now.timestamp())
        payload['exp'] = int((now + expires_in).timestamp())
    return jwt.encode(payload, settings.STREAM_API_SECRET, algorithm='HS256')
