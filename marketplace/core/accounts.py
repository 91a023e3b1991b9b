"""Account lifecycle helpers shared by the API and management commands"""
import logging

from django.contrib.auth import get_user_model
from django.db import transaction
from django.db.models import Q

from .models import PhoneVerification
from .utils import generate_username

User = get_user_model()

logger = logging.getLogger(__name__)


def get_or_create_phone_user(phone, user_type='creator', name=None):
    """
    Find the account owning `phone` or create it.

    Returns (user, created). Existing accounts keep their user_type; a
    provided name is only applied to accounts that have none yet.
    """
    user = User.objects.filter(phone=phone).first()
    if user:
        changed = []
        if not user.phone_verified:
            user.phone_verified = True
            changed.append('phone_verified')
        if name and not user.name:
            user.name = name
            changed.append('name')
        if changed:
            user.save(update_fields=changed + ['updated_at'])
        return user, False

    user = User(
        username=generate_username(phone),
        phone=phone,
        name=name or '',
        user_type=user_type or 'creator',
        auth_provider='phone',
        phone_verified=True,
    )
    user.set_unusable_password()
    user.save()
    logger.info(f"Created {user.user_type} account {user.id} for phone {phone}")
    return user, True


def get_or_create_google_user(email, name=None, picture=None, user_type='creator'):
    user = User.objects.filter(email__iexact=email).first()
    if user:
        changed = []
        if not user.email_verified:
            user.email_verified = True
            changed.append('email_verified')
        if name and not user.name:
            user.name = name
            changed.append('name')
        if changed:
            user.save(update_fields=changed + ['updated_at'])
        return user, False

    user = User(
        username=generate_username(email),
        email=email,
        name=name or '',
        user_type=user_type or 'creator',
        auth_provider='google',
        email_verified=True,
        profile_image_url=picture or '',
    )
    user.set_unusable_password()
    user.save()
    logger.info(f"Created {user.user_type} account {user.id} for Google user {email}")
    return user, True


def collect_user_data(user):
    """Counts of everything tied to `user`, keyed by label"""
    from marketplace.catalog.models import Package
    from marketplace.orders.models import CartItem, Order
    from marketplace.support.models import Ticket, TicketMessage

    orders = Order.objects.filter(Q(brand__user=user) | Q(creator__user=user))
    return {
        'packages': Package.objects.filter(creator__user=user).count(),
        'orders': orders.count(),
        'tickets': Ticket.objects.filter(order__in=orders).count(),
        'messages': TicketMessage.objects.filter(Q(ticket__order__in=orders) | Q(sender=user)).count(),
        'cart_items': CartItem.objects.filter(Q(user=user) | Q(package__creator__user=user)).count(),
        'phone_verifications': PhoneVerification.objects.filter(phone=user.phone).count() if user.phone else 0,
    }


def delete_user_account(user):
    """
    Delete `user` and every row that belongs to them.

    Orders (and their tickets) are removed before packages, since packages
    cannot be deleted while orders still reference them.
    """
    from marketplace.catalog.models import Package
    from marketplace.orders.models import CartItem, Order
    from marketplace.support.models import Ticket, TicketMessage

    user_id = user.id
    summary = collect_user_data(user)
    with transaction.atomic():
        orders = Order.objects.filter(Q(brand__user=user) | Q(creator__user=user))
        TicketMessage.objects.filter(ticket__order__in=orders).delete()
        Ticket.objects.filter(order__in=orders).delete()
        orders.delete()
        CartItem.objects.filter(Q(user=user) | Q(package__creator__user=user)).delete()
        Package.objects.filter(creator__user=user).delete()
        if user.phone:
            PhoneVerification.objects.filter(phone=user.phone).delete()
        user.delete()
    logger.info(f"Deleted user {user_id} and related data: {summary}")
    return summary


class AccountExists(Exception):
    def __init__(self, user):
        super().__init__(f"A user with email {user.email} already exists")
        self.user = user


def create_staff_account(email, name, user_type='admin', password=None, phone=None):
    """
    Create a support agent ('admin') or super admin account.

    Staff sign in with email and password when one is given; otherwise the
    password is left unusable and they sign in with Google.
    """
    existing = User.objects.filter(email__iexact=email).first()
    if existing:
        raise AccountExists(existing)

    user = User(
        username=generate_username(email),
        email=email.lower(),
        name=name,
        phone=phone or None,
        user_type=user_type,
        status='active',
        auth_provider='password' if password else 'google',
        email_verified=True,
        onboarding_completed=True,
        is_staff=user_type == 'super_admin',
    )
    if password:
        user.set_password(password)
    else:
        user.set_unusable_password()
    user.save()
    logger.info(f"Created {user_type} account {user.id} for {user.email}")
    return user
