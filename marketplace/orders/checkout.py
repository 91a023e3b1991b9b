"""
Brand checkout: turns cart lines into orders, one per package.

All orders of a checkout are created in a single transaction. The brand
profile row is locked for the duration so two concurrent checkouts of the
same brand cannot both pass the duplicate check.
"""
import logging
from datetime import timedelta

from django.db import transaction
from django.utils import timezone

from marketplace.catalog.models import Package
from marketplace.core.conf import get_setting
from marketplace.core.utils import create_audit_log, generate_reference
from marketplace.profiles.models import BrandProfile
from marketplace.support.services import create_ticket_for_order
from .models import CartItem, Order

logger = logging.getLogger(__name__)


class CheckoutError(Exception):
    status_code = 400


class PackageUnavailable(CheckoutError):
    status_code = 404

    def __init__(self, package_id):
        super().__init__(f"Package {package_id} not found or inactive")
        self.package_id = package_id


class DuplicateOrderError(CheckoutError):
    status_code = 409

    def __init__(self, existing_order):
        super().__init__(
            f"An order for this package was already placed at {existing_order.order_date:%Y-%m-%d %H:%M}"
        )
        self.existing_order = existing_order


def merge_lines(lines):
    """
    Collapse lines for the same package into one, summing quantities.

    The first line's delivery time, instructions and references win.
    """
    merged = {}
    for line in lines:
        package_id = int(line['package_id'])
        if package_id in merged:
            merged[package_id]['quantity'] += int(line.get('quantity') or 1)
            continue
        merged[package_id] = {
            'package_id': package_id,
            'quantity': int(line.get('quantity') or 1),
            'delivery_time': line.get('delivery_time'),
            'additional_instructions': line.get('additional_instructions') or '',
            'references': line.get('references') or [],
        }
    return list(merged.values())


def lines_from_cart(user):
    return [
        {
            'package_id': item.package_id,
            'quantity': item.quantity,
            'delivery_time': item.delivery_time,
            'additional_instructions': item.additional_instructions,
            'references': item.references,
        }
        for item in CartItem.objects.filter(user=user)
    ]


def find_recent_duplicate(brand, package, since):
    return (
        Order.objects.filter(
            brand=brand,
            creator=package.creator,
            package=package,
            status__in=Order.ACTIVE_STATUSES,
            order_date__gte=since,
        )
        .order_by('-order_date')
        .first()
    )


def checkout(user, brand, lines, request=None):
    """
    Create orders for `lines` on behalf of `brand` and return them.

    Raises CheckoutError (empty input), PackageUnavailable or
    DuplicateOrderError. Nothing is written when any line fails.
    """
    lines = merge_lines(lines)
    if not lines:
        raise CheckoutError('Cart is empty')

    window = get_setting('CHECKOUT_DUPLICATE_WINDOW_SECONDS')
    orders = []
    with transaction.atomic():
        BrandProfile.objects.select_for_update().get(pk=brand.pk)
        now = timezone.now()
        since = now - timedelta(seconds=window)

        package_ids = [line['package_id'] for line in lines]
        packages = Package.objects.select_related('creator__user').in_bulk(package_ids)

        for line in lines:
            package = packages.get(line['package_id'])
            if package is None or not package.is_active or package.creator.user.status != 'active':
                raise PackageUnavailable(line['package_id'])

            duplicate = find_recent_duplicate(brand, package, since)
            if duplicate:
                raise DuplicateOrderError(duplicate)

            order = Order.objects.create(
                order_number=generate_reference('ORD', Order, 'order_number'),
                package=package,
                brand=brand,
                creator=package.creator,
                quantity=line['quantity'],
                unit_price=package.price,
                total_amount=package.price * line['quantity'],
                currency=package.currency,
                status='pending',
                order_date=now,
                delivery_time=line['delivery_time'] or package.delivery_days,
                additional_instructions=line['additional_instructions'],
                references=line['references'],
            )
            create_ticket_for_order(order)
            orders.append(order)

        CartItem.objects.filter(user=user, package_id__in=package_ids).delete()

    for order in orders:
        create_audit_log(
            request=request,
            user=user,
            action='order_checkout',
            model_name='Order',
            object_id=str(order.id),
            object_name=order.package.title,
            object_reference=order.order_number,
            changes={
                'package_id': order.package_id,
                'quantity': order.quantity,
                'total_amount': str(order.total_amount),
                'currency': order.currency,
            }
        )
    logger.info(f"Brand {brand.id} checked out {len(orders)} order(s): {[o.order_number for o in orders]}")
    return orders
