"""
Order status machine.

Every status change goes through `apply_transition`, which locks the order
row, checks the actor and the current status against TRANSITIONS, applies
the action's field changes, records an OrderStatusHistory row and posts a
system message to the order's support ticket.

    pending  --accept-->                  accepted
    pending  --reject / cancel-->         cancelled
    accepted --submit-->                  review
    review   --approve-->                 completed
    review   --request_revision-->        revision
    revision --submit-->                  review
    revision --request_price_revision-->  price_revision_pending
    price_revision_pending --approve_price_revision / decline_price_revision--> revision
"""
import logging
import random
from collections import namedtuple
from decimal import Decimal, InvalidOperation

from django.db import transaction
from django.db.models import F
from django.utils import timezone

from marketplace.core.utils import create_audit_log
from marketplace.profiles.models import CreatorProfile
from marketplace.support.services import post_order_event
from .models import Order, OrderStatusHistory

logger = logging.getLogger(__name__)

Transition = namedtuple('Transition', ['sources', 'target', 'actor'])

TRANSITIONS = {
    'accept': Transition(('pending',), 'accepted', 'creator'),
    'reject': Transition(('pending',), 'cancelled', 'creator'),
    'cancel': Transition(('pending',), 'cancelled', 'brand'),
    'submit': Transition(('accepted', 'revision'), 'review', 'creator'),
    'approve': Transition(('review',), 'completed', 'brand'),
    'request_revision': Transition(('review',), 'revision', 'brand'),
    'request_price_revision': Transition(('revision',), 'price_revision_pending', 'creator'),
    'approve_price_revision': Transition(('price_revision_pending',), 'revision', 'brand'),
    'decline_price_revision': Transition(('price_revision_pending',), 'revision', 'brand'),
}

REJECTION_MESSAGES = [
    "Thank you for considering my services! Unfortunately, I'm currently unable to take on this project due to my current workload. I'd love to collaborate in the future when my schedule opens up. In the meantime, I'd recommend checking out some other talented creators who might be a perfect fit for your project!",
    "I appreciate you reaching out with this opportunity! At the moment, I'm fully booked with existing commitments and want to ensure I can deliver the quality you deserve. Please explore our platform to discover other amazing creators who are available and excited to work on your project!",
    "Thank you for your interest in working together! I'm currently at capacity with ongoing projects and wouldn't want to compromise on the quality of your content. I encourage you to browse through our community of skilled creators who are ready to bring your vision to life!",
    "I'm honored that you considered me for this project! Unfortunately, my current schedule doesn't allow me to take on additional work while maintaining the high standards I set for myself. Please take a look at some other fantastic creators on our platform who would be thrilled to collaborate with you!",
    "Thank you for reaching out! I'm currently focused on delivering excellence to my existing clients and wouldn't want to overcommit. I'd love to work together in the future! Meanwhile, I'm sure you'll find the perfect creator match for your project among our talented community.",
]


class TransitionError(Exception):
    """Base class for refused order transitions"""


class InvalidTransition(TransitionError):
    """The order's current status does not allow the action"""


class TransitionForbidden(TransitionError):
    """The acting user is not the party allowed to perform the action"""


class TransitionPayloadError(TransitionError):
    """The action is allowed but its input is missing or malformed"""


def random_rejection_message():
    return random.choice(REJECTION_MESSAGES)


def actor_matches(order, user, actor):
    if actor == 'creator':
        return order.creator.user_id == user.id
    if actor == 'brand':
        return order.brand.user_id == user.id
    return False


def allowed_actions(order, user):
    """Actions `user` may perform on `order` in its current status"""
    return [
        action for action, transition in TRANSITIONS.items()
        if order.status in transition.sources and actor_matches(order, user, transition.actor)
    ]


def _accept(order, now, payload):
    order.accepted_at = now
    return 'Order accepted by the creator'


def _reject(order, now, payload):
    order.rejection_message = (payload.get('rejection_message') or '').strip() or random_rejection_message()
    order.cancelled_at = now
    return f"Order declined by the creator: {order.rejection_message}"


def _cancel(order, now, payload):
    order.cancelled_at = now
    reason = (payload.get('reason') or '').strip()
    return f"Order cancelled by the brand{': ' + reason if reason else ''}"


def _submit(order, now, payload):
    deliverables = payload.get('deliverables')
    if not deliverables or not isinstance(deliverables, list):
        raise TransitionPayloadError('At least one deliverable is required')
    order.deliverables = deliverables
    order.submission_note = (payload.get('note') or '').strip()
    order.submitted_at = now
    return f"Creator submitted {len(deliverables)} deliverable(s) for review"


def _approve(order, now, payload):
    order.completed_at = now
    CreatorProfile.objects.filter(pk=order.creator_id).update(
        total_collaborations=F('total_collaborations') + 1
    )
    return 'Deliverables approved. Order completed'


def _request_revision(order, now, payload):
    requirements = (payload.get('requirements') or '').strip()
    if not requirements:
        raise TransitionPayloadError('Revision requirements are required')
    if order.revision_count >= order.package.revisions:
        raise InvalidTransition(
            f"No revisions remaining ({order.package.revisions} included in the package)"
        )
    order.revision_count += 1
    order.revision_requirements = requirements
    return f"Brand requested revision {order.revision_count}: {requirements}"


def _request_price_revision(order, now, payload):
    try:
        amount = Decimal(str(payload.get('amount')))
    except (InvalidOperation, TypeError, ValueError):
        raise TransitionPayloadError('A valid amount is required')
    if not amount.is_finite() or amount <= 0:
        raise TransitionPayloadError('Amount must be greater than zero')
    reason = (payload.get('reason') or '').strip()
    if not reason:
        raise TransitionPayloadError('A reason is required')
    order.price_revision_amount = amount.quantize(Decimal('0.01'))
    order.price_revision_reason = reason
    return f"Creator requested an additional {order.price_revision_amount} {order.currency}: {reason}"


def _approve_price_revision(order, now, payload):
    amount = order.price_revision_amount or Decimal('0.00')
    order.total_amount = order.total_amount + amount
    order.price_revision_amount = None
    order.price_revision_reason = ''
    return f"Brand approved the additional {amount} {order.currency}. New total {order.total_amount} {order.currency}"


def _decline_price_revision(order, now, payload):
    amount = order.price_revision_amount
    order.price_revision_amount = None
    order.price_revision_reason = ''
    return f"Brand declined the additional {amount} {order.currency}"


HANDLERS = {
    'accept': _accept,
    'reject': _reject,
    'cancel': _cancel,
    'submit': _submit,
    'approve': _approve,
    'request_revision': _request_revision,
    'request_price_revision': _request_price_revision,
    'approve_price_revision': _approve_price_revision,
    'decline_price_revision': _decline_price_revision,
}


def apply_transition(order, action, user, payload=None, request=None):
    """
    Perform `action` on `order` as `user` and return the refreshed order.

    Raises TransitionForbidden, InvalidTransition or TransitionPayloadError.
    """
    if action not in TRANSITIONS:
        raise InvalidTransition(f"Unknown action: {action}")
    transition = TRANSITIONS[action]
    payload = payload or {}

    with transaction.atomic():
        locked = (
            Order.objects.select_for_update()
            .select_related('package', 'brand', 'creator', 'creator__user')
            .get(pk=order.pk)
        )
        if not actor_matches(locked, user, transition.actor):
            raise TransitionForbidden(f"Only the {transition.actor} of this order can {action.replace('_', ' ')}")
        if locked.status not in transition.sources:
            raise InvalidTransition(
                f"Cannot {action.replace('_', ' ')} an order with status '{locked.status}'"
            )

        from_status = locked.status
        now = timezone.now()
        event_text = HANDLERS[action](locked, now, payload)
        locked.status = transition.target
        locked.save()

        OrderStatusHistory.objects.create(
            order=locked,
            action=action,
            from_status=from_status,
            to_status=locked.status,
            changed_by=user,
            note=event_text,
        )
        post_order_event(locked, event_text)

    create_audit_log(
        request=request,
        user=user,
        action='order_transition',
        model_name='Order',
        object_id=str(locked.id),
        object_name=locked.package.title,
        object_reference=locked.order_number,
        changes={'action': action, 'from': from_status, 'to': locked.status}
    )
    logger.info(f"Order {locked.order_number}: {from_status} -> {locked.status} ({action} by user {user.id})")
    return locked
