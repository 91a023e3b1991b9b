"""
Ticket creation, agent round-robin and message posting
"""
import logging

from django.contrib.auth import get_user_model
from django.db import IntegrityError, transaction

from marketplace.core.utils import generate_reference
from .models import Ticket, TicketMessage

User = get_user_model()

logger = logging.getLogger(__name__)

CHANNEL_FOR_ROLE = {
    'brand': 'brand_agent',
    'creator': 'creator_agent',
}


def assignable_agents():
    return User.objects.filter(user_type='admin', status='active').order_by('id')


def next_agent():
    """
    Pick the agent after the one who received the most recent ticket.

    Agents are ordered by id and the rotation wraps around. Returns None when
    no active agent exists. The agent rows stay locked until the caller's
    transaction ends, so concurrent ticket creation takes turns.
    """
    with transaction.atomic():
        agents = list(assignable_agents().select_for_update())
        if not agents:
            return None

        last_ticket = (
            Ticket.objects.filter(agent__isnull=False)
            .order_by('-created_at', '-id')
            .only('agent_id')
            .first()
        )
    if last_ticket is None:
        return agents[0]

    for agent in agents:
        if agent.id > last_ticket.agent_id:
            return agent
    return agents[0]


def format_order_summary(order):
    lines = [
        f"New order {order.order_number}",
        f"Package: {order.package.title}",
        f"Brand: {order.brand}",
        f"Creator: {order.creator.user.display_name}",
        f"Quantity: {order.quantity}",
        f"Total: {order.total_amount} {order.currency}",
    ]
    if order.delivery_time:
        lines.append(f"Delivery time: {order.delivery_time} days")
    if order.additional_instructions:
        lines.append(f"Instructions: {order.additional_instructions}")
    return '\n'.join(lines)


def post_system_message(ticket, text):
    return TicketMessage.objects.create(
                ticket=ticket,
        sender=None,
        sender_role='system',
        channel_type='',
        message_type='system',
                message_text=text,
    )


def create_ticket_for_order(order):
    """Open the support ticket of a new order and post its summary"""
    with transaction.atomic():
        agent = next_agent()
        ticket = Ticket.objects.create(
            ticket_number=generate_reference('TKT', Ticket, 'ticket_number'),
            order=order,
            agent=agent,
            stream_channel_id=f"order-{order.id}",
        )
        post_system_message(ticket, format_order_summary(order))

    if agent:
        logger.info(f"Ticket {ticket.ticket_number} for order {order.order_number} assigned to agent {agent.id}")
    else:
        logger.warning(f"Ticket {ticket.ticket_number} for order {order.order_number} created without an agent")
    return ticket


def get_or_create_ticket(order):
    ticket = Ticket.objects.filter(order=order).select_related('agent').first()
    if ticket:
        return ticket
    return create_ticket_for_order(order)


def post_order_event(order, text):
    """Post a system message to the order's ticket if it has one"""
    ticket = Ticket.objects.filter(order=order).first()
    if ticket is None:
        logger.warning(f"Order {order.order_number} has no ticket, event not posted: {text}")
        return None
    return post_system_message(ticket, text)


def sender_role_for(user, ticket):
    """Role `user` speaks with inside `ticket`, or None when they are not a participant"""
    if user.is_agent:
        return 'agent'
    order = ticket.order
    if order.brand.user_id == user.id:
        return 'brand'
    if order.creator.user_id == user.id:
        return 'creator'
    return None


def find_client_message(ticket, user, client_message_id):
    return TicketMessage.objects.filter(
        ticket=ticket, sender=user, client_message_id=client_message_id
    ).first()


def post_message(ticket, user, role, text='', message_type='text', channel_type=None,
                 file_url='', file_name='', client_message_id=''):
    """
    Store a participant message.

    Returns (message, created). A repeated client_message_id from the same
    sender returns the stored message instead of creating a duplicate.
    """
    if client_message_id:
        existing = find_client_message(ticket, user, client_message_id)
        if existing:
            return existing, False

    if role in CHANNEL_FOR_ROLE:
        channel_type = CHANNEL_FOR_ROLE[role]

    try:
        with transaction.atomic():
            message = TicketMessage.objects.create(
                ticket=ticket,
                sender=user,
                sender_role=role,
                channel_type=channel_type or '',
                message_type=message_type,
                message_text=text,
                file_url=file_url,
                file_name=file_name,
                client_message_id=client_message_id,
            )
    except IntegrityError:
        # Lost a race with the same client_message_id
        existing = find_client_message(ticket, user, client_message_id) if client_message_id else None
        if existing is None:
            raise
        return existing, False

    if role == 'agent' and ticket.status == 'open':
        ticket.status = 'in_progress'
        ticket.save(update_fields=['status', 'updated_at'])
    return message, True
