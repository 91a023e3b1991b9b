from django.db.models import Q

from .models import Ticket, TicketMessage


def tickets_visible_to(user):
    """Tickets a user may read: all for super admins, assigned ones for agents, own orders otherwise"""
    tickets = Ticket.objects.select_related(
        'order', 'order__package', 'order__brand__user', 'order__creator__user', 'agent'
    )
    if user.is_super_admin:
        return tickets
    if user.is_agent:
        return tickets.filter(agent=user)
    return tickets.filter(Q(order__brand__user=user) | Q(order__creator__user=user))


def messages_visible_to(ticket, role, channel=None):
    """
    Messages of `ticket` readable by a participant with `role`.

    Brands and creators see their own channel plus system messages. Agents
    see everything, optionally narrowed to one channel.
    """
    messages = TicketMessage.objects.filter(ticket=ticket).select_related('sender')
    if role == 'brand':
        return messages.filter(Q(channel_type='brand_agent') | Q(sender_role='system'))
    if role == 'creator':
        return messages.filter(Q(channel_type='creator_agent') | Q(sender_role='system'))
    if channel:
        return messages.filter(Q(channel_type=channel) | Q(sender_role='system'))
    return messages
