import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.conf import settings
from django.contrib.auth import get_user_model
from django.db.models import Count, Q
from django.utils import timezone

from marketplace.catalog.views import parse_pagination
from marketplace.core.accounts import create_staff_account, AccountExists
from marketplace.core.permissions import IsAgent, IsSuperAdmin
from marketplace.core.serializers import AgentSerializer
from marketplace.core.utils import create_audit_log
from .models import Ticket
from .selectors import tickets_visible_to, messages_visible_to
from .serializers import (
    TicketSerializer, TicketMessageSerializer, MessageCreateSerializer,
    TicketStatusSerializer, TicketReassignSerializer, AgentStatusSerializer,
    AgentCreateSerializer, AgentAccountStatusSerializer
)
from .services import assignable_agents, post_message, post_system_message, sender_role_for
from .stream import stream_configured, stream_user_id, create_user_token

User = get_user_model()

logger = logging.getLogger(__name__)

OPEN_TICKET_STATUSES = ['open', 'in_progress']


def get_visible_ticket(request, pk):
    try:
        return tickets_visible_to(request.user).get(pk=pk), None
    except Ticket.DoesNotExist:
        return None, Response(
            {'error': 'Ticket not found', 'detail': f'Ticket with id {pk} does not exist'},
            status=status.HTTP_404_NOT_FOUND
        )


# Ticket views
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def ticket_list(request):
    """Tickets visible to the caller, newest first"""
    try:
        limit, offset = parse_pagination(request, default_limit=50)
    except ValueError:
        return Response({'error': 'limit and offset must be integers'}, status=status.HTTP_400_BAD_REQUEST)

    tickets = tickets_visible_to(request.user)
    status_filter = request.query_params.get('status')
    if status_filter:
        tickets = tickets.filter(status__in=status_filter.split(','))

    return Response({
        'count': tickets.count(),
        'limit': limit,
        'offset': offset,
        'results': TicketSerializer(tickets[offset:offset + limit], many=True).data,
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def ticket_by_order(request, order_id):
    ticket = tickets_visible_to(request.user).filter(order_id=order_id).first()
    if ticket is None:
        return Response(
            {'error': 'Ticket not found', 'detail': f'No ticket found for order {order_id}'},
            status=status.HTTP_404_NOT_FOUND
        )
    return Response(TicketSerializer(ticket).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def ticket_detail(request, pk):
    ticket, error = get_visible_ticket(request, pk)
    if error:
        return error
    return Response(TicketSerializer(ticket).data)


@api_view(['PUT'])
@permission_classes([IsAgent])
def ticket_update_status(request, pk):
    """Move a ticket between open, in progress, resolved and closed"""
    ticket, error = get_visible_ticket(request, pk)
    if error:
        return error

    serializer = TicketStatusSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    old_status = ticket.status
    new_status = serializer.validated_data['status']
    if old_status != new_status:
        ticket.status = new_status
        ticket.resolved_at = timezone.now() if new_status in ('resolved', 'closed') else None
        ticket.save(update_fields=['status', 'resolved_at', 'updated_at'])
        post_system_message(ticket, f"Ticket status changed to {ticket.get_status_display()}")
        create_audit_log(
            request=request,
            action='ticket_status',
            model_name='Ticket',
            object_id=str(ticket.id),
            object_reference=ticket.ticket_number,
            changes={'status': {'old': old_status, 'new': new_status}}
        )
    return Response(TicketSerializer(ticket).data)


@api_view(['PUT'])
@permission_classes([IsSuperAdmin])
def ticket_reassign(request, pk):
    ticket, error = get_visible_ticket(request, pk)
    if error:
        return error

    serializer = TicketReassignSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    agent = assignable_agents().filter(pk=serializer.validated_data['agent_id']).first()
    if agent is None:
        return Response(
            {'error': 'Agent not found', 'detail': 'The selected user is not an active agent'},
            status=status.HTTP_404_NOT_FOUND
        )

    old_agent_id = ticket.agent_id
    ticket.agent = agent
    ticket.save(update_fields=['agent', 'updated_at'])
    post_system_message(ticket, f"Ticket reassigned to {agent.display_name}")
    create_audit_log(
        request=request,
        action='ticket_reassign',
        model_name='Ticket',
        object_id=str(ticket.id),
        object_reference=ticket.ticket_number,
        changes={'agent_id': {'old': old_agent_id, 'new': agent.id}}
    )
    logger.info(f"Ticket {ticket.ticket_number} reassigned from agent {old_agent_id} to {agent.id}")
    return Response(TicketSerializer(ticket).data)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def ticket_messages(request, pk):
    """
    Polling feed and posting endpoint for ticket chat.

    GET accepts `after` (last seen message id) and, for agents, `channel`.
    POST is idempotent on `clientMessageId`.
    """
    ticket, error = get_visible_ticket(request, pk)
    if error:
        return error

    role = sender_role_for(request.user, ticket)
    if role is None:
        return Response({'error': 'Permission denied'}, status=status.HTTP_403_FORBIDDEN)

    if request.method == 'GET':
        messages = messages_visible_to(ticket, role, request.query_params.get('channel'))
        after = request.query_params.get('after')
        if after:
            try:
                messages = messages.filter(id__gt=int(after))
            except ValueError:
                return Response({'error': 'after must be a message id'}, status=status.HTTP_400_BAD_REQUEST)
        data = TicketMessageSerializer(messages, many=True).data
        return Response({
            'messages': data,
            'last_message_id': data[-1]['id'] if data else None,
            'ticket_status': ticket.status,
        })

    if role != 'agent' and not ticket.order.chat_enabled:
        return Response(
            {'error': 'Chat disabled', 'detail': 'Chat is not enabled for this order'},
            status=status.HTTP_403_FORBIDDEN
        )

    serializer = MessageCreateSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    data = serializer.validated_data

    if role == 'agent' and not data.get('channel_type'):
        return Response(
            {'error': 'channelType is required', 'detail': 'Agents must choose the brand or creator channel'},
            status=status.HTTP_400_BAD_REQUEST
        )

    message, created = post_message(
        ticket,
        request.user,
        role,
        text=(data.get('message') or '').strip(),
        message_type=data.get('message_type', 'text'),
        channel_type=data.get('channel_type'),
        file_url=data.get('file_url', ''),
        file_name=data.get('file_name', ''),
        client_message_id=data.get('client_message_id', ''),
    )
    return Response(
        TicketMessageSerializer(message).data,
        status=status.HTTP_201_CREATED if created else status.HTTP_200_OK
    )


# Agent views
@api_view(['PUT'])
@permission_classes([IsAgent])
def agent_update_my_status(request):
    """Set the caller's availability"""
    serializer = AgentStatusSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    user = request.user
    old_status = user.agent_status
    user.agent_status = serializer.validated_data['status']
    user.is_online = user.agent_status != 'offline'
    user.save(update_fields=['agent_status', 'is_online', 'updated_at'])
    create_audit_log(
        request=request,
        action='agent_status',
        model_name='User',
        object_id=str(user.id),
        object_name=user.display_name,
        changes={'agent_status': {'old': old_status, 'new': user.agent_status}}
    )
    return Response(AgentSerializer(user).data)


def agents_with_workload():
    return User.objects.filter(user_type='admin').annotate(
        open_tickets=Count('assigned_tickets', filter=Q(assigned_tickets__status__in=OPEN_TICKET_STATUSES))
    ).order_by('id')


def get_agent(pk):
    try:
        return agents_with_workload().get(pk=pk), None
    except User.DoesNotExist:
        return None, Response(
            {'error': 'Agent not found', 'detail': f'Agent with id {pk} does not exist'},
            status=status.HTTP_404_NOT_FOUND
        )


@api_view(['GET', 'POST'])
@permission_classes([IsSuperAdmin])
def agent_list_create(request):
    if request.method == 'GET':
        return Response(AgentSerializer(agents_with_workload(), many=True).data)

    serializer = AgentCreateSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    data = serializer.validated_data

    try:
        agent = create_staff_account(
            data['email'], data['name'], user_type='admin',
            password=data.get('password'), phone=data.get('phone')
        )
    except AccountExists as e:
        return Response(
            {'error': 'User already exists', 'detail': str(e)},
            status=status.HTTP_409_CONFLICT
        )

    create_audit_log(
        request=request,
        action='agent_create',
        model_name='User',
        object_id=str(agent.id),
        object_name=agent.display_name,
        changes={'email': agent.email}
    )
    agent, _ = get_agent(agent.id)
    return Response(AgentSerializer(agent).data, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsSuperAdmin])
def agent_stats(request):
    agents = User.objects.filter(user_type='admin')
    return Response({
        'total': agents.count(),
        'active': agents.filter(status='active').count(),
        'suspended': agents.filter(status='suspended').count(),
        'pending': agents.filter(status='pending').count(),
        'online': agents.filter(is_online=True).count(),
        'open_tickets': Ticket.objects.filter(status__in=OPEN_TICKET_STATUSES).count(),
        'unassigned_tickets': Ticket.objects.filter(agent__isnull=True).count(),
    })


def set_agent_status(request, agent, new_status):
    old_status = agent.status
    agent.status = new_status
    if new_status != 'active':
        agent.is_online = False
        agent.agent_status = 'offline'
    agent.save(update_fields=['status', 'is_online', 'agent_status', 'updated_at'])
    create_audit_log(
        request=request,
        action='agent_status',
        model_name='User',
        object_id=str(agent.id),
        object_name=agent.display_name,
        changes={'status': {'old': old_status, 'new': new_status}}
    )
    logger.info(f"Agent {agent.id} status {old_status} -> {new_status} by user {request.user.id}")


@api_view(['GET', 'DELETE'])
@permission_classes([IsSuperAdmin])
def agent_detail(request, pk):
    """Retrieve an agent, or suspend them on DELETE"""
    agent, error = get_agent(pk)
    if error:
        return error

    if request.method == 'DELETE':
        set_agent_status(request, agent, 'suspended')
        return Response({'message': 'Agent suspended', 'agent': AgentSerializer(agent).data})

    return Response(AgentSerializer(agent).data)


@api_view(['PUT'])
@permission_classes([IsSuperAdmin])
def agent_update_status(request, pk):
    agent, error = get_agent(pk)
    if error:
        return error

    serializer = AgentAccountStatusSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    set_agent_status(request, agent, serializer.validated_data['status'])
    return Response(AgentSerializer(agent).data)


# Chat views
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def chat_token(request):
    """Stream Chat credentials for the current user"""
    if not stream_configured():
        return Response(
            {'error': 'Chat unavailable', 'detail': 'Stream Chat is not configured'},
            status=status.HTTP_503_SERVICE_UNAVAILABLE
        )

    user_id = stream_user_id(request.user)
    return Response({
        'token': create_user_token(user_id),
        'apiKey': settings.STREAM_API_KEY,
        'userId': user_id,
        'name': request.user.display_name,
    })