import logging
from decimal import Decimal

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.db import transaction

from marketplace.catalog.models import Package
from marketplace.core.utils import create_audit_log
from marketplace.support.selectors import messages_visible_to
from marketplace.support.serializers import TicketSerializer, TicketMessageSerializer
from marketplace.support.services import get_or_create_ticket, sender_role_for
from .checkout import checkout, lines_from_cart, CheckoutError, DuplicateOrderError, PackageUnavailable
from .lifecycle import apply_transition, InvalidTransition, TransitionForbidden, TransitionPayloadError
from .models import CartItem, Order
from .selectors import orders_visible_to
from .serializers import (
    CartItemSerializer, CartLineInputSerializer, CartItemUpdateSerializer, CartSyncSerializer,
    CheckoutSerializer, OrderListSerializer, OrderSerializer, OrderStatusHistorySerializer,
    RejectOrderSerializer, CancelOrderSerializer, DeliverablesSerializer,
    RevisionRequestSerializer, PriceRevisionSerializer
)

logger = logging.getLogger(__name__)


def cart_response(user, status_code=status.HTTP_200_OK):
    items = CartItem.objects.filter(user=user).select_related('package__creator__user')
    serializer = CartItemSerializer(items, many=True)
    total = sum((item.get_line_total() for item in items), start=Decimal('0.00'))
    return Response({
        'items': serializer.data,
        'item_count': len(serializer.data),
        'total': str(total),
    }, status=status_code)


def get_active_package(package_id):
    return Package.objects.filter(pk=package_id, is_active=True).first()


# Cart views
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def cart_list(request):
    """Items in the current user's cart"""
    return cart_response(request.user)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def cart_add(request):
    """Add a package to the cart, merging quantity when it is already there"""
    if not request.user.is_brand:
        return Response({'error': 'Only brands can add packages to a cart'}, status=status.HTTP_403_FORBIDDEN)

    serializer = CartLineInputSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    data = serializer.validated_data

    package = get_active_package(data['package_id'])
    if package is None:
        return Response(
            {'error': 'Package not found', 'detail': f"Package {data['package_id']} not found or inactive"},
            status=status.HTTP_404_NOT_FOUND
        )

    with transaction.atomic():
        item, created = CartItem.objects.select_for_update().get_or_create(
            user=request.user,
            package=package,
            defaults={
                'quantity': data['quantity'],
                'delivery_time': data.get('delivery_time'),
                'additional_instructions': data.get('additional_instructions') or '',
                'references': data.get('references') or [],
            }
        )
        if not created:
            item.quantity += data['quantity']
            if data.get('delivery_time'):
                item.delivery_time = data['delivery_time']
            if data.get('additional_instructions'):
                item.additional_instructions = data['additional_instructions']
            if data.get('references'):
                item.references = data['references']
            item.save()

    create_audit_log(
        request=request,
        action='cart_add',
        model_name='CartItem',
        object_id=str(item.id),
        object_name=package.title,
        changes={'package_id': package.id, 'quantity': item.quantity, 'merged': not created}
    )
    return cart_response(request.user, status.HTTP_201_CREATED if created else status.HTTP_200_OK)


@api_view(['PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def cart_item_detail(request, item_id):
    """Update or remove a single cart line"""
    try:
        item = CartItem.objects.select_related('package').get(pk=item_id, user=request.user)
    except CartItem.DoesNotExist:
        return Response(
            {'error': 'Cart item not found', 'detail': f'Cart item with id {item_id} does not exist'},
            status=status.HTTP_404_NOT_FOUND
        )

    if request.method == 'DELETE':
        package_title = item.package.title
        item.delete()
        create_audit_log(
            request=request,
            action='cart_remove',
            model_name='CartItem',
            object_id=str(item_id),
            object_name=package_title,
        )
        return cart_response(request.user)

    serializer = CartItemUpdateSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    old_quantity = item.quantity
    for field, value in serializer.validated_data.items():
        setattr(item, field, value)
    item.save()
    create_audit_log(
        request=request,
        action='cart_update',
        model_name='CartItem',
        object_id=str(item.id),
        object_name=item.package.title,
        changes={'quantity': {'old': old_quantity, 'new': item.quantity}}
    )
    return cart_response(request.user)


@api_view(['DELETE'])
@permission_classes([IsAuthenticated])
def cart_clear(request):
    deleted, _ = CartItem.objects.filter(user=request.user).delete()
    if deleted:
        create_audit_log(
            request=request,
            action='cart_clear',
            model_name='CartItem',
            object_id=str(request.user.id),
            changes={'removed': deleted}
        )
    return cart_response(request.user)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def cart_sync(request):
    """Replace the stored cart with the client's local cart"""
    if not request.user.is_brand:
        return Response({'error': 'Only brands have a cart'}, status=status.HTTP_403_FORBIDDEN)

    serializer = CartSyncSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    lines = {}
    for line in serializer.validated_data['items']:
        if line['package_id'] in lines:
            lines[line['package_id']]['quantity'] += line['quantity']
        else:
            lines[line['package_id']] = dict(line)

    packages = Package.objects.filter(pk__in=lines.keys(), is_active=True).in_bulk()
    skipped = [package_id for package_id in lines if package_id not in packages]

    with transaction.atomic():
        CartItem.objects.filter(user=request.user).delete()
        CartItem.objects.bulk_create([
            CartItem(
                user=request.user,
                package=packages[package_id],
                quantity=line['quantity'],
                delivery_time=line.get('delivery_time'),
                additional_instructions=line.get('additional_instructions') or '',
                references=line.get('references') or [],
            )
            for package_id, line in lines.items() if package_id in packages
        ])

    response = cart_response(request.user)
    response.data['skipped_package_ids'] = skipped
    return response


# Order views
@api_view(['POST'])
@permission_classes([IsAuthenticated])
def order_checkout(request):
    """Create orders from the posted cart items (or the stored cart)"""
    if not request.user.is_brand:
        return Response({'error': 'Only brands can checkout'}, status=status.HTTP_403_FORBIDDEN)

    brand = getattr(request.user, 'brand_profile', None)
    if brand is None:
        return Response(
            {'error': 'Brand profile not found', 'detail': 'Complete your brand profile before ordering'},
            status=status.HTTP_404_NOT_FOUND
        )

    serializer = CheckoutSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    lines = serializer.validated_data.get('cart_items')
    if lines is None:
        lines = lines_from_cart(request.user)

    try:
        orders = checkout(request.user, brand, lines, request=request)
    except DuplicateOrderError as e:
        return Response({
            'error': 'Duplicate order',
            'detail': str(e),
            'existingOrderId': e.existing_order.id,
            'existingOrderNumber': e.existing_order.order_number,
        }, status=status.HTTP_409_CONFLICT)
    except PackageUnavailable as e:
        return Response(
            {'error': 'Package not found', 'detail': str(e), 'packageId': e.package_id},
            status=status.HTTP_404_NOT_FOUND
        )
    except CheckoutError as e:
        return Response({'error': str(e)}, status=e.status_code)

    return Response({
        'message': f'{len(orders)} order(s) placed successfully',
        'orders': OrderSerializer(orders, many=True, context={'request': request}).data,
    }, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def order_list(request):
    """Orders of the current user, newest first"""
    orders = orders_visible_to(request.user)
    status_filter = request.query_params.get('status')
    if status_filter:
        orders = orders.filter(status__in=status_filter.split(','))
    serializer = OrderListSerializer(orders, many=True)
    return Response(serializer.data)


def get_visible_order(request, pk):
    try:
        return orders_visible_to(request.user).get(pk=pk), None
    except Order.DoesNotExist:
        return None, Response(
            {'error': 'Order not found', 'detail': f'Order with id {pk} does not exist'},
            status=status.HTTP_404_NOT_FOUND
        )


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def order_detail(request, pk):
    order, error = get_visible_order(request, pk)
    if error:
        return error
    return Response(OrderSerializer(order, context={'request': request}).data)


def run_transition(request, pk, action, serializer_class=None, payload_builder=None):
    """Validate input, apply an order transition and render the result"""
    order, error = get_visible_order(request, pk)
    if error:
        return error

    payload = {}
    if serializer_class is not None:
        serializer = serializer_class(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        payload = payload_builder(serializer.validated_data) if payload_builder else dict(serializer.validated_data)

    try:
        order = apply_transition(order, action, request.user, payload, request=request)
    except TransitionForbidden as e:
        return Response({'error': 'Permission denied', 'detail': str(e)}, status=status.HTTP_403_FORBIDDEN)
    except InvalidTransition as e:
        return Response({'error': 'Invalid status transition', 'detail': str(e)}, status=status.HTTP_409_CONFLICT)
    except TransitionPayloadError as e:
        return Response({'error': 'Invalid request', 'detail': str(e)}, status=status.HTTP_400_BAD_REQUEST)

    return Response(OrderSerializer(order, context={'request': request}).data)


@api_view(['PUT', 'POST'])
@permission_classes([IsAuthenticated])
def order_accept(request, pk):
    return run_transition(request, pk, 'accept')


@api_view(['PUT', 'POST'])
@permission_classes([IsAuthenticated])
def order_reject(request, pk):
    return run_transition(
        request, pk, 'reject', RejectOrderSerializer,
        lambda data: {'rejection_message': data.get('rejectionMessage', '')}
    )


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def order_cancel(request, pk):
    return run_transition(request, pk, 'cancel', CancelOrderSerializer)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def order_submit_deliverables(request, pk):
    """Creator hands in deliverables for brand review"""
    return run_transition(request, pk, 'submit', DeliverablesSerializer)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def order_approve(request, pk):
    return run_transition(request, pk, 'approve')


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def order_request_revision(request, pk):
    return run_transition(request, pk, 'request_revision', RevisionRequestSerializer)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def order_price_revision(request, pk):
    """Creator asks for more money while a revision is open"""
    return run_transition(request, pk, 'request_price_revision', PriceRevisionSerializer)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def order_price_revision_approve(request, pk):
    return run_transition(request, pk, 'approve_price_revision')


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def order_price_revision_decline(request, pk):
    return run_transition(request, pk, 'decline_price_revision')


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def order_history(request, pk):
    order, error = get_visible_order(request, pk)
    if error:
        return error
    return Response(OrderStatusHistorySerializer(order.status_history.select_related('changed_by'), many=True).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def order_chat(request, pk):
    """Ticket and messages of an order, as visible to the caller"""
    order, error = get_visible_order(request, pk)
    if error:
        return error
    if not order.chat_enabled:
        return Response(
            {'error': 'Chat disabled', 'detail': 'Chat is not enabled for this order'},
            status=status.HTTP_403_FORBIDDEN
        )

    ticket = get_or_create_ticket(order)
    role = sender_role_for(request.user, ticket)
    messages = messages_visible_to(ticket, role, request.query_params.get('channel'))
    return Response({
        'ticket': TicketSerializer(ticket).data,
        'role': role,
        'messages': TicketMessageSerializer(messages, many=True).data,
    })


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def order_enable_chat(request, pk):
    """Turn chat on for an order; only the ordering brand may do this"""
    order, error = get_visible_order(request, pk)
    if error:
        return error

    if not request.user.is_brand or order.brand.user_id != request.user.id:
        return Response(
            {'error': 'Permission denied', 'detail': 'Only brands can enable chat for orders'},
            status=status.HTTP_403_FORBIDDEN
        )

    if not order.chat_enabled:
        order.chat_enabled = True
        order.save(update_fields=['chat_enabled', 'updated_at'])
    ticket = get_or_create_ticket(order)
    return Response({'message': 'Chat enabled', 'ticket': TicketSerializer(ticket).data})
