from decimal import Decimal

from rest_framework import serializers
from marketplace.catalog.serializers import PackageSerializer
from .models import CartItem, Order, OrderStatusHistory


class CartItemSerializer(serializers.ModelSerializer):
    package = PackageSerializer(read_only=True)
    package_id = serializers.IntegerField(read_only=True)
    line_total = serializers.SerializerMethodField()

    class Meta:
        model = CartItem
        fields = ['id', 'package_id', 'package', 'quantity', 'delivery_time',
                  'additional_instructions', 'references', 'line_total', 'created_at', 'updated_at']

    def get_line_total(self, obj):
        return str(obj.get_line_total())


class CartLineInputSerializer(serializers.Serializer):
    """One cart or checkout line as sent by the clients"""
    packageId = serializers.IntegerField(min_value=1, source='package_id')
    quantity = serializers.IntegerField(min_value=1, max_value=100, required=False, default=1)
    deliveryTime = serializers.IntegerField(min_value=1, max_value=365, required=False, allow_null=True, source='delivery_time')
    additionalInstructions = serializers.CharField(required=False, allow_blank=True, default='', source='additional_instructions')
    references = serializers.ListField(child=serializers.CharField(max_length=500), required=False, default=list)


class CartItemUpdateSerializer(serializers.Serializer):
    quantity = serializers.IntegerField(min_value=1, max_value=100, required=False)
    deliveryTime = serializers.IntegerField(min_value=1, max_value=365, required=False, allow_null=True, source='delivery_time')
    additionalInstructions = serializers.CharField(required=False, allow_blank=True, source='additional_instructions')
    references = serializers.ListField(child=serializers.CharField(max_length=500), required=False)


class CartSyncSerializer(serializers.Serializer):
    items = CartLineInputSerializer(many=True)


class CheckoutSerializer(serializers.Serializer):
    cartItems = CartLineInputSerializer(many=True, required=False, source='cart_items')


class OrderListSerializer(serializers.ModelSerializer):
    package_title = serializers.CharField(source='package.title', read_only=True)
    brand_id = serializers.IntegerField(source='brand.id', read_only=True)
    brand_name = serializers.SerializerMethodField()
    creator_id = serializers.IntegerField(source='creator.id', read_only=True)
    creator_name = serializers.CharField(source='creator.user.display_name', read_only=True)

    class Meta:
        model = Order
        fields = ['id', 'order_number', 'package_id', 'package_title', 'brand_id', 'brand_name',
                  'creator_id', 'creator_name', 'quantity', 'total_amount', 'currency', 'status',
                  'order_date', 'updated_at']

    def get_brand_name(self, obj):
        return obj.brand.company_name or obj.brand.user.display_name


class OrderSerializer(OrderListSerializer):
    package = PackageSerializer(read_only=True)
    revisions_remaining = serializers.IntegerField(read_only=True)
    ticket = serializers.SerializerMethodField()
    allowed_actions = serializers.SerializerMethodField()

    class Meta(OrderListSerializer.Meta):
        fields = OrderListSerializer.Meta.fields + [
            'package', 'unit_price', 'delivery_time', 'additional_instructions', 'references',
            'deliverables', 'submission_note', 'rejection_message', 'revision_count',
            'revisions_remaining', 'revision_requirements', 'price_revision_amount',
            'price_revision_reason', 'chat_enabled', 'accepted_at', 'submitted_at',
            'completed_at', 'cancelled_at', 'created_at', 'ticket', 'allowed_actions'
        ]

    def get_ticket(self, obj):
        ticket = getattr(obj, 'ticket', None)
        if ticket is None:
            return None
        return {
            'id': ticket.id,
            'ticket_number': ticket.ticket_number,
            'status': ticket.status,
            'agent_id': ticket.agent_id,
        }

    def get_allowed_actions(self, obj):
        from .lifecycle import allowed_actions
        request = self.context.get('request')
        if not request or not request.user.is_authenticated:
            return []
        return allowed_actions(obj, request.user)


class OrderStatusHistorySerializer(serializers.ModelSerializer):
    changed_by_name = serializers.SerializerMethodField()

    class Meta:
        model = OrderStatusHistory
        fields = ['id', 'action', 'from_status', 'to_status', 'changed_by', 'changed_by_name', 'note', 'created_at']

    def get_changed_by_name(self, obj):
        return obj.changed_by.display_name if obj.changed_by else None


class RejectOrderSerializer(serializers.Serializer):
    rejectionMessage = serializers.CharField(required=False, allow_blank=True, max_length=2000)


class CancelOrderSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, max_length=2000)


class DeliverablesSerializer(serializers.Serializer):
    deliverables = serializers.ListField(child=serializers.JSONField(), min_length=1)
    note = serializers.CharField(required=False, allow_blank=True)


class RevisionRequestSerializer(serializers.Serializer):
    requirements = serializers.CharField(max_length=5000)


class PriceRevisionSerializer(serializers.Serializer):
    amount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal('0.01'))
    reason = serializers.CharField(max_length=2000)
