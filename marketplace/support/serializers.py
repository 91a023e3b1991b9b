from rest_framework import serializers
from marketplace.core.serializers import UserSummarySerializer
from .models import Ticket, TicketMessage


class TicketSerializer(serializers.ModelSerializer):
    order_id = serializers.IntegerField(read_only=True)
    order_number = serializers.CharField(source='order.order_number', read_only=True)
    order_status = serializers.CharField(source='order.status', read_only=True)
    package_title = serializers.CharField(source='order.package.title', read_only=True)
    brand_name = serializers.SerializerMethodField()
    creator_name = serializers.CharField(source='order.creator.user.display_name', read_only=True)
    agent = UserSummarySerializer(read_only=True)

    class Meta:
        model = Ticket
        fields = ['id', 'ticket_number', 'order_id', 'order_number', 'order_status', 'package_title',
                  'brand_name', 'creator_name', 'agent', 'status', 'stream_channel_id',
                  'resolved_at', 'created_at', 'updated_at']

    def get_brand_name(self, obj):
        brand = obj.order.brand
        return brand.company_name or brand.user.display_name


class TicketMessageSerializer(serializers.ModelSerializer):
    sender_name = serializers.SerializerMethodField()

    class Meta:
        model = TicketMessage
        fields = ['id', 'ticket', 'sender', 'sender_name', 'sender_role', 'channel_type', 'message_type',
                  'message_text', 'file_url', 'file_name', 'client_message_id', 'created_at']
        read_only_fields = fields

    def get_sender_name(self, obj):
        if obj.sender_role == 'system':
            return 'System'
        return obj.sender.display_name if obj.sender else None


class MessageCreateSerializer(serializers.Serializer):
    message = serializers.CharField(required=False, allow_blank=True, max_length=5000)
    messageType = serializers.ChoiceField(choices=['text', 'file'], required=False, default='text', source='message_type')
    channelType = serializers.ChoiceField(choices=['brand_agent', 'creator_agent'], required=False, source='channel_type')
    fileUrl = serializers.URLField(required=False, allow_blank=True, max_length=500, source='file_url')
    fileName = serializers.CharField(required=False, allow_blank=True, max_length=255, source='file_name')
    clientMessageId = serializers.CharField(required=False, allow_blank=True, max_length=100, source='client_message_id')

    def validate(self, attrs):
        if attrs.get('message_type', 'text') == 'file':
            if not attrs.get('file_url'):
                raise serializers.ValidationError({'fileUrl': 'File messages require a file URL'})
        elif not (attrs.get('message') or '').strip():
            raise serializers.ValidationError({'message': 'Message text is required'})
        return attrs


class TicketStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=[choice[0] for choice in Ticket.STATUS_CHOICES])


class TicketReassignSerializer(serializers.Serializer):
    agentId = serializers.IntegerField(min_value=1, source='agent_id')


class AgentStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=['available', 'busy', 'away', 'offline'])


class AgentCreateSerializer(serializers.Serializer):
    email = serializers.EmailField()
    name = serializers.CharField(max_length=255)
    password = serializers.CharField(min_length=8, write_only=True, required=False)
    phone = serializers.CharField(max_length=20, required=False, allow_blank=True)

    def validate_name(self, value):
        value = value.strip()
        if len(value) < 2:
            raise serializers.ValidationError('Name must be at least 2 characters')
        return value


class AgentAccountStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=['active', 'suspended', 'pending'])
