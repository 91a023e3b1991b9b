from rest_framework import serializers
from .models import User, AuditLog


class UserSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ['id', 'username', 'name', 'email', 'phone', 'user_type', 'status', 'auth_provider',
                  'phone_verified', 'email_verified', 'onboarding_step', 'onboarding_completed',
                  'profile_image_url', 'last_login', 'created_at', 'updated_at']
        read_only_fields = fields


class UserSummarySerializer(serializers.ModelSerializer):
    """Compact user representation embedded in other payloads"""
    class Meta:
        model = User
        fields = ['id', 'name', 'email', 'phone', 'user_type', 'profile_image_url']


class AgentSerializer(serializers.ModelSerializer):
    open_tickets = serializers.IntegerField(read_only=True, required=False)

    class Meta:
        model = User
        fields = ['id', 'name', 'email', 'user_type', 'status', 'agent_status', 'is_online',
                  'last_login', 'created_at', 'open_tickets']
        read_only_fields = fields


class SendPhoneCodeSerializer(serializers.Serializer):
    phone = serializers.CharField(max_length=20)


class VerifyPhoneCodeSerializer(serializers.Serializer):
    phone = serializers.CharField(max_length=20)
    code = serializers.RegexField(r'^\d{6}$', error_messages={'invalid': 'Code must be 6 digits'})
    fullName = serializers.CharField(max_length=255, required=False, allow_blank=True)
    userType = serializers.ChoiceField(choices=['creator', 'brand'], required=False)


class GoogleLoginSerializer(serializers.Serializer):
    idToken = serializers.CharField()
    userType = serializers.ChoiceField(choices=['creator', 'brand'], required=False)


class UpdateNameSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255)

    def validate_name(self, value):
        value = value.strip()
        if len(value) < 2:
            raise serializers.ValidationError('Name must be at least 2 characters')
        return value


class AuditLogSerializer(serializers.ModelSerializer):
    user = UserSummarySerializer(read_only=True)

    class Meta:
        model = AuditLog
        fields = ['id', 'user', 'action', 'model_name', 'object_id', 'object_name',
                  'object_reference', 'changes', 'ip_address', 'created_at']
