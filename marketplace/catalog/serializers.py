from decimal import Decimal

from rest_framework import serializers
from marketplace.profiles.models import PLATFORM_CHOICES
from .models import Package


class PackageSerializer(serializers.ModelSerializer):
    creator_id = serializers.IntegerField(source='creator.id', read_only=True)
    creator_name = serializers.CharField(source='creator.user.name', read_only=True)
    platform = serializers.ChoiceField(choices=[c[0] for c in PLATFORM_CHOICES], required=False, allow_blank=True)
    price = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal('0'))
    deliverables = serializers.ListField(child=serializers.CharField(max_length=255), required=False)

    class Meta:
        model = Package
        fields = ['id', 'creator_id', 'creator_name', 'title', 'description', 'platform',
                  'content_type', 'quantity', 'revisions', 'delivery_days', 'price', 'currency',
                  'deliverables', 'type', 'is_active', 'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']

    def validate_title(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError('Title is required')
        return value

    def validate_currency(self, value):
        value = (value or '').strip().upper()
        if len(value) != 3 or not value.isalpha():
            raise serializers.ValidationError('Currency must be a 3-letter ISO code')
        return value

    def validate_quantity(self, value):
        if value < 1:
            raise serializers.ValidationError('Quantity must be at least 1')
        return value
