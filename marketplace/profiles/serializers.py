from decimal import Decimal

from rest_framework import serializers
from .models import (
    CreatorProfile, BrandProfile, SocialMediaAccount, PortfolioItem, KYC, Campaign,
    PLATFORM_CHOICES, GENDER_CHOICES
)

PLATFORMS = [choice[0] for choice in PLATFORM_CHOICES]


class SocialMediaAccountSerializer(serializers.ModelSerializer):
    class Meta:
        model = SocialMediaAccount
        fields = ['id', 'platform', 'username', 'profile_url', 'follower_count',
                  'engagement_rate', 'avg_views', 'verified']


class PortfolioItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = PortfolioItem
        fields = ['id', 'title', 'description', 'media_url', 'media_type', 'file_name',
                  'file_size', 'mime_type', 'platform', 'created_at']
        read_only_fields = ['created_at']


class CreatorListSerializer(serializers.ModelSerializer):
    """Creator card used by the brand discovery screens"""
    user_id = serializers.IntegerField(source='user.id', read_only=True)
    name = serializers.CharField(source='user.name', read_only=True)
    profile_image_url = serializers.CharField(source='user.profile_image_url', read_only=True)
    platform = serializers.CharField(source='primary_platform', read_only=True)
    total_followers = serializers.SerializerMethodField()
    social_accounts = SocialMediaAccountSerializer(many=True, read_only=True)

    class Meta:
        model = CreatorProfile
        fields = ['id', 'user_id', 'name', 'profile_image_url', 'bio', 'gender', 'location_city',
                  'location_state', 'content_categories', 'languages', 'interests', 'platform',
                  'rating', 'total_collaborations', 'average_response_time', 'verified',
                  'featured', 'total_followers', 'social_accounts']

    def get_total_followers(self, obj):
        return sum(account.follower_count for account in obj.social_accounts.all())


class CreatorProfileSerializer(CreatorListSerializer):
    """Full creator profile including portfolio and active packages"""
    email = serializers.CharField(source='user.email', read_only=True)
    phone = serializers.CharField(source='user.phone', read_only=True)
    portfolio_items = PortfolioItemSerializer(many=True, read_only=True)
    packages = serializers.SerializerMethodField()
    kyc_status = serializers.SerializerMethodField()

    class Meta(CreatorListSerializer.Meta):
        fields = CreatorListSerializer.Meta.fields + [
            'email', 'phone', 'date_of_birth', 'location_pincode', 'platforms', 'cover_image_url',
            'portfolio_items', 'packages', 'kyc_status', 'created_at', 'updated_at'
        ]

    def get_packages(self, obj):
        from marketplace.catalog.serializers import PackageSerializer
        packages = obj.packages.filter(is_active=True)
        return PackageSerializer(packages, many=True).data

    def get_kyc_status(self, obj):
        kyc = getattr(obj, 'kyc', None)
        return kyc.status if kyc else None


class BrandProfileSerializer(serializers.ModelSerializer):
    user_id = serializers.IntegerField(source='user.id', read_only=True)
    name = serializers.CharField(source='user.name', read_only=True)
    email = serializers.CharField(source='user.email', read_only=True)

    class Meta:
        model = BrandProfile
        fields = ['id', 'user_id', 'name', 'email', 'company_name', 'industry', 'industries',
                  'description', 'languages', 'role_in_organization', 'business_type',
                  'website_url', 'location_city', 'location_state', 'location_pincode',
                  'date_of_birth', 'logo_url', 'verified', 'created_at', 'updated_at']
        read_only_fields = ['verified', 'created_at', 'updated_at']


class KYCSerializer(serializers.ModelSerializer):
    class Meta:
        model = KYC
        fields = ['id', 'document_type', 'document_number', 'front_image_url', 'back_image_url',
                  'status', 'rejection_reason', 'submitted_at', 'verified_at']
        read_only_fields = fields


class CampaignSerializer(serializers.ModelSerializer):
    class Meta:
        model = Campaign
        fields = ['id', 'title', 'description', 'budget_min', 'budget_max', 'campaign_type',
                  'content_guidelines', 'requirements', 'target_audience', 'target_demographics',
                  'duration', 'status', 'created_at', 'updated_at']
        read_only_fields = ['status', 'created_at', 'updated_at']


class BasicInfoSerializer(serializers.Serializer):
    """Payload of the profile setup screen"""
    name = serializers.CharField(max_length=255, required=False, allow_blank=True)
    gender = serializers.ChoiceField(choices=[c[0] for c in GENDER_CHOICES], required=False, allow_blank=True)
    email = serializers.EmailField(required=False, allow_blank=True)
    dob = serializers.DateField(required=False, allow_null=True)
    city = serializers.CharField(max_length=100)
    state = serializers.CharField(max_length=100, required=False, allow_blank=True)
    pincode = serializers.CharField(max_length=10, required=False, allow_blank=True)
    business_type = serializers.ChoiceField(choices=[c[0] for c in BrandProfile.BUSINESS_TYPE_CHOICES], required=False, allow_blank=True)
    website_url = serializers.CharField(max_length=500, required=False, allow_blank=True)
    role = serializers.CharField(max_length=100, required=False, allow_blank=True)
    company_name = serializers.CharField(max_length=255, required=False, allow_blank=True)

    def validate_website_url(self, value):
        value = (value or '').strip()
        if value and not value.startswith(('http://', 'https://')):
            value = f'https://{value}'
        return value


class PreferencesSerializer(serializers.Serializer):
    categories = serializers.ListField(child=serializers.CharField(max_length=100), min_length=1, max_length=5)
    about = serializers.CharField()
    languages = serializers.ListField(child=serializers.CharField(max_length=50), min_length=1)
    platform = serializers.ListField(child=serializers.CharField(max_length=20), required=False, default=list)
    role = serializers.CharField(max_length=100, required=False, allow_blank=True)
    dateOfBirth = serializers.DateField(required=False, allow_null=True)

    def validate_about(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError('About is required')
        return value


class PortfolioCreateSerializer(serializers.Serializer):
    title = serializers.CharField(max_length=255, required=False, allow_blank=True)
    description = serializers.CharField(required=False, allow_blank=True)
    mediaUrl = serializers.URLField(max_length=500)
    mediaType = serializers.ChoiceField(choices=[c[0] for c in PortfolioItem.MEDIA_TYPE_CHOICES])
    fileName = serializers.CharField(max_length=255)
    fileSize = serializers.IntegerField(min_value=1)
    mimeType = serializers.CharField(max_length=100)
    platform = serializers.ChoiceField(choices=PLATFORMS, required=False, allow_blank=True)


class KYCSubmitSerializer(serializers.Serializer):
    documentType = serializers.ChoiceField(choices=['aadhaar', 'pan', 'ekyc'])
    documentNumber = serializers.CharField(max_length=50, required=False, allow_blank=True)
    frontImageUrl = serializers.URLField(max_length=500, required=False, allow_blank=True)
    backImageUrl = serializers.URLField(max_length=500, required=False, allow_blank=True)
    aadhaarData = serializers.DictField(required=False)

    def validate(self, attrs):
        if attrs['documentType'] == 'ekyc':
            aadhaar = attrs.get('aadhaarData') or {}
            if not aadhaar.get('uid'):
                raise serializers.ValidationError({'aadhaarData': 'Aadhaar data with uid is required for eKYC'})
        elif not attrs.get('frontImageUrl') or not attrs.get('backImageUrl'):
            raise serializers.ValidationError({'documents': 'Both front and back images are required'})
        return attrs


class CampaignCreateSerializer(serializers.Serializer):
    title = serializers.CharField(max_length=255)
    description = serializers.CharField()
    budget = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal('0'))
    budgetMax = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal('0'), required=False)
    duration = serializers.CharField(max_length=100)
    requirements = serializers.CharField()
    targetAudience = serializers.CharField()
    campaignType = serializers.CharField(max_length=50, required=False, allow_blank=True)
    contentGuidelines = serializers.CharField(required=False, allow_blank=True)

    def validate(self, attrs):
        budget_max = attrs.get('budgetMax')
        if budget_max is not None and budget_max < attrs['budget']:
            raise serializers.ValidationError({'budgetMax': 'Maximum budget must not be below the budget'})
        return attrs
