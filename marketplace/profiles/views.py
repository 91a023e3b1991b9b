import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated, AllowAny
from django.contrib.auth import get_user_model
from django.db import transaction
from django.db.models import Q
from django.shortcuts import get_object_or_404

from marketplace.core.cache_utils import (
    cached_query, get_cached_creators_list, cache_creators_list, CREATORS_LIST_PREFIX
)
from marketplace.core.conf import get_setting
from marketplace.core.serializers import UserSerializer
from marketplace.core.utils import create_audit_log
from .filters import CreatorFilter
from .models import CreatorProfile, BrandProfile, PortfolioItem, KYC, Campaign
from .serializers import (
    CreatorListSerializer, CreatorProfileSerializer, BrandProfileSerializer,
    PortfolioItemSerializer, KYCSerializer, CampaignSerializer,
    BasicInfoSerializer, PreferencesSerializer, PortfolioCreateSerializer,
    KYCSubmitSerializer, CampaignCreateSerializer, PLATFORMS
)

User = get_user_model()

logger = logging.getLogger(__name__)

INDUSTRIES = [
    'IT & Technology', 'Entertainment', 'Fashion & Beauty', 'Food & Beverage',
    'Healthcare', 'Education', 'Finance & Banking', 'Travel & Tourism',
    'Sports & Fitness', 'Automotive', 'Real Estate', 'E-commerce',
    'Manufacturing', 'Media & Advertising', 'Consulting', 'Non-Profit',
    'Retail', 'Telecommunications', 'Energy', 'Transportation',
    'Agriculture', 'Construction', 'Legal Services', 'Insurance',
]

HIGHLIGHTED_INDUSTRIES = ['IT & Technology', 'Entertainment', 'Fashion & Beauty', 'E-commerce']

DEFAULT_PLATFORM = 'instagram'


def advance_onboarding(user, step):
    if user.onboarding_step < step:
        user.onboarding_step = step
        user.save(update_fields=['onboarding_step', 'updated_at'])


def active_creators():
    return CreatorProfile.objects.filter(user__status='active').select_related('user').prefetch_related(
        'social_accounts'
    )


@cached_query(cache_ttl=lambda: get_setting('CREATORS_CACHE_TTL'), key_prefix=CREATORS_LIST_PREFIX)
def creators_by_platform():
    """Serialized active creators grouped by the platforms they publish on"""
    grouped = {platform: [] for platform in PLATFORMS}
    for creator in active_creators().order_by('-created_at'):
        data = CreatorListSerializer(creator).data
        accounts = list(creator.social_accounts.all())
        if not accounts:
            grouped[DEFAULT_PLATFORM].append(data)
            continue
        seen = set()
        for account in accounts:
            platform = account.platform.lower()
            if platform in grouped and platform not in seen:
                grouped[platform].append(data)
                seen.add(platform)
    return grouped


@api_view(['GET'])
@permission_classes([AllowAny])
def industry_list(request):
    return Response({'industries': INDUSTRIES, 'highlighted': HIGHLIGHTED_INDUSTRIES})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def my_profile(request):
    """Current user with the profile that matches their role"""
    user = request.user
    data = {'user': UserSerializer(user).data, 'creator_profile': None, 'brand_profile': None}
    if user.is_creator and hasattr(user, 'creator_profile'):
        data['creator_profile'] = CreatorProfileSerializer(user.creator_profile).data
    elif user.is_brand and hasattr(user, 'brand_profile'):
        brand = user.brand_profile
        data['brand_profile'] = BrandProfileSerializer(brand).data
        data['campaigns'] = CampaignSerializer(brand.campaigns.all(), many=True).data
    return Response(data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def update_basic_info(request):
    """Store the profile setup screen on the user and their role profile"""
    user = request.user
    if user.user_type not in ('creator', 'brand'):
        return Response({'error': 'Invalid user type'}, status=status.HTTP_400_BAD_REQUEST)

    serializer = BasicInfoSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    data = serializer.validated_data

    if user.is_brand:
        if not (data.get('role') or '').strip():
            return Response(
                {'error': 'Role is required', 'detail': 'Please select your role in the organization'},
                status=status.HTTP_400_BAD_REQUEST
            )
        if not data.get('business_type'):
            return Response(
                {'error': 'Business type is required', 'detail': 'Please select your business type'},
                status=status.HTTP_400_BAD_REQUEST
            )

    email = (data.get('email') or '').strip()
    if email and User.objects.filter(email__iexact=email).exclude(pk=user.pk).exists():
        return Response(
            {'error': 'Email already exists', 'detail': 'An account with this email already exists'},
            status=status.HTTP_409_CONFLICT
        )

    with transaction.atomic():
        user_fields = []
        if email and email != user.email:
            user.email = email
            user_fields.append('email')
        if data.get('name'):
            user.name = data['name'].strip()
            user_fields.append('name')
        if user.onboarding_step < 2:
            user.onboarding_step = 2
            user_fields.append('onboarding_step')
        if user_fields:
            user.save(update_fields=user_fields + ['updated_at'])

        common = {
            'date_of_birth': data.get('dob'),
            'location_city': data['city'],
            'location_state': data.get('state') or '',
            'location_pincode': data.get('pincode') or '',
        }
        if user.is_creator:
            profile, _ = CreatorProfile.objects.update_or_create(
                user=user,
                defaults={**common, 'gender': data.get('gender') or ''}
            )
            profile_data = CreatorProfileSerializer(profile).data
        else:
            defaults = {
                **common,
                'business_type': data['business_type'],
                'website_url': data.get('website_url') or '',
                'role_in_organization': data['role'].strip(),
            }
            if data.get('company_name'):
                defaults['company_name'] = data['company_name']
            profile, created = BrandProfile.objects.update_or_create(user=user, defaults=defaults)
            if created and not profile.company_name:
                profile.company_name = user.name
                profile.save(update_fields=['company_name'])
            profile_data = BrandProfileSerializer(profile).data

    return Response({'message': 'Basic info updated successfully', 'profile': profile_data})


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def update_preferences(request):
    """Save categories, bio and languages picked during onboarding"""
    user = request.user
    if user.user_type not in ('creator', 'brand'):
        return Response({'error': 'Invalid user type'}, status=status.HTTP_400_BAD_REQUEST)

    serializer = PreferencesSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    data = serializer.validated_data

    if user.is_creator:
        platforms = [p.lower() for p in data.get('platform') or []]
        if not platforms:
            return Response(
                {'platform': ['At least one platform required']},
                status=status.HTTP_400_BAD_REQUEST
            )
        invalid = [p for p in platforms if p not in PLATFORMS]
        if invalid:
            return Response(
                {'platform': [f"Unsupported platform(s): {', '.join(invalid)}"]},
                status=status.HTTP_400_BAD_REQUEST
            )
        profile, _ = CreatorProfile.objects.update_or_create(
            user=user,
            defaults={
                'content_categories': data['categories'],
                'bio': data['about'],
                'languages': data['languages'],
                'platforms': platforms,
                'date_of_birth': data.get('dateOfBirth'),
            }
        )
        advance_onboarding(user, 1)
        return Response({
            'message': 'Creator preferences updated successfully',
            'profile': CreatorProfileSerializer(profile).data,
        })

    defaults = {
        'industries': data['categories'],
        'industry': data['categories'][0],
        'description': data['about'],
        'languages': data['languages'],
        'role_in_organization': data.get('role') or '',
        'date_of_birth': data.get('dateOfBirth'),
    }
    profile, created = BrandProfile.objects.update_or_create(user=user, defaults=defaults)
    if created and not profile.company_name:
        profile.company_name = user.name
        profile.save(update_fields=['company_name'])
    advance_onboarding(user, 1)
    return Response({
        'message': 'Brand preferences updated successfully',
        'profile': BrandProfileSerializer(profile).data,
    })


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def create_portfolio(request):
    """Add a portfolio item to the caller's creator or brand profile"""
    user = request.user
    creator = getattr(user, 'creator_profile', None) if user.is_creator else None
    brand = getattr(user, 'brand_profile', None) if user.is_brand else None
    if creator is None and brand is None:
        return Response(
            {'error': 'Profile not found', 'detail': 'Complete your profile before adding portfolio items'},
            status=status.HTTP_404_NOT_FOUND
        )

    serializer = PortfolioCreateSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    data = serializer.validated_data

    item = PortfolioItem.objects.create(
        creator=creator,
        brand=brand,
        title=data.get('title') or data['fileName'],
        description=data.get('description') or '',
        media_url=data['mediaUrl'],
        media_type=data['mediaType'],
        file_name=data['fileName'],
        file_size=data['fileSize'],
        mime_type=data['mimeType'],
        platform=data.get('platform') or '',
    )
    return Response(PortfolioItemSerializer(item).data, status=status.HTTP_201_CREATED)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def submit_kyc(request):
    """Submit or replace the creator's identity documents"""
    user = request.user
    if not user.is_creator:
        return Response({'error': 'Only creators can submit KYC'}, status=status.HTTP_403_FORBIDDEN)
    creator = getattr(user, 'creator_profile', None)
    if creator is None:
        return Response({'error': 'Creator profile not found'}, status=status.HTTP_404_NOT_FOUND)

    serializer = KYCSubmitSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    data = serializer.validated_data

    document_type = data['documentType'].upper()
    aadhaar_data = data.get('aadhaarData') or {}
    document_number = data.get('documentNumber') or ''
    if document_type == 'EKYC' and not document_number:
        document_number = str(aadhaar_data.get('uid', ''))

    kyc, created = KYC.objects.update_or_create(
        creator=creator,
        defaults={
            'document_type': document_type,
            'document_number': document_number,
            'front_image_url': data.get('frontImageUrl') or '',
            'back_image_url': data.get('backImageUrl') or '',
            'aadhaar_data': aadhaar_data,
            'status': 'pending',
            'rejection_reason': '',
            'verified_at': None,
        }
    )
    create_audit_log(
        request=request,
        action='kyc_submit',
        model_name='KYC',
        object_id=str(kyc.id),
        object_name=str(creator),
        changes={'document_type': document_type, 'resubmitted': not created}
    )
    return Response(
        {'message': 'KYC submitted successfully', 'kyc': KYCSerializer(kyc).data},
        status=status.HTTP_201_CREATED if created else status.HTTP_200_OK
    )


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def create_campaign(request):
    user = request.user
    if not user.is_brand:
        return Response({'error': 'Only brands can create campaigns'}, status=status.HTTP_403_FORBIDDEN)
    brand = getattr(user, 'brand_profile', None)
    if brand is None:
        return Response({'error': 'Brand profile not found'}, status=status.HTTP_404_NOT_FOUND)

    serializer = CampaignCreateSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    data = serializer.validated_data

    campaign = Campaign.objects.create(
        brand=brand,
        title=data['title'],
        description=data['description'],
        budget_min=data['budget'],
        budget_max=data.get('budgetMax', data['budget']),
        duration=data['duration'],
        requirements=data['requirements'],
        target_audience=data['targetAudience'],
        campaign_type=data.get('campaignType') or '',
        content_guidelines=data.get('contentGuidelines') or '',
    )
    create_audit_log(
        request=request,
        action='create',
        model_name='Campaign',
        object_id=str(campaign.id),
        object_name=campaign.title,
    )
    return Response(CampaignSerializer(campaign).data, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def creator_detail(request, pk):
    creator = get_object_or_404(active_creators(), pk=pk)
    return Response(CreatorProfileSerializer(creator).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def creator_list(request):
    """Active creators grouped by platform for the brand home screen"""
    return Response(creators_by_platform())


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def creator_list_by_platform(request, platform):
    """Filterable creator listing for one platform"""
    platform = platform.lower()
    if platform not in PLATFORMS:
        return Response(
            {'error': 'Invalid platform', 'detail': f"Platform must be one of: {', '.join(PLATFORMS)}"},
            status=status.HTTP_400_BAD_REQUEST
        )

    try:
        limit = min(int(request.query_params.get('limit', 20)), 100)
        offset = max(int(request.query_params.get('offset', 0)), 0)
    except ValueError:
        return Response({'error': 'limit and offset must be integers'}, status=status.HTTP_400_BAD_REQUEST)

    filters_dict = {key: value for key, value in request.query_params.items()}
    filters_dict.update({'platform': platform, 'limit': limit, 'offset': offset})
    cached_data, cache_key = get_cached_creators_list(filters_dict)
    if cached_data is not None:
        logger.debug(f"Cache HIT for creators list: {cache_key}")
        return Response(cached_data)

    platform_query = Q(social_accounts__platform=platform)
    if platform == DEFAULT_PLATFORM:
        platform_query |= Q(social_accounts__isnull=True)
    queryset = active_creators().filter(platform_query).distinct()

    creator_filter = CreatorFilter(request.query_params, queryset=queryset)
    if not creator_filter.is_valid():
        return Response(creator_filter.errors, status=status.HTTP_400_BAD_REQUEST)
    creators = creator_filter.qs

    total = creators.count()
    data = {
        'platform': platform,
        'count': total,
        'limit': limit,
        'offset': offset,
        'results': CreatorListSerializer(creators[offset:offset + limit], many=True).data,
    }
    cache_creators_list(cache_key, data)
    return Response(data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def creator_detail_by_platform(request, platform, pk):
    platform = platform.lower()
    if platform not in PLATFORMS:
        return Response({'error': 'Invalid platform'}, status=status.HTTP_400_BAD_REQUEST)
    creator = get_object_or_404(active_creators(), pk=pk)
    data = CreatorProfileSerializer(creator).data
    data['platform_account'] = next(
        (account for account in data['social_accounts'] if account['platform'] == platform),
        None
    )
    return Response(data)
