import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated, AllowAny
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer, TokenRefreshSerializer
from rest_framework_simplejwt.exceptions import InvalidToken, TokenError, AuthenticationFailed
from django.conf import settings
from django.contrib.auth import get_user_model
from django.core.exceptions import ObjectDoesNotExist
from django.shortcuts import get_object_or_404
from django.db.models import Q
from django.utils import timezone

from .accounts import get_or_create_phone_user, get_or_create_google_user, delete_user_account
from .integrations import verify_google_id_token, google_display_name, GoogleTokenError
from .models import AuditLog
from .otp import issue_code, verify_code, is_valid_phone, normalize_phone, OTPThrottled, OTPInvalid
from .serializers import (
    UserSerializer, AuditLogSerializer, SendPhoneCodeSerializer,
    VerifyPhoneCodeSerializer, GoogleLoginSerializer, UpdateNameSerializer
)
from .utils import create_audit_log

User = get_user_model()

logger = logging.getLogger(__name__)


class CustomTokenObtainPairSerializer(TokenObtainPairSerializer):
    def validate(self, attrs):
        data = super().validate(attrs)
        if self.user.status == 'suspended':
            raise AuthenticationFailed('User account is suspended.')
        data['user'] = UserSerializer(self.user).data
        return data

    @classmethod
    def get_token(cls, user):
        token = super().get_token(user)
        token['user_type'] = user.user_type
        token['name'] = user.name
        return token


class CustomTokenObtainPairView(TokenObtainPairView):
    serializer_class = CustomTokenObtainPairSerializer


class CustomTokenRefreshSerializer(TokenRefreshSerializer):
    """Custom token refresh serializer that handles deleted users gracefully"""
    def validate(self, attrs):
        try:
            return super().validate(attrs)
        except (InvalidToken, TokenError):
            raise InvalidToken('Token is invalid or expired.')
        except (ObjectDoesNotExist, User.DoesNotExist):
            raise InvalidToken('Token is invalid. User no longer exists.')


class CustomTokenRefreshView(TokenRefreshView):
    """Custom token refresh view that handles deleted users gracefully"""
    serializer_class = CustomTokenRefreshSerializer


def issue_tokens(user):
    """Access/refresh pair for a user authenticated outside the password flow"""
    token = CustomTokenObtainPairSerializer.get_token(user)
    return {
        'access': str(token.access_token),
        'refresh': str(token),
    }


def mark_logged_in(user):
    user.last_login = timezone.now()
    user.is_online = True
    user.save(update_fields=['last_login', 'is_online', 'updated_at'])


@api_view(['POST'])
@permission_classes([AllowAny])
def send_phone_verification_code(request):
    """Send a 6-digit sign-in code to a phone number"""
    serializer = SendPhoneCodeSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    phone = normalize_phone(serializer.validated_data['phone'])
    if not is_valid_phone(phone):
        return Response(
            {'error': 'Invalid phone number', 'detail': 'Please provide a valid phone number'},
            status=status.HTTP_400_BAD_REQUEST
        )

    try:
        verification, delivered = issue_code(phone)
    except OTPThrottled as e:
        return Response(
            {'error': 'Too many requests', 'detail': str(e), 'retry_after': e.retry_after},
            status=status.HTTP_429_TOO_MANY_REQUESTS
        )

    payload = {
        'message': 'Verification code sent',
        'phone': phone,
        'expires_at': verification.expires_at,
        'sms_sent': delivered,
    }
    if settings.DEBUG:
        payload['code'] = verification.code
    return Response(payload)


@api_view(['POST'])
@permission_classes([AllowAny])
def verify_phone_code(request):
    """Verify a phone code and sign the user in, creating the account if needed"""
    serializer = VerifyPhoneCodeSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    data = serializer.validated_data
    phone = normalize_phone(data['phone'])
    try:
        verify_code(phone, data['code'])
    except OTPInvalid as e:
        return Response(
            {'error': 'Verification failed', 'detail': str(e)},
            status=status.HTTP_400_BAD_REQUEST
        )

    user, created = get_or_create_phone_user(
        phone,
        user_type=data.get('userType') or 'creator',
        name=(data.get('fullName') or '').strip() or None,
    )
    if user.status == 'suspended':
        return Response(
            {'error': 'Account suspended', 'detail': 'Please contact support'},
            status=status.HTTP_403_FORBIDDEN
        )

    mark_logged_in(user)
    create_audit_log(
        request=request,
        user=user,
        action='login',
        model_name='User',
        object_id=str(user.id),
        object_name=user.display_name,
        changes={'provider': 'phone', 'is_new_user': created}
    )
    return Response({
        'user': UserSerializer(user).data,
        'is_new_user': created,
        **issue_tokens(user),
    }, status=status.HTTP_201_CREATED if created else status.HTTP_200_OK)


@api_view(['POST'])
@permission_classes([AllowAny])
def google_login(request):
    """Sign in with a Google ID token"""
    serializer = GoogleLoginSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    try:
        claims = verify_google_id_token(serializer.validated_data['idToken'])
    except GoogleTokenError as e:
        return Response(
            {'error': 'Google authentication failed', 'detail': str(e)},
            status=status.HTTP_401_UNAUTHORIZED
        )

    user, created = get_or_create_google_user(
        claims['email'],
        name=google_display_name(claims),
        picture=claims.get('picture'),
        user_type=serializer.validated_data.get('userType') or 'creator',
    )
    if user.status == 'suspended':
        return Response(
            {'error': 'Account suspended', 'detail': 'Please contact support'},
            status=status.HTTP_403_FORBIDDEN
        )

    mark_logged_in(user)
    create_audit_log(
        request=request,
        user=user,
        action='login',
        model_name='User',
        object_id=str(user.id),
        object_name=user.display_name,
        changes={'provider': 'google', 'is_new_user': created}
    )
    return Response({
        'user': UserSerializer(user).data,
        'is_new_user': created,
        **issue_tokens(user),
    }, status=status.HTTP_201_CREATED if created else status.HTTP_200_OK)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def user_me(request):
    """Get current user with role profile flags"""
    user = request.user
    user_data = UserSerializer(user).data
    user_data['has_creator_profile'] = hasattr(user, 'creator_profile')
    user_data['has_brand_profile'] = hasattr(user, 'brand_profile')
    user_data['is_agent'] = user.is_agent
    user_data['is_super_admin'] = user.is_super_admin
    return Response(user_data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def update_name(request):
    serializer = UpdateNameSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    old_name = request.user.name
    request.user.name = serializer.validated_data['name']
    request.user.save(update_fields=['name', 'updated_at'])
    create_audit_log(
        request=request,
        action='update',
        model_name='User',
        object_id=str(request.user.id),
        object_name=request.user.name,
        changes={'name': {'old': old_name, 'new': request.user.name}}
    )
    return Response(UserSerializer(request.user).data)


@api_view(['POST'])
@permission_classes([AllowAny])
def check_user_exists(request):
    """Tell the sign-in screen whether a phone or email already has an account"""
    phone = normalize_phone(request.data.get('phone'))
    email = (request.data.get('email') or '').strip()
    if not phone and not email:
        return Response(
            {'error': 'Phone or email is required'},
            status=status.HTTP_400_BAD_REQUEST
        )

    query = Q()
    if phone:
        query |= Q(phone=phone)
    if email:
        query |= Q(email__iexact=email)
    user = User.objects.filter(query).first()
    return Response({
        'exists': user is not None,
        'user_type': user.user_type if user else None,
        'has_name': bool(user and user.name),
    })


@api_view(['DELETE'])
@permission_classes([IsAuthenticated])
def delete_user(request):
    """Delete the current account and everything attached to it"""
    user = request.user
    create_audit_log(
        request=request,
        action='user_delete',
        model_name='User',
        object_id=str(user.id),
        object_name=user.display_name,
        changes={'email': user.email, 'phone': user.phone, 'user_type': user.user_type}
    )
    summary = delete_user_account(user)
    return Response({'message': 'Account deleted', 'deleted': summary})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def audit_log_list(request):
    """List audit logs"""
    if request.user.is_agent or request.user.is_staff:
        audit_logs = AuditLog.objects.select_related('user').all()
    else:
        audit_logs = AuditLog.objects.select_related('user').filter(user=request.user)

    action = request.query_params.get('action')
    if action:
        audit_logs = audit_logs.filter(action=action)
    model_name = request.query_params.get('model_name')
    if model_name:
        audit_logs = audit_logs.filter(model_name=model_name)
    object_reference = request.query_params.get('object_reference')
    if object_reference:
        audit_logs = audit_logs.filter(object_reference=object_reference)

    serializer = AuditLogSerializer(audit_logs[:200], many=True)
    return Response(serializer.data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def audit_log_detail(request, pk):
    """Retrieve an audit log"""
    audit_log = get_object_or_404(AuditLog, pk=pk)

    if not (request.user.is_agent or request.user.is_staff) and audit_log.user != request.user:
        return Response({'error': 'Permission denied'}, status=status.HTTP_403_FORBIDDEN)

    serializer = AuditLogSerializer(audit_log)
    return Response(serializer.data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def global_search(request):
    """Search creators, packages, orders and tickets visible to the caller"""
    query = request.query_params.get('q', '').strip()

    if not query:
        return Response({
            'creators': [],
            'brands': [],
            'packages': [],
            'orders': [],
            'tickets': [],
        })

    from marketplace.profiles.models import CreatorProfile, BrandProfile
    from marketplace.profiles.serializers import CreatorListSerializer, BrandProfileSerializer
    from marketplace.catalog.filters import PackageFilter
    from marketplace.catalog.models import Package
    from marketplace.catalog.serializers import PackageSerializer
    from marketplace.orders.selectors import orders_visible_to
    from marketplace.orders.serializers import OrderListSerializer
    from marketplace.support.selectors import tickets_visible_to
    from marketplace.support.serializers import TicketSerializer

    results = {}

    creators = CreatorProfile.objects.filter(user__status='active').filter(
        Q(user__name__icontains=query) |
        Q(bio__icontains=query) |
        Q(location_city__icontains=query) |
        Q(social_accounts__username__icontains=query)
    ).select_related('user').prefetch_related('social_accounts').distinct()[:20]
    results['creators'] = CreatorListSerializer(creators, many=True).data

    if request.user.is_agent:
        brands = BrandProfile.objects.filter(
            Q(company_name__icontains=query) |
            Q(user__name__icontains=query) |
            Q(industry__icontains=query)
        ).select_related('user')[:20]
        results['brands'] = BrandProfileSerializer(brands, many=True).data
    else:
        results['brands'] = []

    packages_filter = PackageFilter(
        {'search': query},
        queryset=Package.objects.filter(is_active=True).select_related('creator__user')
    )
    results['packages'] = PackageSerializer(packages_filter.qs[:20], many=True).data

    orders = orders_visible_to(request.user).filter(
        Q(order_number__icontains=query) |
        Q(package__title__icontains=query)
    )[:20]
    results['orders'] = OrderListSerializer(orders, many=True).data

    tickets = tickets_visible_to(request.user).filter(
        Q(ticket_number__icontains=query) |
        Q(order__order_number__icontains=query)
    )[:20]
    results['tickets'] = TicketSerializer(tickets, many=True).data

    return Response(results)
