import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated, AllowAny

from marketplace.core.utils import create_audit_log
from .filters import PackageFilter
from .models import Package
from .serializers import PackageSerializer

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 100


def parse_pagination(request, default_limit=20):
    """Return (limit, offset) from query params or raise ValueError"""
    limit = min(int(request.query_params.get('limit', default_limit)), MAX_PAGE_SIZE)
    offset = max(int(request.query_params.get('offset', 0)), 0)
    if limit < 1:
        raise ValueError('limit must be positive')
    return limit, offset


def get_creator_profile(user):
    if not user.is_authenticated or not user.is_creator:
        return None
    return getattr(user, 'creator_profile', None)


@api_view(['GET', 'POST'])
@permission_classes([AllowAny])
def package_list_create(request):
    """Browse active packages or create one as a creator"""
    if request.method == 'GET':
        try:
            limit, offset = parse_pagination(request)
        except ValueError:
            return Response({'error': 'limit and offset must be integers'}, status=status.HTTP_400_BAD_REQUEST)

        queryset = Package.objects.filter(
            creator__user__status='active'
        ).select_related('creator__user')
        params = request.query_params.copy()
        if 'is_active' not in params:
            params['is_active'] = 'true'
        package_filter = PackageFilter(params, queryset=queryset)
        if not package_filter.is_valid():
            return Response(package_filter.errors, status=status.HTTP_400_BAD_REQUEST)
        packages = package_filter.qs

        return Response({
            'count': packages.count(),
            'limit': limit,
            'offset': offset,
            'results': PackageSerializer(packages[offset:offset + limit], many=True).data,
        })

    # POST
    if not request.user.is_authenticated:
        return Response({'error': 'Authentication required'}, status=status.HTTP_401_UNAUTHORIZED)
    if not request.user.is_creator:
        return Response({'error': 'Only creators can create packages'}, status=status.HTTP_403_FORBIDDEN)
    creator = get_creator_profile(request.user)
    if creator is None:
        return Response(
            {'error': 'Creator profile not found', 'detail': 'Complete your profile before creating packages'},
            status=status.HTTP_404_NOT_FOUND
        )

    serializer = PackageSerializer(data=request.data)
    if serializer.is_valid():
        package = serializer.save(creator=creator)
        create_audit_log(
            request=request,
            action='create',
            model_name='Package',
            object_id=str(package.id),
            object_name=package.title,
            changes={'price': str(package.price), 'currency': package.currency}
        )
        logger.info(f"Creator {creator.id} created package {package.id}")
        return Response(PackageSerializer(package).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def my_packages(request):
    """All packages of the current creator, inactive ones included"""
    creator = get_creator_profile(request.user)
    if creator is None:
        return Response({'error': 'Only creators have packages'}, status=status.HTTP_403_FORBIDDEN)
    packages = creator.packages.select_related('creator__user').all()
    return Response(PackageSerializer(packages, many=True).data)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([AllowAny])
def package_detail(request, pk):
    """Retrieve, update or delete a package"""
    try:
        package = Package.objects.select_related('creator__user').get(pk=pk)
    except Package.DoesNotExist:
        return Response(
            {'error': 'Package not found', 'detail': f'Package with id {pk} does not exist'},
            status=status.HTTP_404_NOT_FOUND
        )

    is_owner = request.user.is_authenticated and package.creator.user_id == request.user.id

    if request.method == 'GET':
        if not package.is_active and not is_owner:
            return Response({'error': 'Package not found'}, status=status.HTTP_404_NOT_FOUND)
        return Response(PackageSerializer(package).data)

    if not request.user.is_authenticated:
        return Response({'error': 'Authentication required'}, status=status.HTTP_401_UNAUTHORIZED)
    if not is_owner:
        return Response(
            {'error': 'Permission denied', 'detail': 'You can only modify your own packages'},
            status=status.HTTP_403_FORBIDDEN
        )

    if request.method in ('PUT', 'PATCH'):
        old_values = {'price': str(package.price), 'is_active': package.is_active, 'title': package.title}
        serializer = PackageSerializer(package, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            package = serializer.save()
            create_audit_log(
                request=request,
                action='update',
                model_name='Package',
                object_id=str(package.id),
                object_name=package.title,
                changes={
                    'old': old_values,
                    'new': {'price': str(package.price), 'is_active': package.is_active, 'title': package.title},
                }
            )
            return Response(PackageSerializer(package).data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    # DELETE: packages referenced by orders are deactivated instead of removed
    if package.orders.exists():
        package.is_active = False
        package.save(update_fields=['is_active', 'updated_at'])
        package.cart_items.all().delete()
        create_audit_log(
            request=request,
            action='update',
            model_name='Package',
            object_id=str(package.id),
            object_name=package.title,
            changes={'is_active': {'old': True, 'new': False}, 'reason': 'delete requested with existing orders'}
        )
        return Response({'message': 'Package deactivated', 'deactivated': True})

    package_id = package.id
    title = package.title
    package.delete()
    create_audit_log(
        request=request,
        action='delete',
        model_name='Package',
        object_id=str(package_id),
        object_name=title,
    )
    return Response(status=status.HTTP_204_NO_CONTENT)
