import django_filters
from django.db.models import Q
from .models import Package


class PackageFilter(django_filters.FilterSet):
    search = django_filters.CharFilter(method='filter_search')
    creator = django_filters.NumberFilter(field_name='creator_id')
    creator_id = django_filters.NumberFilter(field_name='creator_id')
    platform = django_filters.CharFilter(field_name='platform', lookup_expr='iexact')
    content_type = django_filters.CharFilter(field_name='content_type', lookup_expr='iexact')
    type = django_filters.ChoiceFilter(choices=Package.TYPE_CHOICES)
    min_price = django_filters.NumberFilter(field_name='price', lookup_expr='gte')
    max_price = django_filters.NumberFilter(field_name='price', lookup_expr='lte')
    is_active = django_filters.BooleanFilter(field_name='is_active')

    class Meta:
        model = Package
        fields = ['search', 'creator', 'creator_id', 'platform', 'content_type', 'type',
                  'min_price', 'max_price', 'is_active']

    def filter_search(self, queryset, name, value):
        if not value:
            return queryset
        value = value.strip()
        return queryset.filter(
            Q(title__icontains=value) |
            Q(description__icontains=value) |
            Q(content_type__icontains=value) |
            Q(creator__user__name__icontains=value)
        )
