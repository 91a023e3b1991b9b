import django_filters
from django.db.models import Q, Sum, Value
from django.db.models.functions import Coalesce
from .models import CreatorProfile


class CreatorFilter(django_filters.FilterSet):
    """Discovery filters for creator listings"""
    search = django_filters.CharFilter(method='filter_search')
    category = django_filters.CharFilter(method='filter_category')
    language = django_filters.CharFilter(method='filter_language')
    city = django_filters.CharFilter(field_name='location_city', lookup_expr='iexact')
    state = django_filters.CharFilter(field_name='location_state', lookup_expr='iexact')
    min_followers = django_filters.NumberFilter(method='filter_min_followers')
    max_followers = django_filters.NumberFilter(method='filter_max_followers')
    verified = django_filters.BooleanFilter(field_name='verified')
    featured = django_filters.BooleanFilter(field_name='featured')

    class Meta:
        model = CreatorProfile
        fields = ['search', 'category', 'language', 'city', 'state', 'min_followers',
                  'max_followers', 'verified', 'featured']

    def filter_search(self, queryset, name, value):
        if not value:
            return queryset
        value = value.strip()
        return queryset.filter(
            Q(user__name__icontains=value) |
            Q(bio__icontains=value) |
            Q(location_city__icontains=value) |
            Q(social_accounts__username__icontains=value)
        ).distinct()

    def filter_category(self, queryset, name, value):
        # JSON list membership matched with icontains
        if not value:
            return queryset
        return queryset.filter(content_categories__icontains=f'"{value}"')

    def filter_language(self, queryset, name, value):
        if not value:
            return queryset
        return queryset.filter(languages__icontains=f'"{value}"')

    def _with_followers(self, queryset):
        if 'followers_total' in queryset.query.annotations:
            return queryset
        return queryset.annotate(
            followers_total=Coalesce(Sum('social_accounts__follower_count'), Value(0))
        )

    def filter_min_followers(self, queryset, name, value):
        if value is None:
            return queryset
        return self._with_followers(queryset).filter(followers_total__gte=value)

    def filter_max_followers(self, queryset, name, value):
        if value is None:
            return queryset
        return self._with_followers(queryset).filter(followers_total__lte=value)
