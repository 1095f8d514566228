"""django-filter filtersets for catalog list endpoints."""

import django_filters

from .models import Artwork


class ArtworkFilter(django_filters.FilterSet):
    min_price = django_filters.NumberFilter(field_name='price', lookup_expr='gte')
    max_price = django_filters.NumberFilter(field_name='price', lookup_expr='lte')

    class Meta:
        model = Artwork
        fields = ['artist', 'category', 'availability', 'featured']
