"""Catalog API views.

Anyone can browse artists, artworks and exhibitions; gallery staff manage them.
Filtering/search/ordering/pagination are provided for list endpoints.
"""

from django.db import transaction
from django.db.models import Count
from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import viewsets, filters
from rest_framework.decorators import action
from rest_framework.exceptions import NotFound
from rest_framework.pagination import PageNumberPagination
from rest_framework.response import Response

from accounts.permissions import IsGalleryAdminOrReadOnly
from .filters import ArtworkFilter
from .models import Artist, Artwork, Exhibition
from .serializers import ArtistSerializer, ArtworkSerializer, ExhibitionSerializer


class StandardResultsSetPagination(PageNumberPagination):
    """Default pagination used by most API endpoints."""
    page_size = 20
    page_size_query_param = 'page_size'
    max_page_size = 100


class ArtistViewSet(viewsets.ModelViewSet):
    """Artists.

    - Public users: approved artists only.
    - Gallery staff: every artist, including pending approvals.
    """

    serializer_class = ArtistSerializer
    pagination_class = StandardResultsSetPagination
    permission_classes = [IsGalleryAdminOrReadOnly]
    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    filterset_fields = ['featured']
    search_fields = ['name', 'specialty']
    ordering_fields = ['name', 'created_at']

    def get_queryset(self):
        qs = Artist.objects.annotate(artwork_count=Count('artworks'))
        user = self.request.user
        if user.is_authenticated and getattr(user, 'is_gallery_admin', False):
            return qs
        return qs.filter(is_approved=True)


class ArtworkViewSet(viewsets.ModelViewSet):
    """Artworks.

    Sold pieces stay listed so that collectors can see the artist's
    history; use ``?availability=available`` to browse what is for sale.
    """

    serializer_class = ArtworkSerializer
    pagination_class = StandardResultsSetPagination
    permission_classes = [IsGalleryAdminOrReadOnly]
    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    filterset_class = ArtworkFilter
    search_fields = ['title', 'description', 'artist__name']
    ordering_fields = ['price', 'created_at', 'title']

    def get_queryset(self):
        qs = Artwork.objects.select_related('artist')
        user = self.request.user
        if user.is_authenticated and getattr(user, 'is_gallery_admin', False):
            return qs
        return qs.filter(artist__is_approved=True)


class ExhibitionViewSet(viewsets.ModelViewSet):
    """Exhibitions, newest first, plus ``current`` for the one on show."""

    queryset = Exhibition.objects.all()
    serializer_class = ExhibitionSerializer
    pagination_class = StandardResultsSetPagination
    permission_classes = [IsGalleryAdminOrReadOnly]
    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    filterset_fields = ['current']
    search_fields = ['title', 'subtitle', 'description']
    ordering_fields = ['start_date', 'end_date', 'created_at']

    @action(detail=False, methods=['get'])
    def current(self, request):
        exhibition = Exhibition.objects.filter(current=True).first()
        if exhibition is None:
            raise NotFound("No current exhibition found.")
        return Response(self.get_serializer(exhibition).data)

    @transaction.atomic
    def perform_create(self, serializer):
        self._keep_single_current(serializer.save())

    @transaction.atomic
    def perform_update(self, serializer):
        self._keep_single_current(serializer.save())

    def _keep_single_current(self, exhibition):
        if exhibition.current:
            Exhibition.objects.filter(current=True).exclude(pk=exhibition.pk).update(current=False)
