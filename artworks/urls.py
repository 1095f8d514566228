from django.urls import path, include
from rest_framework.routers import DefaultRouter
from .views import ArtistViewSet, ArtworkViewSet, ExhibitionViewSet

router = DefaultRouter()
router.register(r'artists', ArtistViewSet, basename='artist')
router.register(r'artworks', ArtworkViewSet, basename='artwork')
router.register(r'exhibitions', ExhibitionViewSet, basename='exhibition')

urlpatterns = [
    path('', include(router.urls)),
]
