"""Artworks app configuration."""

from django.apps import AppConfig


class ArtworksConfig(AppConfig):
    """Django app config for the gallery catalog."""

    default_auto_field = 'django.db.models.BigAutoField'
    name = 'artworks'
