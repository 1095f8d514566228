"""Accounts app configuration."""

from django.apps import AppConfig


class AccountsConfig(AppConfig):
    """Gallery users: shoppers, artists and gallery staff."""

    default_auto_field = 'django.db.models.BigAutoField'
    name = 'accounts'
