"""Cart app configuration."""

from django.apps import AppConfig


class CartConfig(AppConfig):
    """The shopper's cart: a session-persisted store, no database tables."""

    name = 'cart'
