"""Checkout app configuration."""

from django.apps import AppConfig


class CheckoutConfig(AppConfig):
    """Checkout orchestration; no models of its own."""

    name = 'checkout'
