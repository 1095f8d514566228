"""Payments app configuration."""

from django.apps import AppConfig


class PaymentsConfig(AppConfig):
    """PayPal integration: REST client, button widget and proxy routes."""

    name = 'payments'
