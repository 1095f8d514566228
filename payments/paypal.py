"""Thin client for the PayPal REST API (OAuth2 + Orders v2)."""

import logging
import time

import requests
from django.conf import settings

from cart.store import format_amount

from .exceptions import PayPalError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 60

LIVE_API_URL = 'https://api-m.paypal.com'
SANDBOX_API_URL = 'https://api-m.sandbox.paypal.com'

SUPPORTED_INTENTS = ('CAPTURE', 'AUTHORIZE')


def order_body(amount, currency, intent='CAPTURE'):
    """Single purchase unit for exactly ``amount`` in ``currency``."""
    return {
        'intent': intent.upper(),
        'purchase_units': [
            {
                'amount': {
                    'currency_code': currency.upper(),
                    'value': format_amount(amount),
                },
            }
        ],
    }


class PayPalClient:
    """Calls PayPal on behalf of the gallery's REST app credentials."""

    def __init__(self, client_id, client_secret, mode='sandbox', session=None, timeout=DEFAULT_TIMEOUT):
        self.client_id = client_id
        self.client_secret = client_secret
        self.mode = mode
        self.session = session or requests.Session()
        self.timeout = timeout
        self._token = None
        self._token_expires_at = 0.0

    @classmethod
    def from_settings(cls, **kwargs):
        return cls(settings.PAYPAL_CLIENT_ID, settings.PAYPAL_CLIENT_SECRET, settings.PAYPAL_MODE, **kwargs)

    @property
    def api_url(self):
        return LIVE_API_URL if self.mode == 'live' else SANDBOX_API_URL

    @property
    def configured(self):
        return bool(self.client_id and self.client_secret)

    def get_access_token(self):
        """OAuth2 client-credentials token, cached until shortly before expiry."""
        if self._token and time.monotonic() < self._token_expires_at:
            return self._token
        if not self.configured:
            raise PayPalError('PayPal credentials are not configured')

        try:
            response = self.session.post(
                f'{self.api_url}/v1/oauth2/token',
                auth=(self.client_id, self.client_secret),
                data={'grant_type': 'client_credentials'},
                headers={'Accept': 'application/json', 'Accept-Language': 'en_US'},
                timeout=self.timeout,
            )
            response.raise_for_status()
        except requests.exceptions.RequestException as exc:
            logger.error("[PayPal] Failed to get access token: %s", exc)
            raise PayPalError('Failed to authenticate with PayPal API') from exc

        try:
            data = response.json()
        except ValueError as exc:
            logger.error("[PayPal] Token response was not JSON: %s", exc)
            raise PayPalError('PayPal API returned an unreadable token response') from exc
        token = data.get('access_token')
        if not token:
            raise PayPalError('PayPal API did not return an access token')
        self._token = token
        self._token_expires_at = time.monotonic() + max(int(data.get('expires_in', 0)) - 60, 0)
        return token

    def _request(self, method, path, payload=None):
        headers = {
            'Content-Type': 'application/json',
            'Authorization': f'Bearer {self.get_access_token()}',
            'Prefer': 'return=representation',
        }
        try:
            response = self.session.request(
                method,
                f'{self.api_url}{path}',
                json=payload,
                headers=headers,
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as exc:
            logger.error("[PayPal] %s %s failed: %s", method, path, exc)
            raise PayPalError() from exc

        try:
            data = response.json()
        except ValueError:
            data = {}
        if not response.ok:
            message = data.get('message') or data.get('error_description') or f'PayPal returned {response.status_code}'
            logger.error(
                "[PayPal] %s %s returned %s (debug_id=%s): %s",
                method, path, response.status_code, data.get('debug_id'), message,
            )
            raise PayPalError(message, status_code=response.status_code, debug_id=data.get('debug_id'))
        return data

    def create_order(self, body):
        return self._request('POST', '/v2/checkout/orders', body)

    def get_order(self, order_id):
        return self._request('GET', f'/v2/checkout/orders/{order_id}')

    def capture_order(self, order_id):
        return self._request('POST', f'/v2/checkout/orders/{order_id}/capture', {})

    def authorize_order(self, order_id):
        return self._request('POST', f'/v2/checkout/orders/{order_id}/authorize', {})

    def generate_client_token(self):
        data = self._request('POST', '/v1/identity/generate-token', {})
        token = data.get('client_token')
        if not token:
            raise PayPalError('PayPal API did not return a client token')
        return token


def approval_url(order):
    """The buyer-approval link of a PayPal order, if it has one."""
    for link in order.get('links', []):
        if link.get('rel') in ('approve', 'payer-action'):
            return link.get('href')
    return None
