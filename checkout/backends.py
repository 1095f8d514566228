"""Clients for the orders API used by the checkout orchestrator.

Both backends expose ``create_order(payload) -> dict`` and
``update_payment(order_id, payload) -> dict`` and raise
:class:`~checkout.exceptions.BackendError` (or ``AuthenticationRequired``)
on failure.
"""

import logging

import requests

from .exceptions import AuthenticationRequired, BackendError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30


def _error_message(response):
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        for key in ('message', 'detail', 'error'):
            if body.get(key):
                return str(body[key])
    text = (response.text or '').strip()
    if text and body is None and len(text) < 300:
        return text
    return f'Server error: {response.status_code}'


class HttpOrdersBackend:
    """Talks to ``/orders`` over HTTP with the stored bearer token."""

    def __init__(self, base_url, token_storage, session=None, timeout=DEFAULT_TIMEOUT):
        self.base_url = base_url.rstrip('/')
        self.token_storage = token_storage
        self.session = session or requests.Session()
        self.timeout = timeout

    def _headers(self):
        token = self.token_storage.get_token()
        if not token:
            raise AuthenticationRequired()
        return {
            'Content-Type': 'application/json',
            'Accept': 'application/json',
            'Authorization': f'Bearer {token}',
        }

    def _send(self, method, path, payload):
        headers = self._headers()
        url = f'{self.base_url}{path}'
        try:
            response = self.session.request(method, url, json=payload, headers=headers, timeout=self.timeout)
        except requests.exceptions.RequestException as exc:
            logger.error("%s %s failed: %s", method, url, exc)
            raise BackendError() from exc

        if response.status_code == 401:
            raise AuthenticationRequired(_error_message(response))
        if not response.ok:
            message = _error_message(response)
            logger.warning("%s %s returned %s: %s", method, url, response.status_code, message)
            raise BackendError(message, status_code=response.status_code)
        try:
            return response.json()
        except ValueError:
            return {}

    def create_order(self, payload):
        return self._send('POST', '/orders/', payload)

    def update_payment(self, order_id, payload):
        return self._send('PATCH', f'/orders/{order_id}/payment/', payload)


class LocalOrdersBackend:
    """Runs the order services in-process on behalf of ``user``."""

    def __init__(self, user):
        self.user = user

    def create_order(self, payload):
        from orders import services
        from orders.serializers import OrderCreateSerializer, OrderSerializer

        if not getattr(self.user, 'is_authenticated', False):
            raise AuthenticationRequired()
        serializer = OrderCreateSerializer(data=payload)
        if not serializer.is_valid():
            raise BackendError('Invalid order data.', status_code=400)
        try:
            order = services.create_order(self.user, serializer.validated_data)
        except services.OrderError as exc:
            raise BackendError(exc.message, status_code=exc.status_code) from exc
        return OrderSerializer(order).data

    def update_payment(self, order_id, payload):
        from orders import services
        from orders.serializers import OrderSerializer, PaymentUpdateSerializer

        if not getattr(self.user, 'is_authenticated', False):
            raise AuthenticationRequired()
        serializer = PaymentUpdateSerializer(data=payload)
        if not serializer.is_valid():
            raise BackendError('Invalid payment data.', status_code=400)
        data = serializer.validated_data
        try:
            order = services.record_payment(
                order_id,
                data['paymentId'],
                payment_method=data['paymentMethod'],
                status=data['status'],
                user=self.user,
            )
        except services.OrderError as exc:
            raise BackendError(exc.message, status_code=exc.status_code) from exc
        return OrderSerializer(order).data
