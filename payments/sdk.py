"""The page-wide PayPal SDK.

A page holds at most one SDK object, published on :data:`SDK_NAMESPACE` by a
script load, and at most one set of buttons may use it at a time. Widgets
take the SDK with :func:`acquire` and hand it back with :func:`release`.

:class:`PayPalSdk` is the SDK itself, backed by the Orders v2 REST API: its
buttons create the provider order when rendered and inject the approval
frame into the host.
"""

import logging
import threading
from urllib.parse import parse_qs, urlencode, urlparse

from .exceptions import PaymentsError, SdkBusyError, SdkLoadError
from .host import Frame
from .paypal import SUPPORTED_INTENTS, PayPalClient, approval_url

logger = logging.getLogger(__name__)

SDK_SCRIPT_URL = 'https://www.paypal.com/sdk/js'
PROVIDER_DOMAIN = 'paypal.com'
ENTRY_POINT = 'buttons'


class SdkNamespace:
    """Page-global slot for the loaded SDK, its script tags and its owner.

    ``loaded_with`` is the ``(currency, intent)`` pair the SDK script was
    loaded for.
    """

    def __init__(self):
        self.sdk = None
        self.loaded_with = None
        self.scripts = []
        self.owner = None
        self._lock = threading.Lock()

    def reset(self):
        with self._lock:
            self.sdk = None
            self.loaded_with = None
            self.scripts = []
            self.owner = None


SDK_NAMESPACE = SdkNamespace()


def sdk_script_url(client_id, currency, intent):
    query = urlencode({
        'client-id': client_id,
        'currency': currency.upper(),
        'intent': intent.lower(),
        'components': 'buttons,funding-eligibility',
        'disable-funding': 'credit,card',
    })
    return f'{SDK_SCRIPT_URL}?{query}'


def load_paypal_script(url):
    """Default script loader: build the REST-backed SDK the URL describes."""
    params = parse_qs(urlparse(url).query)
    currency = params.get('currency', ['USD'])[0]
    intent = params.get('intent', ['capture'])[0]
    return PayPalSdk(PayPalClient.from_settings(), currency=currency, intent=intent)


def has_entry_point(sdk):
    return callable(getattr(sdk, ENTRY_POINT, None))


def load_sdk(client_id, currency, intent, script_loader=None, namespace=SDK_NAMESPACE):
    """Return the page's SDK for ``currency`` and ``intent``.

    The provider script is injected on first use and again whenever the
    currency or intent differs from the one it was loaded with. Raises
    :class:`SdkLoadError` when the script fails or loads without the buttons
    entry point. Nothing is retried.
    """
    key = (currency.upper(), intent.upper())
    if has_entry_point(namespace.sdk) and namespace.loaded_with == key:
        return namespace.sdk
    if namespace.sdk is not None:
        logger.info("Reloading PayPal SDK for %s/%s", *key)
    namespace.sdk = None
    namespace.loaded_with = None

    url = sdk_script_url(client_id, currency, intent)
    # stale tags from an earlier load
    namespace.scripts = [src for src in namespace.scripts if not src.startswith(SDK_SCRIPT_URL)]
    namespace.scripts.append(url)
    loader = script_loader or load_paypal_script
    try:
        sdk = loader(url)
    except Exception as exc:
        namespace.scripts.remove(url)
        logger.error("PayPal SDK script %s failed to load: %s", url, exc)
        raise SdkLoadError() from exc

    if not has_entry_point(sdk):
        namespace.scripts.remove(url)
        logger.error("PayPal SDK loaded but the buttons component is missing")
        raise SdkLoadError('PayPal Buttons component not available')

    namespace.sdk = sdk
    namespace.loaded_with = key
    return sdk


def acquire(owner, namespace=SDK_NAMESPACE):
    with namespace._lock:
        if namespace.owner is not None and namespace.owner is not owner:
            raise SdkBusyError()
        namespace.owner = owner


def release(owner, namespace=SDK_NAMESPACE):
    with namespace._lock:
        if namespace.owner is owner:
            namespace.owner = None


class OrderActions:
    """The ``actions.order`` handle passed to button callbacks."""

    def __init__(self, client, order_id=None):
        self.client = client
        self.order_id = order_id
        self.created = None

    def create(self, body):
        self.created = self.client.create_order(body)
        self.order_id = self.created['id']
        return self.order_id

    def capture(self):
        return self.client.capture_order(self.order_id)

    def authorize(self):
        return self.client.authorize_order(self.order_id)


class Actions:
    def __init__(self, client, order_id=None):
        self.order = OrderActions(client, order_id)


class PayPalButtons:
    """One rendering of the PayPal buttons.

    ``options`` carries ``style`` and the ``create_order``, ``on_approve``,
    ``on_error`` and ``on_cancel`` callbacks.
    """

    def __init__(self, sdk, options):
        self.sdk = sdk
        self.options = options
        self.order_id = None
        self.closed = False

    def is_eligible(self):
        return self.sdk.intent in SUPPORTED_INTENTS and bool(self.sdk.client.client_id)

    def render(self, host):
        if self.closed:
            raise PaymentsError('Buttons were closed')
        actions = Actions(self.sdk.client)
        self.order_id = self.options['create_order']({}, actions)
        url = approval_url(actions.order.created or {})
        if not url:
            raise PaymentsError('Approval URL not found in PayPal response')
        host.inject(Frame(src=url, name=f'paypal-checkout-{self.order_id}'))
        return self.order_id

    def approve(self, order_id=None):
        """The buyer approved ``order_id`` in the provider frame."""
        order_id = order_id or self.order_id
        return self.options['on_approve']({'orderID': order_id}, Actions(self.sdk.client, order_id))

    def cancel(self):
        callback = self.options.get('on_cancel')
        if callback:
            callback({'orderID': self.order_id})

    def fail(self, error):
        callback = self.options.get('on_error')
        if callback:
            callback(error)

    def close(self):
        self.closed = True


class PayPalSdk:
    def __init__(self, client, currency='USD', intent='CAPTURE'):
        self.client = client
        self.currency = currency.upper()
        self.intent = intent.upper()

    def buttons(self, options):
        return PayPalButtons(self, options)
