"""PayPal button widget with explicit mount/update/unmount.

The SDK never cleans up after itself: buttons must be closed and the frames
it injected removed before every re-render and on unmount, or stale frames
keep pointing at old amounts.
"""

import logging

from cart.store import format_amount

from .exceptions import PaymentMethodUnavailable, SdkLoadError
from .sdk import PROVIDER_DOMAIN, SDK_NAMESPACE, acquire, load_sdk, release

logger = logging.getLogger(__name__)

CAPTURE_COMPLETED = 'COMPLETED'

BUTTON_STYLE = {
    'layout': 'vertical',
    'color': 'gold',
    'shape': 'rect',
    'label': 'paypal',
    'tagline': False,
}


class PaymentWidget:
    """Owns the page's PayPal buttons for one checkout.

    ``on_success(payment_id)`` fires only for a capture whose status is
    exactly ``COMPLETED``. Every failure, including load errors and an
    ineligible funding source, goes to ``on_error(message)``.
    """

    def __init__(self, client_id, on_success, on_error=None, on_cancel=None,
                 script_loader=None, namespace=SDK_NAMESPACE):
        self.client_id = client_id
        self.on_success = on_success
        self.on_error = on_error
        self.on_cancel = on_cancel
        self.script_loader = script_loader
        self.namespace = namespace

        self.sdk = None
        self.sdk_params = None
        self.host = None
        self.buttons = None
        self.params = None
        self.load_error = None
        self.last_error = None

    @property
    def mounted(self):
        return self.host is not None

    def mount(self, host, amount, currency, intent='CAPTURE'):
        """Render buttons for ``amount``/``currency`` into ``host``.

        Returns True when buttons were rendered. Raises ``SdkBusyError`` if
        another widget holds the SDK.
        """
        if self.load_error:
            self._report(self.load_error)
            return False

        acquire(self, self.namespace)
        if self.host is not None and self.host is not host:
            self._teardown()
        if not self._load(currency, intent):
            self._detach()
            return False

        self.host = host
        self.params = (format_amount(amount), currency.upper(), intent.upper())
        return self._render()

    def update(self, amount=None, currency=None, intent=None):
        """Re-render if any parameter changed; returns whether it did."""
        if not self.mounted:
            return False
        current_amount, current_currency, current_intent = self.params
        params = (
            format_amount(amount) if amount is not None else current_amount,
            currency.upper() if currency else current_currency,
            intent.upper() if intent else current_intent,
        )
        if params == self.params:
            return False
        if params[1:] != self.params[1:] and not self._load(params[1], params[2]):
            self._detach()
            return False
        self.params = params
        return self._render()

    def unmount(self):
        self._teardown()
        self._detach()

    def _detach(self):
        self.host = None
        self.params = None
        release(self, self.namespace)

    def _load(self, currency, intent):
        """Make sure :attr:`sdk` was loaded for this currency and intent."""
        key = (currency.upper(), intent.upper())
        if self.sdk is not None and self.sdk_params == key:
            return True
        # buttons from the previous script must go before it is replaced
        self._teardown()
        self.sdk = None
        self.sdk_params = None
        try:
            self.sdk = load_sdk(self.client_id, currency, intent, self.script_loader, self.namespace)
        except SdkLoadError as exc:
            self.load_error = exc.message
            self._report(self.load_error)
            return False
        self.sdk_params = key
        return True

    def _teardown(self):
        if self.buttons is not None:
            try:
                self.buttons.close()
            except Exception as exc:
                logger.warning("Error cleaning up PayPal buttons: %s", exc)
            self.buttons = None
        if self.host is not None:
            removed = self.host.remove_frames(PROVIDER_DOMAIN)
            if removed:
                logger.debug("Removed %s PayPal frame(s)", removed)

    def _render(self):
        self._teardown()
        amount, currency, intent = self.params

        def create_order(data, actions):
            return actions.order.create({
                'intent': intent,
                'purchase_units': [{'amount': {'value': amount, 'currency_code': currency}}],
            })

        try:
            buttons = self.sdk.buttons({
                'style': BUTTON_STYLE,
                'create_order': create_order,
                'on_approve': self._on_approve,
                'on_error': self._on_sdk_error,
                'on_cancel': self._on_cancel,
            })
        except Exception as exc:
            logger.error("PayPal buttons initialization failed: %s", exc)
            self._report(f'Initialization failed: {exc}')
            return False
        self.buttons = buttons

        if not buttons.is_eligible():
            self._report(PaymentMethodUnavailable.default_message)
            return False
        try:
            buttons.render(self.host)
        except Exception as exc:
            logger.error("Failed to render PayPal buttons: %s", exc)
            self._report('Failed to initialize payment options')
            return False
        return True

    def _on_approve(self, data, actions):
        intent = self.params[2] if self.params else 'CAPTURE'
        try:
            if intent == 'AUTHORIZE':
                details = actions.order.authorize()
            else:
                details = actions.order.capture()
        except Exception as exc:
            logger.error("Payment capture failed: %s", exc)
            self._report(f'Payment capture failed: {exc}')
            return
        status = (details or {}).get('status')
        if status != CAPTURE_COMPLETED:
            self._report(f'Payment not completed (status: {status})')
            return
        self.last_error = None
        self.on_success(details['id'])

    def _on_sdk_error(self, error):
        logger.error("PayPal error: %s", error)
        self._report(f'Payment error: {getattr(error, "message", None) or error}')

    def _on_cancel(self, data):
        if self.on_cancel:
            self.on_cancel()

    def _report(self, message):
        self.last_error = message
        if self.on_error:
            self.on_error(message)
