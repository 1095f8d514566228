"""The checkout state machine.

Drives one shopper from the filled-in form to a reconciled order:
validate and create the order, mount the payment widget for its amount,
then record the captured payment and only afterwards clear the cart.
"""

import logging
from dataclasses import replace

from django.conf import settings

from cart.store import format_amount
from payments.exceptions import PaymentsError

from .exceptions import (
    AuthenticationRequired,
    BackendError,
    CheckoutStateError,
    CheckoutValidationError,
    OrderSubmissionError,
    PaymentConfirmationError,
    PaymentFailedError,
)
from .forms import CheckoutFormSerializer, build_order_payload, order_lines
from .state import Filling, OrderCreated, PaymentInProgress, PaymentReconciled, check_transition

logger = logging.getLogger(__name__)

HOME_PATH = '/'
AFTER_PAYMENT_PATH = '/artworks'
PAYMENT_METHOD = 'paypal'

ORDER_CREATED_NOTICE = 'Order created successfully! Please complete payment to finalize your order.'
PAYMENT_CANCELLED_NOTICE = 'Payment was cancelled. You can try again when you are ready.'
PAYMENT_SUCCESS_NOTICE = 'Payment successful! Your order has been confirmed.'


def default_widget_factory(**callbacks):
    from payments.widget import PaymentWidget

    return PaymentWidget(settings.PAYPAL_CLIENT_ID, **callbacks)


class CheckoutOrchestrator:
    """One checkout attempt for the shopper owning ``cart``.

    ``backend`` creates and reconciles orders, ``host`` is where the payment
    buttons render and ``navigate(path)`` leaves the checkout page.
    Operations the caller invokes raise on failure; widget callbacks record
    their outcome on :attr:`error` and :attr:`notice` instead.
    """

    def __init__(self, cart, backend, host, navigate=None, widget_factory=None, currency=None, intent=None):
        self.cart = cart
        self.backend = backend
        self.host = host
        self.navigate = navigate or (lambda path: None)
        self.currency = (currency or settings.GALLERY_CURRENCY).upper()
        self.intent = (intent or settings.GALLERY_PAYMENT_INTENT).upper()
        self.widget = (widget_factory or default_widget_factory)(
            on_success=self.on_payment_success,
            on_error=self.on_payment_error,
            on_cancel=self.on_payment_cancel,
        )
        self.state = Filling()
        self.error = None
        self.notice = None

    def _move(self, target):
        self.state = check_transition(self.state, target)
        logger.debug("Checkout moved to %s", self.state)
        return self.state

    @property
    def confirmation_failed(self):
        return isinstance(self.error, PaymentConfirmationError)

    def redirect_target(self):
        """Where to send the shopper instead of showing checkout, if anywhere."""
        if isinstance(self.state, Filling) and self.cart.is_empty():
            return HOME_PATH
        return None

    def submit(self, form_data):
        """Validate the form and cart, create the order and start payment."""
        if not isinstance(self.state, Filling):
            raise CheckoutStateError('An order has already been created for this checkout.')
        if self.state.submitting:
            raise CheckoutStateError('Your order is already being submitted.')
        if self.cart.is_empty():
            raise CheckoutValidationError('Your cart is empty.')

        form = CheckoutFormSerializer(data=form_data)
        if not form.is_valid():
            raise CheckoutValidationError(errors=form.errors)
        lines = order_lines(self.cart.items)
        amount = format_amount(self.cart.get_total_price())
        payload = build_order_payload(form.validated_data, lines, amount)

        self.error = None
        self._move(Filling(submitting=True))
        try:
            created = self.backend.create_order(payload)
        except AuthenticationRequired:
            self._move(Filling())
            raise
        except BackendError as exc:
            self._move(Filling())
            logger.warning("Order creation failed: %s", exc.server_message)
            raise OrderSubmissionError(exc.server_message) from exc

        order_id = (created or {}).get('id')
        if order_id is None:
            self._move(Filling())
            raise OrderSubmissionError('The server did not return an order id.')

        logger.info("Order %s created for %s %s", order_id, amount, self.currency)
        self._move(OrderCreated(order_id=order_id, amount=amount, currency=self.currency))
        self.notice = ORDER_CREATED_NOTICE
        self._start_payment()
        return self.state

    def retry_payment(self):
        """Remount the widget for the existing order after a cancel or failure."""
        if self.confirmation_failed:
            raise CheckoutStateError(self.error.message)
        if not isinstance(self.state, OrderCreated):
            raise CheckoutStateError('There is no order awaiting payment.')
        self.error = None
        self._start_payment()
        return self.state

    def _start_payment(self):
        order = self.state
        self._move(PaymentInProgress(order_id=order.order_id, amount=order.amount, currency=order.currency))
        try:
            self.widget.mount(self.host, order.amount, order.currency, self.intent)
        except PaymentsError as exc:
            logger.warning("Payment widget for order %s did not mount: %s", order.order_id, exc.message)
            self.on_payment_error(exc.message)

    def on_payment_success(self, payment_id):
        payment_id = payment_id.strip()
        state = self.state
        if not isinstance(state, PaymentInProgress) or self.confirmation_failed:
            logger.warning("Ignoring payment %s reported in state %s", payment_id, state)
            return
        self._move(replace(state, payment_id=payment_id))

        try:
            self.backend.update_payment(state.order_id, {
                'paymentId': payment_id,
                'paymentMethod': PAYMENT_METHOD,
                'status': 'completed',
            })
        except (BackendError, AuthenticationRequired) as exc:
            logger.error(
                "Payment %s captured but order %s could not be confirmed: %s",
                payment_id, state.order_id, exc.message,
            )
            self.error = PaymentConfirmationError(state.order_id, payment_id, reason=exc.message)
            self.notice = None
            return

        self.cart.clear_cart()
        self.widget.unmount()
        self._move(PaymentReconciled(
            order_id=state.order_id,
            amount=state.amount,
            currency=state.currency,
            payment_id=payment_id,
        ))
        logger.info("Order %s reconciled with payment %s", state.order_id, payment_id)
        self.error = None
        self.notice = PAYMENT_SUCCESS_NOTICE
        self.navigate(AFTER_PAYMENT_PATH)

    def on_payment_cancel(self):
        if not self._payment_open():
            return
        self._back_to_order(PAYMENT_CANCELLED_NOTICE)
        self.error = None
        self.notice = PAYMENT_CANCELLED_NOTICE

    def on_payment_error(self, message):
        if not self._payment_open():
            return
        self._back_to_order(message)
        self.error = PaymentFailedError(message)
        self.notice = None

    def _payment_open(self):
        return (
            isinstance(self.state, PaymentInProgress)
            and self.state.payment_id is None
            and not self.confirmation_failed
        )

    def _back_to_order(self, message):
        state = self.state
        self._move(OrderCreated(order_id=state.order_id, amount=state.amount, currency=state.currency, message=message))

    def close(self):
        """Leave checkout; tears the widget down whatever the state."""
        if self.widget.mounted:
            self.widget.unmount()
