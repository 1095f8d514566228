"""Errors raised or recorded by the checkout orchestrator."""


class CheckoutError(Exception):
    """Base class; ``message`` is safe to show to the shopper."""

    default_message = 'Something went wrong during checkout.'

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)


class CheckoutStateError(CheckoutError):
    """An operation was attempted from a state that does not allow it."""

    default_message = 'This checkout step is not available right now.'


class CheckoutValidationError(CheckoutError):
    """The form or the cart failed local validation; no request was made."""

    default_message = 'Please correct the errors in the form.'

    def __init__(self, message=None, errors=None):
        super().__init__(message)
        self.errors = errors or {}


class AuthenticationRequired(CheckoutError):
    default_message = 'Please sign in to complete your order.'


class BackendError(CheckoutError):
    """The orders backend rejected a request or could not be reached.

    ``server_message`` is the server's own text, or ``None`` when the request
    never got a usable answer; ``message`` then falls back to a generic text.
    """

    default_message = 'Failed to create order. Please try again.'

    def __init__(self, message=None, status_code=None):
        self.server_message = message
        self.status_code = status_code
        super().__init__(message)


class OrderSubmissionError(CheckoutError):
    default_message = 'Failed to create order. Please try again.'


class PaymentFailedError(CheckoutError):
    """The widget reported a failed or non-completed capture."""

    default_message = 'Payment could not be completed. Please try again.'


class PaymentConfirmationError(CheckoutError):
    """Funds were captured but the order could not be marked paid.

    Never retried automatically; the shopper is sent to support with the
    captured payment id.
    """

    def __init__(self, order_id, payment_id, reason=None):
        self.order_id = order_id
        self.payment_id = payment_id
        self.reason = reason
        super().__init__(
            'Your payment succeeded but we could not confirm your order. '
            f'Please contact support and quote payment id {payment_id}.'
        )
