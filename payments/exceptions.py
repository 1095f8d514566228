"""Payment integration errors."""


class PaymentsError(Exception):
    default_message = 'Payment error.'

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)


class SdkLoadError(PaymentsError):
    default_message = 'Failed to load PayPal SDK'


class SdkBusyError(PaymentsError):
    """Another widget currently owns the page-wide SDK."""

    default_message = 'PayPal buttons are already mounted elsewhere on this page'


class PaymentMethodUnavailable(PaymentsError):
    default_message = 'PayPal payment method not available'


class PayPalError(PaymentsError):
    """The PayPal REST API failed or rejected a call."""

    default_message = 'PayPal request failed'

    def __init__(self, message=None, status_code=None, debug_id=None):
        super().__init__(message)
        self.status_code = status_code
        self.debug_id = debug_id
