"""Checkout states and the moves allowed between them.

Filling -> OrderCreated -> PaymentInProgress -> PaymentReconciled, with
PaymentInProgress falling back to OrderCreated when the shopper cancels or
the capture fails. The order id never changes once assigned.
"""

from dataclasses import dataclass
from typing import Optional

from .exceptions import CheckoutStateError


@dataclass(frozen=True)
class Filling:
    submitting: bool = False


@dataclass(frozen=True)
class OrderCreated:
    order_id: int
    amount: str
    currency: str
    message: Optional[str] = None


@dataclass(frozen=True)
class PaymentInProgress:
    order_id: int
    amount: str
    currency: str
    payment_id: Optional[str] = None


@dataclass(frozen=True)
class PaymentReconciled:
    order_id: int
    amount: str
    currency: str
    payment_id: str


LEGAL_TRANSITIONS = {
    Filling: {Filling, OrderCreated},
    OrderCreated: {PaymentInProgress},
    PaymentInProgress: {PaymentInProgress, OrderCreated, PaymentReconciled},
    PaymentReconciled: set(),
}


def check_transition(current, target):
    """Raise :class:`CheckoutStateError` unless ``current -> target`` is legal."""
    if type(target) not in LEGAL_TRANSITIONS[type(current)]:
        raise CheckoutStateError(
            f'Illegal checkout transition {type(current).__name__} -> {type(target).__name__}.'
        )
    current_order = getattr(current, 'order_id', None)
    if current_order is not None and target.order_id != current_order:
        raise CheckoutStateError('The order of a checkout cannot change once created.')
    return target
