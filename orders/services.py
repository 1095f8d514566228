"""Order creation, payment reconciliation and status management.

These functions hold the rules shared by the REST views and by in-process
callers. They raise :class:`OrderError` subclasses; the views turn those into
``{"message": ...}`` responses.
"""

import logging
from decimal import Decimal

from django.db import transaction
from django.utils import timezone

from artworks.models import Artwork

from .models import Order, OrderItem

logger = logging.getLogger(__name__)

PAYMENT_STATUS_COMPLETED = 'completed'

ALLOWED_TRANSITIONS = {
    Order.Status.PENDING: {Order.Status.PAID, Order.Status.CANCELLED},
    Order.Status.PAID: {Order.Status.SHIPPED, Order.Status.CANCELLED},
    Order.Status.SHIPPED: {Order.Status.DELIVERED},
    Order.Status.DELIVERED: set(),
    Order.Status.CANCELLED: set(),
}

PAID_STATUSES = {Order.Status.PAID, Order.Status.SHIPPED, Order.Status.DELIVERED}


class OrderError(Exception):
    status_code = 400

    def __init__(self, message, errors=None):
        super().__init__(message)
        self.message = message
        self.errors = errors

    def as_payload(self):
        payload = {'message': self.message}
        if self.errors:
            payload['errors'] = self.errors
        return payload


class OrderNotFound(OrderError):
    status_code = 404


class OrderConflict(OrderError):
    status_code = 409


def orders_visible_to(user):
    """Gallery admins see every order; everyone else only their own."""
    queryset = Order.objects.all()
    if user is None:
        return queryset
    if getattr(user, 'is_gallery_admin', False):
        return queryset
    return queryset.filter(user=user)


def create_order(user, data):
    """Create a pending order from validated checkout data.

    ``data`` uses the wire names: ``customerName``, ``customerEmail``,
    ``customerAddress``, ``shippingNotes``, ``paymentMethod``, ``items``
    (``artworkId``, ``quantity``, ``price``) and ``totalAmount``. Prices are
    re-checked against the catalog; nothing is trusted from the client.
    """
    lines = list(data['items'])
    if not lines:
        raise OrderError('Order must contain at least one item.')

    artwork_ids = [line['artworkId'] for line in lines]
    if len(artwork_ids) != len(set(artwork_ids)):
        raise OrderError('Each artwork may appear only once per order.')

    with transaction.atomic():
        artworks = {
            artwork.pk: artwork
            for artwork in Artwork.objects.select_for_update().filter(pk__in=artwork_ids)
        }

        total = Decimal('0.00')
        for line in lines:
            artwork = artworks.get(line['artworkId'])
            if artwork is None:
                raise OrderError(
                    'One or more artworks no longer exist.',
                    errors={'items': [f"Artwork {line['artworkId']} not found."]},
                )
            if not artwork.is_available:
                raise OrderError(f'"{artwork.title}" is no longer available.')
            if line['quantity'] < 1:
                raise OrderError('Invalid quantity in order.')
            if Decimal(line['price']) != artwork.price:
                raise OrderError(
                    f'The price of "{artwork.title}" has changed.',
                    errors={'items': [f'Current price is {artwork.price}.']},
                )
            total += artwork.price * line['quantity']

        if Decimal(data['totalAmount']) != total:
            raise OrderError(
                'Order total does not match current prices.',
                errors={'totalAmount': [f'Expected {total}.']},
            )

        order = Order.objects.create(
            user=user if getattr(user, 'is_authenticated', False) else None,
            customer_name=data['customerName'],
            customer_email=data['customerEmail'].lower(),
            customer_address=data['customerAddress'],
            shipping_notes=data.get('shippingNotes') or '',
            payment_method=data.get('paymentMethod') or 'paypal',
            total_amount=total,
        )
        OrderItem.objects.bulk_create([
            OrderItem(
                order=order,
                artwork=artworks[line['artworkId']],
                quantity=line['quantity'],
                price=artworks[line['artworkId']].price,
            )
            for line in lines
        ])

    logger.info("Created order %s for %s (total %s)", order.pk, order.customer_email, order.total_amount)
    return order


def record_payment(order_id, payment_id, payment_method='paypal', status=PAYMENT_STATUS_COMPLETED, user=None):
    """Attach a captured payment to a pending order and mark it paid.

    Replaying the same ``payment_id`` is a no-op; a different id for an
    already-paid order is a conflict.
    """
    if status != PAYMENT_STATUS_COMPLETED:
        raise OrderError(f'Unsupported payment status "{status}".')
    if not payment_id:
        raise OrderError('A payment id is required.')

    with transaction.atomic():
        order = orders_visible_to(user).select_for_update().filter(pk=order_id).first()
        if order is None:
            raise OrderNotFound('Order not found.')

        if order.status in PAID_STATUSES:
            if order.payment_id == payment_id:
                return order
            raise OrderConflict('Order has already been paid with a different payment.')
        if order.status == Order.Status.CANCELLED:
            raise OrderConflict('Order has been cancelled.')

        order.payment_id = payment_id
        order.payment_method = payment_method or order.payment_method
        order.status = Order.Status.PAID
        order.paid_at = timezone.now()
        order.save()

    logger.info("Order %s paid with payment %s", order.pk, payment_id)
    return order


def set_status(order, new_status):
    """Move ``order`` along the fulfillment lifecycle."""
    current = order.status
    if new_status == current:
        return order
    if new_status not in ALLOWED_TRANSITIONS.get(current, set()):
        raise OrderError(f'Cannot change order status from "{current}" to "{new_status}".')

    order.status = new_status
    if new_status == Order.Status.PAID and order.paid_at is None:
        order.paid_at = timezone.now()
    order.save()
    logger.info("Order %s moved from %s to %s", order.pk, current, new_status)
    return order
