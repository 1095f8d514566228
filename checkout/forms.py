"""Checkout form schema and order payload construction."""

from decimal import Decimal, InvalidOperation

from rest_framework import serializers

from cart.store import format_amount

from .exceptions import CheckoutValidationError

INVALID_CART_MESSAGE = 'Some cart items are invalid. Please review your cart.'


class AddressSerializer(serializers.Serializer):
    street = serializers.CharField(min_length=5, error_messages={'min_length': 'Street address is required.'})
    city = serializers.CharField(min_length=2, error_messages={'min_length': 'City is required.'})
    state = serializers.CharField(min_length=2, error_messages={'min_length': 'State is required.'})
    zipCode = serializers.CharField(min_length=5, error_messages={'min_length': 'ZIP code is required.'})
    country = serializers.CharField(min_length=2, error_messages={'min_length': 'Country is required.'})


class CheckoutFormSerializer(serializers.Serializer):
    """Customer and shipping details collected before an order is created."""

    customerName = serializers.CharField(
        min_length=2,
        error_messages={'min_length': 'Name must be at least 2 characters.'},
    )
    customerEmail = serializers.EmailField(error_messages={'invalid': 'Invalid email address.'})
    address = AddressSerializer()
    paymentMethod = serializers.ChoiceField(
        choices=['paypal'],
        error_messages={'invalid_choice': 'Please select a payment method.'},
    )
    shippingNotes = serializers.CharField(required=False, allow_blank=True, default='')


def order_lines(items):
    """Turn cart line items into order lines, all or nothing.

    Every line needs a positive integer artwork id, a positive price and a
    quantity of at least one; one bad line rejects the whole cart.
    """
    lines = []
    for item in items:
        artwork_id = getattr(item.artwork, 'id', None)
        try:
            price = Decimal(str(item.artwork.price))
        except (InvalidOperation, AttributeError):
            price = None
        valid = (
            isinstance(artwork_id, int) and not isinstance(artwork_id, bool) and artwork_id > 0
            and price is not None and price.is_finite() and price > 0
            and isinstance(item.quantity, int) and item.quantity >= 1
        )
        if not valid:
            raise CheckoutValidationError(INVALID_CART_MESSAGE, errors={'items': [INVALID_CART_MESSAGE]})
        lines.append({'artworkId': artwork_id, 'quantity': item.quantity, 'price': format_amount(price)})
    return lines


def build_order_payload(form, lines, total_amount):
    """Assemble the ``POST /orders`` body from validated form data."""
    address = form['address']
    parts = [address[key].strip() for key in ('street', 'city', 'state', 'zipCode', 'country')]
    return {
        'customerName': form['customerName'].strip(),
        'customerEmail': form['customerEmail'].strip().lower(),
        'customerAddress': ', '.join(parts),
        'shippingNotes': (form.get('shippingNotes') or '').strip(),
        'paymentMethod': form['paymentMethod'],
        'items': lines,
        'totalAmount': format_amount(total_amount),
    }
