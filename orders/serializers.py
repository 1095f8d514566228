"""DRF serializers for the orders API.

Request payloads use the storefront's camelCase wire names.
"""

from rest_framework import serializers

from .models import Order, OrderItem
from .services import PAYMENT_STATUS_COMPLETED


class OrderLineInputSerializer(serializers.Serializer):
    artworkId = serializers.IntegerField(min_value=1)
    quantity = serializers.IntegerField(min_value=1)
    price = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0)


class OrderCreateSerializer(serializers.Serializer):
    """Checkout payload for ``POST /api/orders/``."""

    customerName = serializers.CharField(min_length=2, max_length=255)
    customerEmail = serializers.EmailField()
    customerAddress = serializers.CharField(max_length=1000)
    shippingNotes = serializers.CharField(required=False, allow_blank=True, default='')
    paymentMethod = serializers.ChoiceField(choices=['paypal'], default='paypal')
    items = OrderLineInputSerializer(many=True, allow_empty=False)
    totalAmount = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0)


class PaymentUpdateSerializer(serializers.Serializer):
    """Reconciliation payload for ``PATCH /api/orders/{id}/payment/``."""

    paymentId = serializers.CharField(max_length=255)
    paymentMethod = serializers.CharField(max_length=20, default='paypal')
    status = serializers.CharField()

    def validate_status(self, value):
        if value != PAYMENT_STATUS_COMPLETED:
            raise serializers.ValidationError(f'Only "{PAYMENT_STATUS_COMPLETED}" payments can be recorded.')
        return value


class OrderStatusUpdateSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Order.Status.choices)


class OrderItemSerializer(serializers.ModelSerializer):
    artworkId = serializers.IntegerField(source='artwork_id', read_only=True)
    title = serializers.ReadOnlyField(source='artwork.title')

    class Meta:
        model = OrderItem
        fields = ['id', 'artworkId', 'title', 'quantity', 'price']


class OrderSerializer(serializers.ModelSerializer):
    customerName = serializers.ReadOnlyField(source='customer_name')
    customerEmail = serializers.ReadOnlyField(source='customer_email')
    customerAddress = serializers.ReadOnlyField(source='customer_address')
    shippingNotes = serializers.ReadOnlyField(source='shipping_notes')
    paymentMethod = serializers.ReadOnlyField(source='payment_method')
    paymentId = serializers.ReadOnlyField(source='payment_id')
    totalAmount = serializers.DecimalField(source='total_amount', max_digits=10, decimal_places=2, read_only=True)
    paidAt = serializers.DateTimeField(source='paid_at', read_only=True)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)
    items = OrderItemSerializer(many=True, read_only=True)

    class Meta:
        model = Order
        fields = [
            'id', 'customerName', 'customerEmail', 'customerAddress', 'shippingNotes',
            'paymentMethod', 'paymentId', 'totalAmount', 'status', 'paidAt', 'createdAt',
            'items',
        ]
        read_only_fields = ['status']
