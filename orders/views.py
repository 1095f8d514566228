"""Orders API views.

Customers create orders at checkout and reconcile them after payment.
Gallery admins see every order and move it through fulfillment.
"""

import logging

from rest_framework import filters, mixins, permissions, status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from accounts.permissions import IsGalleryAdmin
from artworks.views import StandardResultsSetPagination

from . import services
from .serializers import (
    OrderCreateSerializer,
    OrderSerializer,
    OrderStatusUpdateSerializer,
    PaymentUpdateSerializer,
)

logger = logging.getLogger(__name__)


def invalid_payload(serializer, message):
    return Response({'message': message, 'errors': serializer.errors}, status=status.HTTP_400_BAD_REQUEST)


def order_error_response(exc):
    return Response(exc.as_payload(), status=exc.status_code)


class OrderViewSet(mixins.ListModelMixin, mixins.RetrieveModelMixin, viewsets.GenericViewSet):
    permission_classes = [permissions.IsAuthenticated]
    serializer_class = OrderSerializer
    pagination_class = StandardResultsSetPagination
    filter_backends = [filters.OrderingFilter]
    ordering_fields = ['created_at', 'total_amount']
    ordering = ['-created_at']

    def get_queryset(self):
        return services.orders_visible_to(self.request.user).prefetch_related('items__artwork')

    def create(self, request, *args, **kwargs):
        serializer = OrderCreateSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_payload(serializer, 'Invalid order data.')
        try:
            order = services.create_order(request.user, serializer.validated_data)
        except services.OrderError as exc:
            return order_error_response(exc)
        return Response(OrderSerializer(order).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=['patch'], url_path='payment')
    def payment(self, request, pk=None):
        """Record the captured payment for an order."""
        order = self.get_object()
        serializer = PaymentUpdateSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_payload(serializer, 'Invalid payment data.')
        data = serializer.validated_data
        try:
            order = services.record_payment(
                order.pk,
                data['paymentId'],
                payment_method=data['paymentMethod'],
                status=data['status'],
                user=request.user,
            )
        except services.OrderError as exc:
            logger.warning("Payment update for order %s rejected: %s", order.pk, exc.message)
            return order_error_response(exc)
        return Response(OrderSerializer(order).data)

    @action(detail=True, methods=['patch'], url_path='set-status', permission_classes=[IsGalleryAdmin])
    def set_status(self, request, pk=None):
        """Admin-only: move an order through fulfillment."""
        order = self.get_object()
        serializer = OrderStatusUpdateSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_payload(serializer, 'Invalid status.')
        try:
            order = services.set_status(order, serializer.validated_data['status'])
        except services.OrderError as exc:
            return order_error_response(exc)
        return Response(OrderSerializer(order).data)
