"""PayPal proxy endpoints used by the storefront's payment buttons."""

import logging

from rest_framework import status
from rest_framework.decorators import api_view, authentication_classes, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from .exceptions import PayPalError
from .paypal import PayPalClient, order_body
from .serializers import PayPalOrderRequestSerializer

logger = logging.getLogger(__name__)


def paypal_error_response(exc, message):
    code = exc.status_code if exc.status_code and 400 <= exc.status_code < 500 else status.HTTP_500_INTERNAL_SERVER_ERROR
    return Response({'error': message}, status=code)


@api_view(['GET'])
@authentication_classes([])
@permission_classes([AllowAny])
def paypal_setup(request):
    """Client token for the browser SDK."""
    try:
        token = PayPalClient.from_settings().generate_client_token()
    except PayPalError as exc:
        return paypal_error_response(exc, 'Failed to set up PayPal.')
    return Response({'clientToken': token})


@api_view(['POST'])
@authentication_classes([])
@permission_classes([AllowAny])
def paypal_create_order(request):
    serializer = PayPalOrderRequestSerializer(data=request.data)
    if not serializer.is_valid():
        return Response({'error': 'Invalid order request.', 'errors': serializer.errors}, status=status.HTTP_400_BAD_REQUEST)
    data = serializer.validated_data
    try:
        order = PayPalClient.from_settings().create_order(order_body(data['amount'], data['currency'], data['intent']))
    except PayPalError as exc:
        return paypal_error_response(exc, 'Failed to create order.')
    logger.info("Created PayPal order %s for %s %s", order.get('id'), data['amount'], data['currency'])
    return Response(order, status=status.HTTP_201_CREATED)


@api_view(['POST'])
@authentication_classes([])
@permission_classes([AllowAny])
def paypal_capture_order(request, order_id):
    try:
        result = PayPalClient.from_settings().capture_order(order_id)
    except PayPalError as exc:
        return paypal_error_response(exc, 'Failed to capture order.')
    logger.info("Captured PayPal order %s: %s", order_id, result.get('status'))
    return Response(result)
