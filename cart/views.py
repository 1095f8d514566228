"""Cart API.

The cart lives in the shopper's Django session under the same key the
headless client uses for its local storage, so both share one format.
Authenticated and anonymous shoppers are treated alike.
"""

import logging

from rest_framework import status, viewsets
from rest_framework.authentication import SessionAuthentication
from rest_framework.decorators import action
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework_simplejwt.authentication import JWTAuthentication

from artworks.serializers import ArtworkSerializer

from .serializers import CartItemInputSerializer, CartQuantitySerializer
from .store import ArtworkSnapshot, CartStore

logger = logging.getLogger(__name__)

CART_OPEN_SESSION_KEY = 'gallery-cart-open'


def cart_for_request(request):
    """Load the cart bound to the request's session."""
    return CartStore(request.session, is_open=request.session.get(CART_OPEN_SESSION_KEY, False))


class CartSessionMixin:
    permission_classes = [AllowAny]
    authentication_classes = [SessionAuthentication, JWTAuthentication]

    def cart_response(self, cart, status_code=status.HTTP_200_OK):
        return Response(cart.as_dict(), status=status_code)


class CartViewSet(CartSessionMixin, viewsets.ViewSet):
    """Read, toggle and clear the session cart."""

    def list(self, request):
        return self.cart_response(cart_for_request(request))

    @action(detail=False, methods=['post'])
    def toggle(self, request):
        cart = cart_for_request(request)
        request.session[CART_OPEN_SESSION_KEY] = cart.toggle_cart()
        return self.cart_response(cart)

    @action(detail=False, methods=['post'])
    def clear(self, request):
        cart = cart_for_request(request)
        cart.clear_cart()
        return self.cart_response(cart)


class CartItemViewSet(CartSessionMixin, viewsets.ViewSet):
    """Add, re-quantify and remove cart lines, keyed by artwork id."""

    lookup_field = 'artwork_id'
    lookup_value_regex = r'\d+'

    def create(self, request):
        serializer = CartItemInputSerializer(data=request.data, context={'request': request})
        serializer.is_valid(raise_exception=True)
        artwork = serializer.context['artwork']
        snapshot = ArtworkSnapshot.from_dict(ArtworkSerializer(artwork).data)

        cart = cart_for_request(request)
        cart.add_to_cart(snapshot, serializer.validated_data['quantity'])
        logger.debug("Added artwork %s to cart", artwork.pk)
        return self.cart_response(cart, status.HTTP_201_CREATED)

    def partial_update(self, request, artwork_id=None):
        serializer = CartQuantitySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        cart = cart_for_request(request)
        cart.update_quantity(int(artwork_id), serializer.validated_data['quantity'])
        return self.cart_response(cart)

    def destroy(self, request, artwork_id=None):
        cart = cart_for_request(request)
        cart.remove_from_cart(int(artwork_id))
        return self.cart_response(cart)
