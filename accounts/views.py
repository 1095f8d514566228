"""Accounts app views.

Contains:
- Registration endpoint
- The authenticated user's profile (``me``)

Login and token refresh are SimpleJWT's own views, wired in ``urls.py``.
"""

import logging

from rest_framework import generics, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response

from .serializers import RegisterSerializer, UserProfileSerializer

logger = logging.getLogger(__name__)


class RegisterView(generics.CreateAPIView):
    """Public registration endpoint."""
    queryset = RegisterSerializer.Meta.model.objects.all()
    permission_classes = [AllowAny]
    authentication_classes = []
    serializer_class = RegisterSerializer

    def perform_create(self, serializer):
        user = serializer.save()
        logger.info("Registered %s account %s", user.role, user.username)


class UserProfileViewSet(viewsets.GenericViewSet):
    """Authenticated profile management."""
    permission_classes = [IsAuthenticated]
    serializer_class = UserProfileSerializer

    @action(detail=False, methods=['get', 'put', 'patch'])
    def me(self, request):
        """Get or update the authenticated user's profile."""
        user = request.user
        if request.method == 'GET':
            serializer = self.get_serializer(user)
            return Response(serializer.data)

        serializer = self.get_serializer(user, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return Response(serializer.data)
