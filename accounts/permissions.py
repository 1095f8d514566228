from rest_framework import permissions


class IsGalleryAdmin(permissions.BasePermission):
    """
    Allow only gallery staff (``is_staff`` or the admin role).
    """
    def has_permission(self, request, view):
        return request.user.is_authenticated and getattr(request.user, 'is_gallery_admin', False)


class IsGalleryAdminOrReadOnly(permissions.BasePermission):
    """Allow public reads; allow writes only for gallery staff."""

    def has_permission(self, request, view):
        if request.method in permissions.SAFE_METHODS:
            return True
        return request.user.is_authenticated and getattr(request.user, 'is_gallery_admin', False)
