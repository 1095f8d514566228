"""Database models for gallery users."""

from django.db import models
from django.contrib.auth.models import AbstractUser


class User(AbstractUser):
    """Custom user model.

    Extends Django's :class:`~django.contrib.auth.models.AbstractUser` with a
    ``role`` separating shoppers, artists using the self-service portal and
    gallery staff running the back office.
    """

    ROLE_CUSTOMER = 'customer'
    ROLE_ARTIST = 'artist'
    ROLE_ADMIN = 'admin'
    ROLE_CHOICES = (
        (ROLE_CUSTOMER, 'Customer'),
        (ROLE_ARTIST, 'Artist'),
        (ROLE_ADMIN, 'Gallery Admin'),
    )
    role = models.CharField(max_length=10, choices=ROLE_CHOICES, default=ROLE_CUSTOMER)

    @property
    def is_gallery_admin(self):
        return self.is_staff or self.role == self.ROLE_ADMIN

    def __str__(self):
        return self.username
