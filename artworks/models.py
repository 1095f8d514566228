"""Database models for the gallery catalog: artists, their artworks and exhibitions."""

from django.db import models
from django.conf import settings


class Artist(models.Model):
    """An artist represented by the gallery.

    ``user`` links the artist to a self-service portal account when one
    exists; artists managed purely by staff have no account.
    """

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='artist_profile',
    )
    name = models.CharField(max_length=255)
    bio = models.TextField(blank=True)
    specialty = models.CharField(max_length=255, blank=True)
    image_url = models.CharField(max_length=500, blank=True)
    featured = models.BooleanField(default=False)
    is_approved = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['name']

    def __str__(self):
        return self.name


class Artwork(models.Model):
    """A single piece offered for sale."""

    class Availability(models.TextChoices):
        AVAILABLE = 'available', 'Available'
        RESERVED = 'reserved', 'Reserved'
        SOLD = 'sold', 'Sold'

    class Category(models.TextChoices):
        PAINTING = 'painting', 'Painting'
        SCULPTURE = 'sculpture', 'Sculpture'
        PHOTOGRAPHY = 'photography', 'Photography'
        MIXED_MEDIA = 'mixed-media', 'Mixed Media'

    artist = models.ForeignKey(Artist, on_delete=models.CASCADE, related_name='artworks')
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    medium = models.CharField(max_length=255, blank=True)
    dimensions = models.CharField(max_length=255, blank=True)
    price = models.DecimalField(max_digits=10, decimal_places=2)
    image_url = models.CharField(max_length=500, blank=True)
    category = models.CharField(max_length=20, choices=Category.choices, default=Category.PAINTING)
    availability = models.CharField(max_length=10, choices=Availability.choices, default=Availability.AVAILABLE)
    featured = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['id']
        indexes = [
            models.Index(fields=['availability', 'category'], name='artwork_avail_category_idx'),
        ]

    def __str__(self):
        return f"{self.title} ({self.artist.name})"

    @property
    def is_available(self):
        return self.availability == self.Availability.AVAILABLE


class Exhibition(models.Model):
    """A show in the gallery space.

    At most one exhibition is ``current``; saving one as current clears the
    flag on every other.
    """

    title = models.CharField(max_length=255)
    subtitle = models.CharField(max_length=255, blank=True)
    description = models.TextField()
    image_url = models.CharField(max_length=500, blank=True)
    start_date = models.DateTimeField()
    end_date = models.DateTimeField()
    opening_reception = models.CharField(max_length=255, blank=True)
    current = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at', '-id']

    def __str__(self):
        return self.title
