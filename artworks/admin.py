"""Django admin configuration for the catalog."""

from django.contrib import admin
from .models import Artist, Artwork, Exhibition


class ArtworkInline(admin.TabularInline):
    """Inline editor for an artist's works."""

    model = Artwork
    extra = 0
    fields = ('title', 'price', 'category', 'availability', 'featured')


@admin.register(Artist)
class ArtistAdmin(admin.ModelAdmin):
    list_display = ('name', 'specialty', 'featured', 'is_approved', 'created_at')
    list_filter = ('featured', 'is_approved')
    search_fields = ('name', 'user__username')
    inlines = [ArtworkInline]
    actions = ['approve_artists']

    @admin.action(description="Approve selected artists")
    def approve_artists(self, request, queryset):
        updated = queryset.update(is_approved=True)
        self.message_user(request, f"{updated} artist(s) approved.")


@admin.register(Artwork)
class ArtworkAdmin(admin.ModelAdmin):
    """Admin configuration for artworks and their availability."""

    list_display = ('title', 'artist', 'price', 'category', 'availability', 'featured')
    list_editable = ('availability', 'featured')
    list_filter = ('availability', 'category', 'featured')
    search_fields = ('title', 'artist__name')


@admin.register(Exhibition)
class ExhibitionAdmin(admin.ModelAdmin):
    list_display = ('title', 'start_date', 'end_date', 'current')
    list_filter = ('current',)
    search_fields = ('title',)
