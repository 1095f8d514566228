"""DRF serializers for the cart API."""

from rest_framework import serializers

from artworks.models import Artwork


class CartItemInputSerializer(serializers.Serializer):
    """Payload for adding an artwork to the cart."""

    artworkId = serializers.IntegerField(min_value=1)
    quantity = serializers.IntegerField(min_value=1, default=1)

    def validate_artworkId(self, value):
        artwork = Artwork.objects.select_related('artist').filter(pk=value).first()
        if artwork is None:
            raise serializers.ValidationError('Artwork not found.')
        if not artwork.is_available:
            raise serializers.ValidationError('This artwork is no longer available.')
        self.context['artwork'] = artwork
        return value


class CartQuantitySerializer(serializers.Serializer):
    """Payload for changing the quantity of an existing line."""

    quantity = serializers.IntegerField(min_value=1)
