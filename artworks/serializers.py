"""Serializers for the artworks catalog."""

from rest_framework import serializers

from .models import Artist, Artwork, Exhibition


class ArtistSummarySerializer(serializers.ModelSerializer):
    """The artist reference embedded in artwork payloads."""

    class Meta:
        model = Artist
        fields = ['id', 'name']


class ArtistSerializer(serializers.ModelSerializer):
    """Artist profile with a count of works on offer."""

    imageUrl = serializers.CharField(source='image_url', required=False, allow_blank=True)
    artwork_count = serializers.SerializerMethodField()

    class Meta:
        model = Artist
        fields = ['id', 'name', 'bio', 'specialty', 'imageUrl', 'featured', 'artwork_count']

    def get_artwork_count(self, obj):
        annotated = getattr(obj, 'artwork_count', None)
        if annotated is not None:
            return annotated
        return obj.artworks.count()


class ArtworkSerializer(serializers.ModelSerializer):
    """Artwork payload.

    This is also the snapshot shape the cart stores: ``price`` is rendered as
    a decimal string and ``artist`` as ``{id, name}``.
    """

    imageUrl = serializers.CharField(source='image_url', required=False, allow_blank=True)
    artist = ArtistSummarySerializer(read_only=True)
    artist_id = serializers.PrimaryKeyRelatedField(
        queryset=Artist.objects.all(),
        source='artist',
        write_only=True,
    )

    class Meta:
        model = Artwork
        fields = [
            'id', 'title', 'description', 'medium', 'dimensions', 'price',
            'imageUrl', 'category', 'availability', 'featured',
            'artist', 'artist_id',
        ]

    def validate_price(self, value):
        if value <= 0:
            raise serializers.ValidationError("Price must be greater than zero.")
        return value


class ExhibitionSerializer(serializers.ModelSerializer):
    imageUrl = serializers.CharField(source='image_url', required=False, allow_blank=True)
    startDate = serializers.DateTimeField(source='start_date')
    endDate = serializers.DateTimeField(source='end_date')
    openingReception = serializers.CharField(source='opening_reception', required=False, allow_blank=True)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)

    class Meta:
        model = Exhibition
        fields = [
            'id', 'title', 'subtitle', 'description', 'imageUrl',
            'startDate', 'endDate', 'openingReception', 'current', 'createdAt',
        ]

    def validate(self, attrs):
        start = attrs.get('start_date', getattr(self.instance, 'start_date', None))
        end = attrs.get('end_date', getattr(self.instance, 'end_date', None))
        if start and end and end < start:
            raise serializers.ValidationError({'endDate': "End date must not be before the start date."})
        return attrs
