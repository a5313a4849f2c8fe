from rest_framework import serializers

from .models import Property


class PropertySerializer(serializers.ModelSerializer):
    star_rating = serializers.FloatField(read_only=True)

    class Meta:
        model = Property
        fields = [
            "id",
            "title",
            "description",
            "location",
            "area",
            "price",
            "bedrooms",
            "bathrooms",
            "max_guests",
            "images",
            "amenities",
            "featured",
            "is_new",
            "rating",
            "star_rating",
            "review_count",
        ]
        read_only_fields = fields


class PropertySearchSerializer(serializers.Serializer):
    area = serializers.CharField(required=False, allow_blank=True)
    min_price = serializers.IntegerField(required=False, min_value=0)
    max_price = serializers.IntegerField(required=False, min_value=0)
    bedrooms = serializers.IntegerField(required=False, min_value=0)
    max_guests = serializers.IntegerField(required=False, min_value=1)
    amenities = serializers.ListField(child=serializers.CharField(), required=False)

    def validate(self, attrs):
        min_price = attrs.get("min_price")
        max_price = attrs.get("max_price")
        if min_price is not None and max_price is not None and min_price > max_price:
            raise serializers.ValidationError({"max_price": "Must be greater than or equal to min_price."})
        return attrs
