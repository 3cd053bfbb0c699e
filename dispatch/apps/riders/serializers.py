from rest_framework import serializers

from .models import Rider


class RiderSerializer(serializers.ModelSerializer):
    class Meta:
        model = Rider
        fields = [
            "id",
            "name",
            "phone",
            "photo_url",
            "rating",
            "stock_count",
            "is_active",
            "is_online",
            "is_shift_active",
        ]


class LocationPingSerializer(serializers.Serializer):
    lat = serializers.FloatField(min_value=-90, max_value=90)
    lng = serializers.FloatField(min_value=-180, max_value=180)
    updated_at = serializers.DateTimeField(required=False)
    accuracy = serializers.FloatField(required=False, allow_null=True, min_value=0)
    speed = serializers.FloatField(required=False, allow_null=True, min_value=0)
    heading = serializers.FloatField(required=False, allow_null=True, min_value=0, max_value=360)


class NearbyQuerySerializer(serializers.Serializer):
    lat = serializers.FloatField(required=False, allow_null=True, min_value=-90, max_value=90)
    lng = serializers.FloatField(required=False, allow_null=True, min_value=-180, max_value=180)
    radius_km = serializers.FloatField(required=False, min_value=0)


class RiderMatchSerializer(serializers.Serializer):
    id = serializers.CharField(source="rider.id")
    name = serializers.CharField(source="rider.name")
    phone = serializers.CharField(source="rider.phone")
    photo_url = serializers.CharField(source="rider.photo_url", allow_null=True)
    rating = serializers.FloatField(source="rider.rating")
    stock_count = serializers.IntegerField(source="rider.stock_count")
    is_online = serializers.BooleanField(source="rider.is_online")
    is_shift_active = serializers.BooleanField(source="rider.is_shift_active")
    lat = serializers.FloatField(source="rider.location.lat")
    lng = serializers.FloatField(source="rider.location.lng")
    last_updated = serializers.DateTimeField(source="rider.location_updated_at", allow_null=True)
    distance_km = serializers.SerializerMethodField()
    eta_minutes = serializers.IntegerField()

    def get_distance_km(self, obj):
        return round(obj.distance_km, 2)
