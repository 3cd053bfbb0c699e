from rest_framework import serializers

from apps.events.models import OrderEvent

from .constants import OrderType
from .models import Order


class LocationSerializer(serializers.Serializer):
    lat = serializers.FloatField(min_value=-90, max_value=90)
    lng = serializers.FloatField(min_value=-180, max_value=180)


class FinalizedOrderSerializer(serializers.Serializer):
    """Checkout payload handed over by the cart; totals arrive pre-validated."""

    customer_id = serializers.UUIDField()
    rider_id = serializers.UUIDField(required=False, allow_null=True)
    order_type = serializers.ChoiceField(choices=OrderType.choices)
    destination = LocationSerializer(required=False, allow_null=True)
    delivery_address = serializers.CharField(required=False, allow_blank=True, max_length=255)
    items = serializers.ListField(child=serializers.DictField(), required=False)
    total_price = serializers.DecimalField(max_digits=12, decimal_places=2)
    delivery_fee = serializers.DecimalField(max_digits=12, decimal_places=2, required=False)
    discount_amount = serializers.DecimalField(max_digits=12, decimal_places=2, required=False)
    voucher_id = serializers.CharField(required=False, allow_null=True, max_length=64)
    payment_method = serializers.CharField(required=False, allow_blank=True, max_length=30)


class OrderSerializer(serializers.ModelSerializer):
    short_code = serializers.CharField(read_only=True)
    rider_id = serializers.UUIDField(read_only=True)
    destination = serializers.SerializerMethodField()

    class Meta:
        model = Order
        fields = [
            "id",
            "short_code",
            "customer_id",
            "rider_id",
            "status",
            "order_type",
            "destination",
            "delivery_address",
            "items",
            "payment_method",
            "total_price",
            "delivery_fee",
            "discount_amount",
            "voucher_id",
            "rejection_reason",
            "cancelled_by",
            "version",
            "created_at",
            "updated_at",
        ]

    def get_destination(self, obj):
        if obj.destination_lat is None or obj.destination_lng is None:
            return None
        return {"lat": float(obj.destination_lat), "lng": float(obj.destination_lng)}


class RiderActionSerializer(serializers.Serializer):
    rider_id = serializers.UUIDField()


class RejectSerializer(RiderActionSerializer):
    reason = serializers.CharField(max_length=500)


class CancelSerializer(serializers.Serializer):
    actor = serializers.CharField(max_length=100)


class OrderEventSerializer(serializers.ModelSerializer):
    class Meta:
        model = OrderEvent
        fields = ["id", "event_type", "event_data", "actor", "rider", "timestamp"]
