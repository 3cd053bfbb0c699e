from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from apps.core.exceptions import LocationUnavailable
from apps.geo import GeoPoint

from .models import Rider
from .serializers import (
    LocationPingSerializer,
    NearbyQuerySerializer,
    RiderMatchSerializer,
    RiderSerializer,
)
from .services import rider_directory, rider_service


class RiderViewSet(viewsets.ViewSet):
    def list(self, request):
        riders = Rider.objects.filter(is_active=True)
        serializer = RiderSerializer(riders, many=True)
        return Response(serializer.data)

    def retrieve(self, request, pk=None):
        rider = rider_service.get_rider(pk)
        return Response(RiderSerializer(rider).data)

    @action(detail=False, methods=["get"])
    def nearby(self, request):
        query = NearbyQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        params = query.validated_data

        customer_location = GeoPoint.from_values(params.get("lat"), params.get("lng"))
        if customer_location is None:
            raise LocationUnavailable("lat and lng query parameters are required")

        matches = rider_directory.find_nearby(customer_location, radius_km=params.get("radius_km"))
        return Response({"riders": RiderMatchSerializer(matches, many=True).data})

    @action(detail=True, methods=["get", "post"])
    def location(self, request, pk=None):
        if request.method == "GET":
            rider_service.get_rider(pk)
            location = rider_service.get_rider_location(pk)
            if location is None:
                return Response(status=status.HTTP_204_NO_CONTENT)
            return Response(location)

        serializer = LocationPingSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        location, applied = rider_service.update_rider_location(pk, **serializer.validated_data)
        return Response(
            {"applied": applied, "location": rider_service.get_rider_location(pk)},
            status=status.HTTP_200_OK if applied else status.HTTP_202_ACCEPTED,
        )
