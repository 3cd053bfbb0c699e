from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from apps.core.exceptions import ValidationError
from apps.events.services import event_service

from .models import Order
from .serializers import (
    CancelSerializer,
    FinalizedOrderSerializer,
    OrderEventSerializer,
    OrderSerializer,
    RejectSerializer,
    RiderActionSerializer,
)
from .services import order_service


class OrderViewSet(viewsets.ViewSet):
    def list(self, request):
        orders = Order.objects.all()
        filters = {
            param: request.query_params[param]
            for param in ("rider_id", "customer_id", "status")
            if request.query_params.get(param)
        }
        try:
            orders = list(orders.filter(**filters))
        except DjangoValidationError as e:
            raise ValidationError("Invalid filter", fields={"filters": e.messages})
        serializer = OrderSerializer(orders, many=True)
        return Response(serializer.data)

    def retrieve(self, request, pk=None):
        info = order_service.get_order_tracking_info(pk)
        data = OrderSerializer(info["order"]).data
        data["tracking"] = {
            "current_location": info["current_location"],
            "distance_km": round(info["distance_km"], 2) if info["distance_km"] is not None else None,
            "eta_minutes": info["eta_minutes"],
        }
        return Response(data)

    def create(self, request):
        serializer = FinalizedOrderSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        payload = dict(serializer.validated_data)
        customer_id = payload.pop("customer_id")
        rider_id = payload.pop("rider_id", None)
        order = order_service.create_order(customer_id, payload, rider_id=rider_id)
        return Response(OrderSerializer(order).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=["post"])
    def accept(self, request, pk=None):
        serializer = RiderActionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        order = order_service.accept(pk, serializer.validated_data["rider_id"])
        return Response(OrderSerializer(order).data)

    @action(detail=True, methods=["post"])
    def reject(self, request, pk=None):
        serializer = RejectSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        order = order_service.reject(
            pk, serializer.validated_data["rider_id"], serializer.validated_data["reason"]
        )
        return Response(OrderSerializer(order).data)

    @action(detail=True, methods=["post"])
    def start(self, request, pk=None):
        order = order_service.mark_in_progress(pk, actor=request.data.get("actor"))
        return Response(OrderSerializer(order).data)

    @action(detail=True, methods=["post"])
    def deliver(self, request, pk=None):
        order = order_service.mark_delivered(pk, actor=request.data.get("actor"))
        return Response(OrderSerializer(order).data)

    @action(detail=True, methods=["post"])
    def complete(self, request, pk=None):
        order = order_service.complete(pk, actor=request.data.get("actor"))
        return Response(OrderSerializer(order).data)

    @action(detail=True, methods=["post"])
    def cancel(self, request, pk=None):
        serializer = CancelSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        order = order_service.cancel(pk, serializer.validated_data["actor"])
        return Response(OrderSerializer(order).data)

    @action(detail=True, methods=["get"])
    def events(self, request, pk=None):
        order = order_service.get_order(pk)
        serializer = OrderEventSerializer(event_service.get_order_events(order.id), many=True)
        return Response(serializer.data)
