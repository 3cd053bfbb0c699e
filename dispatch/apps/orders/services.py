"""
Order lifecycle.

Every transition locks the order row, checks the guard, and writes inside
one transaction. A rejected transition raises before anything is written,
so the stored order is untouched.
"""
import logging
import uuid
from typing import Any, Dict, Mapping, Optional

from django.conf import settings
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction

from apps.core.exceptions import IllegalTransition, NotFound, ValidationError
from apps.events.services import event_service
from apps.geo import GeoPoint, estimate_arrival
from apps.livesync.snapshots import OrderSnapshot
from apps.riders.services import rider_service

from .constants import DELIVERY_ORDER_TYPES, OrderStatus, OrderType, can_transition
from .models import Order

logger = logging.getLogger(__name__)

FINALIZED_ORDER_FIELDS = (
    "items",
    "total_price",
    "delivery_fee",
    "discount_amount",
    "voucher_id",
    "payment_method",
    "delivery_address",
)


class OrderService:
    @staticmethod
    def create_order(customer_id, finalized_order: Mapping[str, Any], rider_id=None) -> Order:
        """
        Create a pending order from a checkout payload.

        Totals are taken as given; the checkout has already validated them.
        Delivery order types must carry a ``destination`` of ``{lat, lng}``.
        """
        errors = {}
        if not customer_id:
            errors["customer_id"] = "This field is required."
        else:
            try:
                uuid.UUID(str(customer_id))
            except ValueError:
                errors["customer_id"] = "Must be a valid UUID."

        order_type = finalized_order.get("order_type")
        if order_type not in OrderType.values:
            errors["order_type"] = f"Must be one of {', '.join(OrderType.values)}."

        destination = GeoPoint.from_mapping(finalized_order.get("destination"))
        if order_type in DELIVERY_ORDER_TYPES and destination is None:
            errors["destination"] = f"Required for {order_type} orders."

        if errors:
            raise ValidationError("Order payload is incomplete", fields=errors)

        rider = None
        if rider_id is not None:
            rider = rider_service.get_rider(rider_id)
            if not rider.is_active:
                raise NotFound(f"Rider {rider_id} is not active")

        with transaction.atomic():
            order = Order.objects.create(
                customer_id=customer_id,
                rider=rider,
                status=OrderStatus.PENDING,
                order_type=order_type,
                destination_lat=destination.lat if destination else None,
                destination_lng=destination.lng if destination else None,
                **{
                    field: finalized_order[field]
                    for field in FINALIZED_ORDER_FIELDS
                    if finalized_order.get(field) is not None
                },
            )
            event_service.order_created(order, actor=f"customer:{customer_id}")

        logger.info("Order %s created for rider %s", order.id, rider_id)
        return order

    @staticmethod
    def get_order(order_id) -> Order:
        try:
            return Order.objects.select_related("rider").get(id=order_id)
        except (Order.DoesNotExist, ValueError, DjangoValidationError):
            raise NotFound(f"Order {order_id} not found")

    @staticmethod
    def get_snapshot(order_id) -> OrderSnapshot:
        return OrderSnapshot.from_order(OrderService.get_order(order_id))

    def accept(self, order_id, rider_id) -> Order:
        def assign(order):
            self._check_addressed_rider(order, rider_id, OrderStatus.ACCEPTED)
            if order.rider_id is None:
                order.rider = rider_service.get_rider(rider_id)

        return self._transition(
            order_id, OrderStatus.ACCEPTED, actor=f"rider:{rider_id}", apply=assign
        )

    def reject(self, order_id, rider_id, reason) -> Order:
        if not reason or not str(reason).strip():
            raise ValidationError(
                "A rejection reason is required", fields={"reason": "This field is required."}
            )

        def record_reason(order):
            self._check_addressed_rider(order, rider_id, OrderStatus.REJECTED)
            order.rejection_reason = str(reason).strip()

        return self._transition(
            order_id, OrderStatus.REJECTED, actor=f"rider:{rider_id}", apply=record_reason
        )

    def mark_in_progress(self, order_id, actor=None) -> Order:
        return self._transition(order_id, OrderStatus.IN_PROGRESS, actor=actor)

    def mark_delivered(self, order_id, actor=None) -> Order:
        return self._transition(order_id, OrderStatus.DELIVERED, actor=actor)

    def complete(self, order_id, actor=None) -> Order:
        return self._transition(order_id, OrderStatus.COMPLETED, actor=actor)

    def cancel(self, order_id, actor) -> Order:
        """Cancel from any non-terminal status. Who may cancel is the caller's call."""

        def record_actor(order):
            order.cancelled_by = str(actor) if actor else None

        return self._transition(
            order_id, OrderStatus.CANCELLED, actor=actor, apply=record_actor
        )

    @staticmethod
    def _check_addressed_rider(order, rider_id, target):
        if order.rider_id is not None and str(order.rider_id) != str(rider_id):
            raise IllegalTransition(
                order.id,
                order.status,
                target,
                message=f"Order {order.id} is addressed to another rider",
            )

    @staticmethod
    def _transition(order_id, target, actor=None, apply=None) -> Order:
        with transaction.atomic():
            try:
                order = Order.objects.select_for_update().get(id=order_id)
            except (Order.DoesNotExist, ValueError, DjangoValidationError):
                raise NotFound(f"Order {order_id} not found")

            previous = order.status
            if not can_transition(previous, target):
                logger.warning("Rejected transition %s -> %s on order %s", previous, target, order.id)
                raise IllegalTransition(order.id, previous, target)

            if apply is not None:
                apply(order)
            order.status = target
            order.version += 1
            order.save()

            event_service.order_status_changed(order, previous, actor=actor)
            if target == OrderStatus.DELIVERED:
                event_service.delivery_completed(order)

        logger.info("Order %s: %s -> %s (%s)", order.id, previous, target, actor or "system")
        return order

    @staticmethod
    def get_order_tracking_info(order_id) -> Dict[str, Any]:
        order = OrderService.get_order(order_id)
        location = None
        if order.rider_id:
            location = rider_service.get_rider_location(str(order.rider_id))

        distance, eta = estimate_arrival(
            GeoPoint.from_mapping(location),
            GeoPoint.from_values(order.destination_lat, order.destination_lng),
            settings.TRACKING_SPEED_KMH,
        )
        return {
            "order": order,
            "rider": order.rider,
            "current_location": location,
            "distance_km": distance,
            "eta_minutes": eta,
        }


order_service = OrderService()
