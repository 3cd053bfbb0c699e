"""
Immutable order snapshot held by a tracking screen, and the reducer that
folds partial change payloads into it.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Mapping, Optional

from apps.geo import GeoPoint
from apps.orders.constants import TERMINAL_STATUSES

PATCHABLE_FIELDS = (
    "status",
    "rider_id",
    "rejection_reason",
    "delivery_address",
    "updated_at",
)


def _isoformat(value):
    if value is None or isinstance(value, str):
        return value
    return value.isoformat()


def _str_or_none(value):
    return None if value is None else str(value)


@dataclass(frozen=True)
class OrderSnapshot:
    order_id: str
    status: str
    version: int = 0
    customer_id: Optional[str] = None
    rider_id: Optional[str] = None
    order_type: Optional[str] = None
    destination: Optional[GeoPoint] = None
    delivery_address: str = ""
    rejection_reason: Optional[str] = None
    updated_at: Optional[str] = None

    @property
    def is_terminal(self):
        return self.status in TERMINAL_STATUSES

    @classmethod
    def from_order(cls, order) -> "OrderSnapshot":
        return cls(
            order_id=str(order.id),
            status=str(order.status),
            version=order.version,
            customer_id=_str_or_none(order.customer_id),
            rider_id=_str_or_none(order.rider_id),
            order_type=str(order.order_type),
            destination=GeoPoint.from_values(order.destination_lat, order.destination_lng),
            delivery_address=order.delivery_address,
            rejection_reason=order.rejection_reason,
            updated_at=_isoformat(order.updated_at),
        )

    @classmethod
    def from_payload(cls, data: Mapping[str, Any]) -> "OrderSnapshot":
        return cls(
            order_id=str(data["order_id"]),
            status=data["status"],
            version=data.get("version", 0),
            customer_id=data.get("customer_id"),
            rider_id=data.get("rider_id"),
            order_type=data.get("order_type"),
            destination=GeoPoint.from_mapping(data.get("destination")),
            delivery_address=data.get("delivery_address", ""),
            rejection_reason=data.get("rejection_reason"),
            updated_at=data.get("updated_at"),
        )

    def as_dict(self):
        return {
            "order_id": self.order_id,
            "status": self.status,
            "version": self.version,
            "customer_id": self.customer_id,
            "rider_id": self.rider_id,
            "order_type": self.order_type,
            "destination": self.destination.as_dict() if self.destination else None,
            "delivery_address": self.delivery_address,
            "rejection_reason": self.rejection_reason,
            "updated_at": self.updated_at,
        }


def apply_patch(snapshot: OrderSnapshot, patch: Optional[Mapping[str, Any]]) -> OrderSnapshot:
    """
    Return a new snapshot with the fields present in ``patch`` applied.

    Fields missing from the patch keep their current value. Patches for a
    different order, or whose ``version`` is not newer than the snapshot's,
    are ignored and the original snapshot is returned unchanged.
    """
    if not patch:
        return snapshot

    order_id = patch.get("order_id")
    if order_id is not None and str(order_id) != snapshot.order_id:
        return snapshot

    version = patch.get("version")
    if version is not None and version <= snapshot.version:
        return snapshot

    changes = {name: patch[name] for name in PATCHABLE_FIELDS if name in patch}
    if "destination" in patch:
        changes["destination"] = GeoPoint.from_mapping(patch["destination"])
    if version is not None:
        changes["version"] = version
    if not changes:
        return snapshot
    return replace(snapshot, **changes)
