from django.db import models


class OrderStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    ACCEPTED = "accepted", "Accepted"
    IN_PROGRESS = "in_progress", "In Progress"
    DELIVERED = "delivered", "Delivered"
    COMPLETED = "completed", "Completed"
    REJECTED = "rejected", "Rejected"
    CANCELLED = "cancelled", "Cancelled"


class OrderType(models.TextChoices):
    OUTLET_PICKUP = "outlet_pickup", "Outlet Pickup"
    OUTLET_DELIVERY = "outlet_delivery", "Outlet Delivery"
    ON_THE_WHEELS = "on_the_wheels", "On The Wheels"


# order types that need a destination to be delivered to
DELIVERY_ORDER_TYPES = frozenset({OrderType.OUTLET_DELIVERY, OrderType.ON_THE_WHEELS})

# no field but audit metadata changes once an order reaches one of these;
# delivered -> completed is the single allowed exit
TERMINAL_STATUSES = frozenset(
    {
        OrderStatus.DELIVERED,
        OrderStatus.COMPLETED,
        OrderStatus.REJECTED,
        OrderStatus.CANCELLED,
    }
)

# statuses after which nothing is left to watch on a tracking screen
CLOSED_STATUSES = frozenset(
    {OrderStatus.COMPLETED, OrderStatus.REJECTED, OrderStatus.CANCELLED}
)

TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.ACCEPTED, OrderStatus.REJECTED, OrderStatus.CANCELLED},
    OrderStatus.ACCEPTED: {OrderStatus.IN_PROGRESS, OrderStatus.CANCELLED},
    OrderStatus.IN_PROGRESS: {OrderStatus.DELIVERED, OrderStatus.CANCELLED},
    OrderStatus.DELIVERED: {OrderStatus.COMPLETED},
    OrderStatus.COMPLETED: set(),
    OrderStatus.REJECTED: set(),
    OrderStatus.CANCELLED: set(),
}


def can_transition(current, target):
    return target in TRANSITIONS.get(current, ())
