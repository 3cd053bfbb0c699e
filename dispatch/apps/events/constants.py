# Event Types
class EventTypes:
    ORDER_CREATED = "order_created"
    ORDER_STATUS_CHANGED = "order_status_changed"
    DELIVERY_COMPLETED = "delivery_completed"
    RIDER_LOCATION_UPDATED = "rider_location_updated"

    CHOICES = [
        (ORDER_CREATED, "Order Created"),
        (ORDER_STATUS_CHANGED, "Order Status Changed"),
        (DELIVERY_COMPLETED, "Delivery Completed"),
    ]


KAFKA_TOPICS = {
    "ORDER_CREATED": "dispatch.order.created",
    "ORDER_STATUS_CHANGED": "dispatch.order.status.changed",
    "DELIVERY_COMPLETED": "dispatch.delivery.completed",
    "RIDER_LOCATION_UPDATE": "dispatch.rider.location",
    "DEAD_LETTER_QUEUE": "dispatch.dlq",
}
