# backend/services/notifications.py
import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from fastapi.encoders import jsonable_encoder

from config import settings
from models.order import Order, OrderStatus
from utils.broker import TopicBroker, chef_topic, user_topic

logger = logging.getLogger(__name__)

NEW_ORDER = "NEW_ORDER"
ORDER_STATUS_UPDATE = "ORDER_STATUS_UPDATE"
ORDER_CANCELLED = "ORDER_CANCELLED"

# Customer-facing text keyed by the status an order moved into
STATUS_MESSAGES = {
    OrderStatus.CONFIRMED: "Your order has been accepted",
    OrderStatus.REJECTED: "The chef cannot accept this order",
    OrderStatus.PREPARING: "Your order is being prepared",
    OrderStatus.READY: "Your order is ready",
    OrderStatus.COMPLETED: "Your order has been delivered. Enjoy your meal!",
    OrderStatus.CANCELLED: "Order cancelled by the customer",
}


def status_message(status: OrderStatus) -> str:
    return STATUS_MESSAGES.get(status, f"Order status changed to {status.label}")


def order_snapshot(order: Order) -> dict:
    return jsonable_encoder({
        "id": order.id,
        "plat_id": order.plat_id,
        "customer_id": order.customer_id,
        "chef_id": order.chef_id,
        "status": order.status.value,
        "quantity": order.quantity,
        "total_price": float(order.total_price),
        "description": order.description,
        "chef_notes": order.chef_notes,
        "delivery_address": order.delivery_address,
        "estimated_delivery_time": order.estimated_delivery_time,
        "actual_delivery_time": order.actual_delivery_time,
        "created_at": order.created_at,
        "updated_at": order.updated_at,
    })


@dataclass(frozen=True)
class OrderEvent:
    type: str
    target_user_id: Any
    topic: str
    order: dict
    message: str
    previous_status: Optional[str] = None
    extra: dict = field(default_factory=dict)

    def as_message(self) -> dict:
        return {
            "type": self.type,
            "message": self.message,
            "previous_status": self.previous_status,
            "status": self.order.get("status"),
            "order": self.order,
            **self.extra,
        }


class NotificationDispatcher:
    """Fans order events out to the chef and customer topics.

    Best effort: nothing raised here ever reaches the caller.
    """

    def __init__(self, broker: TopicBroker):
        self.broker = broker

    def notify(self, event: OrderEvent) -> int:
        try:
            delivered = self.broker.publish(event.topic, event.as_message())
            logger.info("%s for order %s sent to %s (%s subscriber(s))",
                        event.type, event.order.get("id"), event.topic, delivered)
            return delivered
        except Exception:
            logger.exception("Failed to dispatch %s to %s", event.type, event.topic)
            return 0

    def order_created(self, order: Order) -> int:
        try:
            event = OrderEvent(
                type=NEW_ORDER,
                target_user_id=order.chef_id,
                topic=chef_topic(order.chef_id),
                order=order_snapshot(order),
                message="New order received",
            )
        except Exception:
            logger.exception("Could not build new order notification")
            return 0
        return self.notify(event)

    def status_changed(self, order: Order, previous_status: OrderStatus) -> int:
        try:
            if order.status is OrderStatus.CANCELLED:
                # Cancellation comes from the customer, so the chef is told
                event_type, target = ORDER_CANCELLED, order.chef_id
                topic = chef_topic(order.chef_id)
            else:
                event_type, target = ORDER_STATUS_UPDATE, order.customer_id
                topic = user_topic(order.customer_id)
            event = OrderEvent(
                type=event_type,
                target_user_id=target,
                topic=topic,
                order=order_snapshot(order),
                message=status_message(order.status),
                previous_status=previous_status.value,
            )
        except Exception:
            logger.exception("Could not build status notification")
            return 0
        return self.notify(event)


broker = TopicBroker(queue_size=settings.NOTIFICATION_QUEUE_SIZE)
dispatcher = NotificationDispatcher(broker)
