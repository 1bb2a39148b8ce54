import asyncio
import threading
import uuid
from types import SimpleNamespace

from models.order import OrderStatus
from services.notifications import (
    NotificationDispatcher, OrderEvent, status_message, STATUS_MESSAGES,
    NEW_ORDER, ORDER_STATUS_UPDATE, ORDER_CANCELLED,
)
from utils.broker import TopicBroker, chef_topic, user_topic
from utils.clock import utcnow


def _order(status=OrderStatus.PENDING):
    now = utcnow()
    return SimpleNamespace(
        id=uuid.uuid4(), plat_id=uuid.uuid4(), customer_id=uuid.uuid4(), chef_id=uuid.uuid4(),
        status=status, quantity=1, total_price=12.5, description=None, chef_notes=None,
        delivery_address=None, estimated_delivery_time=None, actual_delivery_time=None,
        created_at=now, updated_at=now,
    )


class TestTopicBroker:
    def test_subscriber_receives_published_message(self):
        broker = TopicBroker()

        async def scenario():
            sub = broker.subscribe("user/1/orders")
            delivered = broker.publish("user/1/orders", {"hello": "world"})
            message = await asyncio.wait_for(sub.get(), 1)
            return delivered, message

        delivered, message = asyncio.run(scenario())
        assert delivered == 1
        assert message == {"hello": "world"}

    def test_publish_without_subscribers(self):
        assert TopicBroker().publish("chef/1/orders", {}) == 0

    def test_topics_are_isolated(self):
        broker = TopicBroker()

        async def scenario():
            sub = broker.subscribe("user/1/orders")
            broker.publish("user/2/orders", "not for you")
            await asyncio.sleep(0.01)
            return sub.queue.qsize()

        assert asyncio.run(scenario()) == 0

    def test_publish_from_another_thread(self):
        broker = TopicBroker()

        async def scenario():
            sub = broker.subscribe("chef/9/orders")
            t = threading.Thread(target=broker.publish, args=("chef/9/orders", "from worker"))
            t.start()
            message = await asyncio.wait_for(sub.get(), 1)
            t.join()
            return message

        assert asyncio.run(scenario()) == "from worker"

    def test_full_buffer_drops_instead_of_blocking(self):
        broker = TopicBroker(queue_size=2)

        async def scenario():
            sub = broker.subscribe("user/1/orders")
            for i in range(5):
                broker.publish("user/1/orders", i)
            await asyncio.sleep(0.01)
            return sub

        sub = asyncio.run(scenario())
        assert sub.queue.qsize() == 2
        assert sub.dropped == 3

    def test_closed_loop_subscriber_is_dropped(self):
        broker = TopicBroker()

        async def scenario():
            return broker.subscribe("user/1/orders")

        asyncio.run(scenario())
        assert broker.publish("user/1/orders", "late") == 0
        assert broker.subscriber_count("user/1/orders") == 0

    def test_unsubscribe(self):
        broker = TopicBroker()

        async def scenario():
            sub = broker.subscribe("user/1/orders", "chef/1/orders")
            broker.unsubscribe(sub)

        asyncio.run(scenario())
        assert broker.subscriber_count("user/1/orders") == 0
        assert broker.subscriber_count("chef/1/orders") == 0


class TestStatusMessages:
    def test_known_statuses(self):
        assert status_message(OrderStatus.CONFIRMED) == "Your order has been accepted"
        assert status_message(OrderStatus.COMPLETED) == "Your order has been delivered. Enjoy your meal!"

    def test_fallback_for_unmapped_status(self):
        assert OrderStatus.PENDING not in STATUS_MESSAGES
        assert status_message(OrderStatus.PENDING) == "Order status changed to Pending"


class RecordingBroker:
    def __init__(self):
        self.published = []

    def publish(self, topic, message):
        self.published.append((topic, message))
        return 1


class TestDispatcher:
    def test_new_order_goes_to_chef(self):
        broker = RecordingBroker()
        order = _order()

        NotificationDispatcher(broker).order_created(order)

        topic, message = broker.published[0]
        assert topic == chef_topic(order.chef_id)
        assert message["type"] == NEW_ORDER
        assert message["status"] == "PENDING"

    def test_status_update_goes_to_customer(self):
        broker = RecordingBroker()
        order = _order(OrderStatus.PREPARING)

        NotificationDispatcher(broker).status_changed(order, OrderStatus.CONFIRMED)

        topic, message = broker.published[0]
        assert topic == user_topic(order.customer_id)
        assert message["type"] == ORDER_STATUS_UPDATE
        assert message["previous_status"] == "CONFIRMED"
        assert message["message"] == "Your order is being prepared"

    def test_cancellation_goes_to_chef(self):
        broker = RecordingBroker()
        order = _order(OrderStatus.CANCELLED)

        NotificationDispatcher(broker).status_changed(order, OrderStatus.PENDING)

        topic, message = broker.published[0]
        assert topic == chef_topic(order.chef_id)
        assert message["type"] == ORDER_CANCELLED

    def test_failures_are_swallowed(self):
        class BrokenBroker:
            def publish(self, topic, message):
                raise RuntimeError("boom")

        dispatcher = NotificationDispatcher(BrokenBroker())
        event = OrderEvent(type=NEW_ORDER, target_user_id=1, topic="chef/1/orders", order={}, message="x")

        assert dispatcher.notify(event) == 0
        assert dispatcher.order_created(_order()) == 0
