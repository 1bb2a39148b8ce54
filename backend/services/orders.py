# backend/services/orders.py
"""Order lifecycle.

Orders move one step at a time::

    PENDING -> CONFIRMED -> PREPARING -> READY -> COMPLETED

with two side exits: ``REJECTED`` (chef, from PENDING) and ``CANCELLED``
(customer, from PENDING or CONFIRMED). COMPLETED, CANCELLED and REJECTED are
terminal. The total price is captured once at creation; later dish or
promotion changes never touch it. Corrections go through ``adjust_price``.
"""
import logging
from collections import Counter
from datetime import datetime
from decimal import Decimal
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session, selectinload

from models.cart import CartItem
from models.order import Order, OrderIngredient, OrderStatus, TERMINAL_STATUSES
from models.plat import Plat
from models.users import User
from services.notifications import dispatcher
from services.plats import select_ingredients
from services.pricing import price_for, to_money
from utils.clock import utcnow
from utils.errors import NotFound, InvalidArgument, InvalidStateTransition
from utils.permissions import authorize, enforce

logger = logging.getLogger(__name__)

# Steps the chef (or an admin) drives
CHEF_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.CONFIRMED, OrderStatus.REJECTED},
    OrderStatus.CONFIRMED: {OrderStatus.PREPARING},
    OrderStatus.PREPARING: {OrderStatus.READY},
    OrderStatus.READY: {OrderStatus.COMPLETED},
}

# States the customer may still cancel from
CANCELLABLE_STATUSES = frozenset({OrderStatus.PENDING, OrderStatus.CONFIRMED})

# Delivery address stays editable until the kitchen starts
ADDRESS_EDITABLE_STATUSES = CANCELLABLE_STATUSES


def can_transition(current: OrderStatus, target: OrderStatus) -> bool:
    return target in CHEF_TRANSITIONS.get(current, set())


def _load(db: Session, order_id) -> Order:
    order = (
        db.query(Order)
        .options(selectinload(Order.ingredients))
        .filter(Order.id == order_id)
        .first()
    )
    if order is None:
        raise NotFound(f"Order {order_id} not found")
    return order


def _snapshot(ingredient_id, name, price, is_free) -> OrderIngredient:
    return OrderIngredient(ingredient_id=ingredient_id, ingredient_name=name, ingredient_price=price,
                           is_free=is_free, quantity=1)


def _build_order(db: Session, customer: User, plat: Plat, quantity: int, ingredients: List[OrderIngredient],
                 description: Optional[str], delivery_address: Optional[str], as_of: datetime) -> Order:
    price = price_for(db, plat, as_of)
    extras = sum((Decimal(str(i.ingredient_price)) for i in ingredients if not i.is_free), Decimal("0"))
    order = Order(
        plat_id=plat.id,
        customer_id=customer.id,
        chef_id=plat.chef_id,
        status=OrderStatus.PENDING,
        quantity=quantity,
        description=description,
        delivery_address=delivery_address,
        total_price=to_money((price.unit_price + extras) * quantity),
        created_at=as_of,
        updated_at=as_of,
    )
    order.ingredients.extend(ingredients)
    return order


def create_order(db: Session, customer: User, plat_id, quantity: int = 1, selected_ingredient_ids: Iterable = (),
                 description: Optional[str] = None, delivery_address: Optional[str] = None) -> Order:
    if quantity is None or quantity < 1:
        raise InvalidArgument("Quantity must be at least 1")
    plat = db.get(Plat, plat_id)
    if plat is None:
        raise NotFound(f"Dish {plat_id} not found")

    ingredients = [_snapshot(i.id, i.name, i.price, i.is_free)
                   for i in select_ingredients(db, plat.id, selected_ingredient_ids)]
    order = _build_order(db, customer, plat, quantity, ingredients, description, delivery_address, utcnow())
    db.add(order)
    db.commit()
    db.refresh(order)
    logger.info("Order %s created for customer %s, dish %s, total %s", order.id, customer.id, plat.id, order.total_price)

    dispatcher.order_created(order)
    return order


def checkout_cart(db: Session, customer: User, delivery_address: Optional[str] = None,
                  description: Optional[str] = None) -> List[Order]:
    """Turn every cart line into an order and empty the cart atomically."""
    items = (
        db.query(CartItem)
        .filter(CartItem.user_id == customer.id)
        .order_by(CartItem.added_at.asc(), CartItem.id.asc())
        .all()
    )
    if not items:
        raise InvalidArgument("Cart is empty")

    as_of = utcnow()
    orders = []
    for item in items:
        plat = db.get(Plat, item.plat_id)
        if plat is None:
            raise NotFound(f"Dish {item.plat_id} in cart is no longer available")
        # Extras keep the price they had when picked into the cart
        extras = [_snapshot(s.ingredient_id, s.ingredient_name, s.ingredient_price, s.is_free) for s in item.ingredients]
        orders.append(_build_order(db, customer, plat, item.quantity, extras, description, delivery_address, as_of))

    db.add_all(orders)
    for item in items:
        db.delete(item)
    db.commit()
    for order in orders:
        db.refresh(order)
    logger.info("Checkout for customer %s created %s order(s)", customer.id, len(orders))

    for order in orders:
        dispatcher.order_created(order)
    return orders


def get_order(db: Session, actor: User, order_id) -> Order:
    order = _load(db, order_id)
    enforce(authorize(actor, [order.customer_id, order.chef_id], allow_admin=True),
            "Not allowed to view this order")
    return order


def list_customer_orders(db: Session, customer_id, status: Optional[OrderStatus] = None) -> List[Order]:
    q = db.query(Order).options(selectinload(Order.ingredients)).filter(Order.customer_id == customer_id)
    if status is not None:
        q = q.filter(Order.status == status)
    return q.order_by(Order.created_at.desc()).all()


def list_chef_orders(db: Session, chef_id, status: Optional[OrderStatus] = None) -> List[Order]:
    q = db.query(Order).options(selectinload(Order.ingredients)).filter(Order.chef_id == chef_id)
    if status is not None:
        q = q.filter(Order.status == status)
    return q.order_by(Order.created_at.desc()).all()


def order_statistics(db: Session, customer_id) -> dict:
    counts = Counter(status for (status,) in db.query(Order.status).filter(Order.customer_id == customer_id))
    stats = {status.value.lower(): counts.get(status, 0) for status in OrderStatus}
    stats["total"] = sum(counts.values())
    return stats


def update_status(db: Session, actor: User, order_id, new_status: OrderStatus, chef_notes: Optional[str] = None,
                  estimated_delivery_time: Optional[datetime] = None) -> tuple:
    """Move the order one step; returns (order, previous_status)."""
    try:
        new_status = OrderStatus(new_status)
    except ValueError:
        raise InvalidArgument(f"Unknown order status {new_status!r}")
    order = _load(db, order_id)
    enforce(authorize(actor, [order.chef_id], allow_admin=True),
            "Only the chef of this order can change its status")

    old_status = order.status
    if not can_transition(old_status, new_status):
        raise InvalidStateTransition(f"Cannot move order from {old_status.value} to {new_status.value}")

    now = utcnow()
    order.status = new_status
    if chef_notes is not None:
        order.chef_notes = chef_notes
    if estimated_delivery_time is not None:
        order.estimated_delivery_time = estimated_delivery_time
    if new_status is OrderStatus.COMPLETED:
        order.actual_delivery_time = now
    order.updated_at = now
    db.commit()
    db.refresh(order)
    logger.info("Order %s moved %s -> %s by %s", order.id, old_status.value, new_status.value, actor.id)

    dispatcher.status_changed(order, old_status)
    return order, old_status


def cancel_order(db: Session, actor: User, order_id) -> Order:
    order = _load(db, order_id)
    enforce(authorize(actor, [order.customer_id]), "Only the customer of this order can cancel it")

    old_status = order.status
    if old_status not in CANCELLABLE_STATUSES:
        raise InvalidStateTransition(f"Cannot cancel an order in status {old_status.value}")

    order.status = OrderStatus.CANCELLED
    order.updated_at = utcnow()
    db.commit()
    db.refresh(order)
    logger.info("Order %s cancelled by customer %s", order.id, actor.id)

    dispatcher.status_changed(order, old_status)
    return order


def adjust_price(db: Session, actor: User, order_id, new_total, reason: str) -> tuple:
    """Correct the captured total of a live order; returns (order, previous_total)."""
    if not reason or not reason.strip():
        raise InvalidArgument("A reason is required to adjust the price")
    order = _load(db, order_id)
    enforce(authorize(actor, [order.chef_id], allow_admin=True),
            "Only the chef of this order can adjust its price")
    if order.status in TERMINAL_STATUSES:
        raise InvalidStateTransition(f"Cannot adjust the price of an order in status {order.status.value}")
    new_total = to_money(new_total)
    if new_total < 0:
        raise InvalidArgument("Total price cannot be negative")

    previous_total = to_money(order.total_price)
    order.total_price = new_total
    order.updated_at = utcnow()
    db.commit()
    db.refresh(order)
    logger.info("Order %s price adjusted %s -> %s by %s: %s", order.id, previous_total, new_total, actor.id, reason.strip())
    return order, previous_total


def update_delivery_address(db: Session, actor: User, order_id, delivery_address: str) -> Order:
    order = _load(db, order_id)
    enforce(authorize(actor, [order.customer_id]), "Only the customer of this order can change its address")
    if order.status not in ADDRESS_EDITABLE_STATUSES:
        raise InvalidStateTransition(f"Delivery address cannot change in status {order.status.value}")
    if not delivery_address or not delivery_address.strip():
        raise InvalidArgument("Delivery address cannot be empty")

    order.delivery_address = delivery_address.strip()
    order.updated_at = utcnow()
    db.commit()
    db.refresh(order)
    return order
