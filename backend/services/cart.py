# backend/services/cart.py
import logging
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Iterable, List, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from models.cart import CartItem, CartItemIngredient
from models.plat import Plat
from models.promotion import Promotion
from services.plats import select_ingredients
from services.pricing import price_for, to_money
from utils.clock import utcnow
from utils.errors import NotFound, InvalidArgument, Conflict
from utils.permissions import authorize, enforce

logger = logging.getLogger(__name__)

UNAVAILABLE_PLAT_NAME = "Unavailable dish"
ADD_ITEM_ATTEMPTS = 3


@dataclass
class CartLine:
    item: CartItem
    plat: Optional[Plat]
    unit_price: Decimal
    original_price: Decimal
    line_total: Decimal
    promotion: Optional[Promotion] = None
    # Paid extras per unit, already in line_total
    extras_price: Decimal = Decimal("0.00")

    @property
    def available(self) -> bool:
        return self.plat is not None


@dataclass
class CartSummary:
    lines: List[CartLine] = field(default_factory=list)
    total_items: int = 0
    subtotal: Decimal = Decimal("0.00")

    @property
    def total(self) -> Decimal:
        return self.subtotal


def _require_quantity(quantity: int):
    if quantity is None or quantity < 1:
        raise InvalidArgument("Quantity must be at least 1")


def extras_price(selections) -> Decimal:
    return to_money(sum((Decimal(str(s.ingredient_price)) for s in selections if not s.is_free), Decimal("0")))


def _price_line(db: Session, item: CartItem, as_of: datetime) -> CartLine:
    plat = db.get(Plat, item.plat_id)
    if plat is None:
        # Partial degradation: one vanished dish must not break the whole cart
        zero = Decimal("0.00")
        return CartLine(item=item, plat=None, unit_price=zero, original_price=zero, line_total=zero)
    price = price_for(db, plat, as_of)
    extras = extras_price(item.ingredients)
    return CartLine(
        item=item,
        plat=plat,
        unit_price=price.unit_price,
        original_price=price.original_price,
        line_total=to_money((price.unit_price + extras) * item.quantity),
        promotion=price.promotion,
        extras_price=extras,
    )


def price_line(db: Session, item: CartItem, as_of: Optional[datetime] = None) -> CartLine:
    return _price_line(db, item, as_of or utcnow())


def _owned_line(db: Session, user, line_id) -> CartItem:
    item = db.get(CartItem, line_id)
    if item is None:
        raise NotFound("Cart item not found")
    enforce(authorize(user, [item.user_id]), "Cart item belongs to another user")
    return item


def get_cart(db: Session, user_id, as_of: Optional[datetime] = None) -> CartSummary:
    as_of = as_of or utcnow()
    items = (
        db.query(CartItem)
        .filter(CartItem.user_id == user_id)
        .order_by(CartItem.added_at.asc(), CartItem.id.asc())
        .all()
    )
    lines = [_price_line(db, it, as_of) for it in items]
    return CartSummary(
        lines=lines,
        total_items=sum(line.item.quantity for line in lines),
        subtotal=to_money(sum((line.line_total for line in lines), Decimal("0"))),
    )


def _upsert_line(db: Session, user_id, plat_id, quantity: int) -> CartItem:
    for attempt in range(ADD_ITEM_ATTEMPTS):
        # Increment in a single statement so concurrent adds never lose an update
        updated = (
            db.query(CartItem)
            .filter(CartItem.user_id == user_id, CartItem.plat_id == plat_id)
            .update(
                {CartItem.quantity: CartItem.quantity + quantity, CartItem.updated_at: utcnow()},
                synchronize_session=False,
            )
        )
        if updated:
            db.commit()
            item = (
                db.query(CartItem)
                .filter(CartItem.user_id == user_id, CartItem.plat_id == plat_id)
                .populate_existing()
                .one()
            )
            logger.info("Cart line %s for user %s incremented by %s", item.id, user_id, quantity)
            return item

        item = CartItem(user_id=user_id, plat_id=plat_id, quantity=quantity)
        db.add(item)
        try:
            db.commit()
        except IntegrityError:
            # Another request inserted the same (user, dish) line first
            db.rollback()
            logger.info("Concurrent insert of cart line user=%s plat=%s, retrying as increment (attempt %s)",
                        user_id, plat_id, attempt + 1)
            continue
        db.refresh(item)
        logger.info("Cart line %s created for user %s", item.id, user_id)
        return item

    raise Conflict("Cart line is being modified concurrently, please retry")


def _replace_selections(db: Session, item: CartItem, ingredient_ids: Iterable) -> None:
    chosen = select_ingredients(db, item.plat_id, ingredient_ids)
    item.ingredients = [
        CartItemIngredient(
            ingredient_id=ingredient.id,
            ingredient_name=ingredient.name,
            ingredient_price=ingredient.price,
            is_free=ingredient.is_free,
        )
        for ingredient in chosen
    ]
    db.commit()
    db.refresh(item)
    logger.info("Cart line %s now carries %s ingredient(s)", item.id, len(chosen))


def add_item(db: Session, user_id, plat_id, quantity: int,
             selected_ingredient_ids: Optional[Iterable] = None) -> CartItem:
    """Add ``quantity`` of a dish to the user's single line for it.

    ``selected_ingredient_ids`` replaces the line's extras when given;
    ``None`` keeps whatever the line already carries.
    """
    _require_quantity(quantity)
    if db.get(Plat, plat_id) is None:
        raise NotFound(f"Dish {plat_id} not found")

    item = _upsert_line(db, user_id, plat_id, quantity)
    if selected_ingredient_ids is not None:
        _replace_selections(db, item, selected_ingredient_ids)
    return item


def update_item(db: Session, user, line_id, quantity: int,
                selected_ingredient_ids: Optional[Iterable] = None) -> CartItem:
    _require_quantity(quantity)
    item = _owned_line(db, user, line_id)
    item.quantity = quantity
    db.commit()
    db.refresh(item)
    if selected_ingredient_ids is not None:
        _replace_selections(db, item, selected_ingredient_ids)
    return item


def remove_item(db: Session, user, line_id) -> None:
    item = _owned_line(db, user, line_id)
    db.delete(item)
    db.commit()


def clear_cart(db: Session, user_id) -> int:
    lines = select(CartItem.id).where(CartItem.user_id == user_id)
    db.query(CartItemIngredient).filter(CartItemIngredient.cart_item_id.in_(lines)).delete(synchronize_session=False)
    removed = db.query(CartItem).filter(CartItem.user_id == user_id).delete(synchronize_session=False)
    db.commit()
    return removed


def count_items(db: Session, user_id) -> int:
    total = db.query(func.coalesce(func.sum(CartItem.quantity), 0)).filter(CartItem.user_id == user_id).scalar()
    return int(total or 0)
