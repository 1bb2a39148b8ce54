# backend/models/cart.py
import uuid

from sqlalchemy import (
    Column, Integer, String, Numeric, Boolean, DateTime, ForeignKey, UniqueConstraint, CheckConstraint, Uuid,
)
from sqlalchemy.orm import relationship
from database import Base
from utils.clock import utcnow

# A pending selection of one dish for one customer.
# No price column: the cart is priced live from the dish and its promotion.
class CartItem(Base):
    __tablename__ = "cart_items"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id"), index=True, nullable=False)
    # No foreign key: a deleted dish is rendered as a placeholder line
    plat_id = Column(Uuid, index=True, nullable=False)
    quantity = Column(Integer, CheckConstraint("quantity >= 1"), nullable=False, default=1)
    added_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    ingredients = relationship("CartItemIngredient", back_populates="cart_item", cascade="all, delete-orphan",
                               order_by="CartItemIngredient.ingredient_name")

    __table_args__ = (
        # One line per (user, dish)
        UniqueConstraint("user_id", "plat_id", name="uq_cartitem_user_plat"),
    )


# Extra chosen for a cart line, copied from the dish when it was picked
class CartItemIngredient(Base):
    __tablename__ = "cart_item_ingredients"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    cart_item_id = Column(Uuid, ForeignKey("cart_items.id", ondelete="CASCADE"), nullable=False, index=True)
    ingredient_id = Column(Uuid, nullable=False)
    ingredient_name = Column(String, nullable=False)
    ingredient_price = Column(Numeric(10, 2), nullable=False)
    is_free = Column(Boolean, nullable=False)

    cart_item = relationship("CartItem", back_populates="ingredients")
