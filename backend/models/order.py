# backend/models/order.py
import enum
import uuid

from sqlalchemy import Column, Integer, String, Numeric, Boolean, DateTime, ForeignKey, Enum, Uuid
from sqlalchemy.orm import relationship
from database import Base
from utils.clock import utcnow


class OrderStatus(str, enum.Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    PREPARING = "PREPARING"
    READY = "READY"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    REJECTED = "REJECTED"

    @property
    def label(self) -> str:
        return self.value.capitalize()


TERMINAL_STATUSES = frozenset({OrderStatus.COMPLETED, OrderStatus.CANCELLED, OrderStatus.REJECTED})


# A finalized purchase of one dish. total_price is a snapshot taken at creation.
class Order(Base):
    __tablename__ = "orders"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    # Plain column so order history survives dish deletion
    plat_id = Column(Uuid, nullable=False, index=True)
    customer_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    chef_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    status = Column(Enum(OrderStatus, native_enum=False, length=20), nullable=False, default=OrderStatus.PENDING, index=True)
    quantity = Column(Integer, nullable=False, default=1)
    description = Column(String, nullable=True)
    chef_notes = Column(String, nullable=True)
    delivery_address = Column(String, nullable=True)
    estimated_delivery_time = Column(DateTime, nullable=True)
    actual_delivery_time = Column(DateTime, nullable=True)
    total_price = Column(Numeric(10, 2), nullable=False)
    created_at = Column(DateTime, nullable=False, default=utcnow, index=True)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    ingredients = relationship("OrderIngredient", back_populates="order", cascade="all, delete-orphan")


# Ingredient choice copied at order time, independent of the live catalogue
class OrderIngredient(Base):
    __tablename__ = "order_ingredients"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    order_id = Column(Uuid, ForeignKey("orders.id"), nullable=False, index=True)
    ingredient_id = Column(Uuid, nullable=False)
    ingredient_name = Column(String, nullable=False)
    ingredient_price = Column(Numeric(10, 2), nullable=False)
    is_free = Column(Boolean, nullable=False)
    quantity = Column(Integer, nullable=False, default=1)

    order = relationship("Order", back_populates="ingredients")
