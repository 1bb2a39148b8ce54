import uuid
from pydantic import BaseModel, Field, field_validator
from typing import List, Optional
from datetime import datetime

from models.order import OrderStatus
from utils.clock import to_naive_utc


# Output schema for an ingredient captured with the order
class OrderIngredientOut(BaseModel):
    ingredient_id: uuid.UUID
    ingredient_name: str
    ingredient_price: float
    is_free: bool
    quantity: int

    class Config:
        from_attributes = True


# Input schema for ordering one dish
class OrderCreatePayload(BaseModel):
    plat_id: uuid.UUID
    quantity: int = Field(default=1, ge=1)
    selected_ingredient_ids: List[uuid.UUID] = []
    description: Optional[str] = None
    delivery_address: Optional[str] = None

# Input schema for turning the whole cart into orders
class CheckoutPayload(BaseModel):
    delivery_address: Optional[str] = None
    description: Optional[str] = None

# Output schema representing the full order details
class OrderResponse(BaseModel):
    id: uuid.UUID
    plat_id: uuid.UUID
    plat_name: Optional[str] = None
    customer_id: uuid.UUID
    chef_id: uuid.UUID
    status: OrderStatus
    status_label: str
    quantity: int
    description: Optional[str] = None
    chef_notes: Optional[str] = None
    delivery_address: Optional[str] = None
    estimated_delivery_time: Optional[datetime] = None
    actual_delivery_time: Optional[datetime] = None
    total_price: float
    selected_ingredients: List[OrderIngredientOut] = []
    created_at: datetime
    updated_at: datetime

# Schema for paginated order lists
class OrdersPage(BaseModel):
    items: List[OrderResponse]
    total: int
    page: int
    page_size: int

# Schema for moving an order along its lifecycle
class OrderStatusPatch(BaseModel):
    status: OrderStatus
    chef_notes: Optional[str] = None
    estimated_delivery_time: Optional[datetime] = None

    @field_validator("estimated_delivery_time")
    @classmethod
    def normalize_estimate(cls, value):
        return to_naive_utc(value)

# Schema for an audited price correction
class OrderPricePatch(BaseModel):
    total_price: float = Field(ge=0)
    reason: str = Field(min_length=1)

class DeliveryAddressUpdate(BaseModel):
    delivery_address: str = Field(min_length=1)

class DeliveryLocation(BaseModel):
    order_id: uuid.UUID
    delivery_address: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    found: bool

class OrderStatistics(BaseModel):
    total: int
    pending: int
    confirmed: int
    preparing: int
    ready: int
    completed: int
    cancelled: int
    rejected: int
