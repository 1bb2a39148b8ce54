import uuid
from datetime import datetime
from pydantic import BaseModel, Field
from typing import List, Optional

from schemas.plat import PromotionInfo

# Request schema for adding a dish to the cart
class CartAddItem(BaseModel):
    plat_id: uuid.UUID
    quantity: int = Field(default=1, ge=1)
    # Omitted keeps the extras already on the line; a list replaces them
    selected_ingredient_ids: Optional[List[uuid.UUID]] = None

# Request schema for updating cart line quantity
class CartUpdateItem(BaseModel):
    quantity: int = Field(ge=1)
    selected_ingredient_ids: Optional[List[uuid.UUID]] = None

# Extra picked for a cart line
class CartIngredientOut(BaseModel):
    ingredient_id: uuid.UUID
    ingredient_name: str
    ingredient_price: float
    is_free: bool

    class Config:
        from_attributes = True

# Response schema for a single cart line, priced live
class CartItemOut(BaseModel):
    id: uuid.UUID
    plat_id: uuid.UUID
    plat_name: str
    plat_description: Optional[str] = None
    plat_image_url: Optional[str] = None
    chef_id: Optional[uuid.UUID] = None
    available: bool = True
    quantity: int
    unit_price: float
    original_price: float
    extras_price: float = 0.0
    line_total: float
    selected_ingredients: List[CartIngredientOut] = []
    promotion: Optional[PromotionInfo] = None
    added_at: datetime
    updated_at: datetime

# Response schema for the entire cart summary
class CartOut(BaseModel):
    items: List[CartItemOut]
    total_items: int
    subtotal: float
    total: float

class CartCount(BaseModel):
    count: int
