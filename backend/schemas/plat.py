import uuid
from datetime import datetime
from pydantic import BaseModel, Field
from typing import List, Optional


class IngredientIn(BaseModel):
    name: str = Field(min_length=1)
    price: float = Field(default=0, ge=0)
    is_free: bool = True

class IngredientOut(BaseModel):
    id: uuid.UUID
    name: str
    price: float
    is_free: bool

    class Config:
        from_attributes = True

# Request schema for publishing a dish
class PlatCreate(BaseModel):
    name: str = Field(min_length=1)
    description: Optional[str] = None
    price: float = Field(ge=0)
    image_url: Optional[str] = None
    category: Optional[str] = None
    estimated_cook_time: Optional[int] = Field(default=None, ge=0)
    ingredients: List[IngredientIn] = []
    # Admins only: publish on behalf of this chef
    chef_id: Optional[uuid.UUID] = None

# Partial update; ingredients, when given, replace the whole list
class PlatUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    price: Optional[float] = Field(default=None, ge=0)
    image_url: Optional[str] = None
    category: Optional[str] = None
    estimated_cook_time: Optional[int] = Field(default=None, ge=0)
    ingredients: Optional[List[IngredientIn]] = None

class PromotionInfo(BaseModel):
    id: uuid.UUID
    discount_percentage: float
    original_price: float
    discounted_price: float
    ends_at: datetime

# Dish with its price resolved at request time
class PlatResponse(BaseModel):
    id: uuid.UUID
    chef_id: uuid.UUID
    name: str
    description: Optional[str] = None
    price: float
    effective_price: float
    image_url: Optional[str] = None
    category: Optional[str] = None
    estimated_cook_time: Optional[int] = None
    ingredients: List[IngredientOut] = []
    promotion: Optional[PromotionInfo] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
