import uuid
from datetime import datetime
from pydantic import BaseModel
from typing import Optional

from schemas.plat import PromotionInfo


class FavoritePlatCreate(BaseModel):
    plat_id: uuid.UUID

class FavoriteChefCreate(BaseModel):
    chef_id: uuid.UUID

class FavoriteOut(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    created_at: datetime

# Favorite dish with its live price and rating
class FavoritePlatOut(BaseModel):
    id: uuid.UUID
    plat_id: uuid.UUID
    plat_name: str
    plat_description: Optional[str] = None
    plat_image_url: Optional[str] = None
    category: Optional[str] = None
    chef_id: uuid.UUID
    price: float
    effective_price: float
    promotion: Optional[PromotionInfo] = None
    average_rating: Optional[float] = None
    review_count: int = 0
    created_at: datetime

class FavoriteChefOut(BaseModel):
    id: uuid.UUID
    chef_id: uuid.UUID
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    plat_count: int
    average_rating: Optional[float] = None
    review_count: int = 0
    created_at: datetime

class FavoriteCheck(BaseModel):
    is_favorite: bool
