import uuid
from datetime import datetime
from pydantic import BaseModel, Field
from typing import List, Optional


class PlatReviewCreate(BaseModel):
    plat_id: uuid.UUID
    rate: int = Field(ge=1, le=5)
    review_text: str = Field(min_length=1, max_length=1000)

class ChefReviewCreate(BaseModel):
    chef_id: uuid.UUID
    rate: int = Field(ge=1, le=5)
    review_text: str = Field(min_length=1, max_length=1000)

# Public review with the author's display name
class ReviewOut(BaseModel):
    id: uuid.UUID
    target_id: uuid.UUID
    user_id: uuid.UUID
    user_name: str
    rate: int
    review_text: str
    created_at: datetime
    updated_at: datetime

class ReviewList(BaseModel):
    items: List[ReviewOut]
    average_rating: Optional[float] = None
    count: int

class ReviewCheck(BaseModel):
    reviewed: bool
