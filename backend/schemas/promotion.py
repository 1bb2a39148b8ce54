import uuid
from datetime import datetime
from pydantic import BaseModel, Field, field_validator
from typing import Optional

from utils.clock import to_naive_utc


class PromotionCreate(BaseModel):
    plat_id: uuid.UUID
    discount_percentage: float = Field(gt=0, le=100)
    ends_at: datetime
    starts_at: Optional[datetime] = None

    @field_validator("ends_at", "starts_at")
    @classmethod
    def normalize_window(cls, value):
        return to_naive_utc(value)

class PromotionResponse(BaseModel):
    id: uuid.UUID
    plat_id: uuid.UUID
    discount_percentage: float
    starts_at: datetime
    ends_at: datetime
    is_active: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

class SweepResult(BaseModel):
    deactivated: int
    skipped: bool = False
