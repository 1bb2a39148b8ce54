# backend/models/promotion.py
import uuid

from sqlalchemy import Column, Numeric, Boolean, DateTime, CheckConstraint, Index, Uuid
from database import Base
from utils.clock import utcnow

# Time-bounded percentage discount on a dish.
# Nothing in the schema prevents two overlapping active rows for one dish.
class Promotion(Base):
    __tablename__ = "promotions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    plat_id = Column(Uuid, nullable=False, index=True)
    discount_percentage = Column(
        Numeric(5, 2),
        CheckConstraint("discount_percentage >= 0 AND discount_percentage <= 100"),
        nullable=False,
    )
    starts_at = Column(DateTime, nullable=False, default=utcnow)
    ends_at = Column(DateTime, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        Index("ix_promotions_active_ends_at", "is_active", "ends_at"),
    )
