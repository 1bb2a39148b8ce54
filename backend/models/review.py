# backend/models/review.py
import uuid

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, UniqueConstraint, CheckConstraint, Uuid
from database import Base
from utils.clock import utcnow

REVIEW_TEXT_MAX = 1000
RATE_MIN = 1
RATE_MAX = 5

# One rating per user and dish
class PlatReview(Base):
    __tablename__ = "plat_reviews"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    plat_id = Column(Uuid, nullable=False, index=True)
    user_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    review_text = Column(String(REVIEW_TEXT_MAX), nullable=False)
    rate = Column(Integer, CheckConstraint("rate >= 1 AND rate <= 5"), nullable=False)
    created_at = Column(DateTime, nullable=False, default=utcnow, index=True)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        UniqueConstraint("plat_id", "user_id", name="uq_plat_review_plat_user"),
    )


# One rating per user and chef
class ChefReview(Base):
    __tablename__ = "chef_reviews"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    chef_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    user_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    review_text = Column(String(REVIEW_TEXT_MAX), nullable=False)
    rate = Column(Integer, CheckConstraint("rate >= 1 AND rate <= 5"), nullable=False)
    created_at = Column(DateTime, nullable=False, default=utcnow, index=True)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        UniqueConstraint("chef_id", "user_id", name="uq_chef_review_chef_user"),
    )
