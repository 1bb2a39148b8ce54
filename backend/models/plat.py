# backend/models/plat.py
import uuid

from sqlalchemy import Column, String, Integer, Numeric, Boolean, DateTime, ForeignKey, CheckConstraint, Uuid
from sqlalchemy.orm import relationship
from database import Base
from utils.clock import utcnow

# A dish offered by a chef. Price is mutable by the owning chef only.
class Plat(Base):
    __tablename__ = "plats"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    chef_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    name = Column(String, nullable=False, index=True)
    description = Column(String, nullable=True)
    price = Column(Numeric(10, 2), CheckConstraint("price >= 0"), nullable=False)
    image_url = Column(String, nullable=True)
    category = Column(String, nullable=True, index=True)
    estimated_cook_time = Column(Integer, nullable=True) # minutes
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    ingredients = relationship("Ingredient", back_populates="plat", cascade="all, delete-orphan")


# Optional extra for a dish; paid ones add to the unit price
class Ingredient(Base):
    __tablename__ = "ingredients"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    plat_id = Column(Uuid, ForeignKey("plats.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    price = Column(Numeric(10, 2), nullable=False, default=0)
    is_free = Column(Boolean, nullable=False, default=True)

    plat = relationship("Plat", back_populates="ingredients")
