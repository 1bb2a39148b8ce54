# backend/models/favorite.py
import uuid

from sqlalchemy import Column, DateTime, ForeignKey, UniqueConstraint, Uuid
from database import Base
from utils.clock import utcnow

# A dish bookmarked by a user; removed together with the dish
class FavoritePlat(Base):
    __tablename__ = "favorite_plats"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    plat_id = Column(Uuid, nullable=False, index=True)
    created_at = Column(DateTime, nullable=False, default=utcnow, index=True)

    __table_args__ = (
        UniqueConstraint("user_id", "plat_id", name="uq_favorite_plat_user_plat"),
    )


# A chef followed by a user
class FavoriteChef(Base):
    __tablename__ = "favorite_chefs"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    chef_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    created_at = Column(DateTime, nullable=False, default=utcnow, index=True)

    __table_args__ = (
        UniqueConstraint("user_id", "chef_id", name="uq_favorite_chef_user_chef"),
    )
