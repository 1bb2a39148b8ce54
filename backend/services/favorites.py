# backend/services/favorites.py
import logging
from dataclasses import dataclass
from typing import List

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from models.favorite import FavoritePlat, FavoriteChef
from models.plat import Plat
from models.users import User
from services.pricing import EffectivePrice, price_for
from services.reviews import RatingSummary, chef_rating, get_chef, plat_rating
from utils.errors import NotFound, Conflict

logger = logging.getLogger(__name__)


@dataclass
class FavoritePlatView:
    favorite: FavoritePlat
    plat: Plat
    price: EffectivePrice
    rating: RatingSummary


@dataclass
class FavoriteChefView:
    favorite: FavoriteChef
    chef: User
    plat_count: int
    rating: RatingSummary


def _save(db: Session, favorite, duplicate_message: str):
    db.add(favorite)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise Conflict(duplicate_message)
    db.refresh(favorite)
    return favorite


def add_favorite_plat(db: Session, user: User, plat_id) -> FavoritePlat:
    if db.get(Plat, plat_id) is None:
        raise NotFound(f"Dish {plat_id} not found")
    if is_favorite_plat(db, user.id, plat_id):
        raise Conflict("This dish is already in your favorites")
    favorite = _save(db, FavoritePlat(user_id=user.id, plat_id=plat_id), "This dish is already in your favorites")
    logger.info("Dish %s added to favorites of %s", plat_id, user.id)
    return favorite


def remove_favorite_plat(db: Session, user: User, plat_id) -> None:
    favorite = db.query(FavoritePlat).filter(FavoritePlat.user_id == user.id, FavoritePlat.plat_id == plat_id).first()
    if favorite is None:
        raise NotFound("This dish is not in your favorites")
    db.delete(favorite)
    db.commit()
    logger.info("Dish %s removed from favorites of %s", plat_id, user.id)


def is_favorite_plat(db: Session, user_id, plat_id) -> bool:
    return db.query(FavoritePlat.id).filter(
        FavoritePlat.user_id == user_id, FavoritePlat.plat_id == plat_id
    ).first() is not None


def list_favorite_plats(db: Session, user_id) -> List[FavoritePlatView]:
    favorites = (
        db.query(FavoritePlat)
        .filter(FavoritePlat.user_id == user_id)
        .order_by(FavoritePlat.created_at.desc())
        .all()
    )
    views = []
    for favorite in favorites:
        plat = db.get(Plat, favorite.plat_id)
        if plat is None:
            continue
        views.append(FavoritePlatView(favorite, plat, price_for(db, plat), plat_rating(db, plat.id)))
    return views


def add_favorite_chef(db: Session, user: User, chef_id) -> FavoriteChef:
    get_chef(db, chef_id)
    if is_favorite_chef(db, user.id, chef_id):
        raise Conflict("This chef is already in your favorites")
    favorite = _save(db, FavoriteChef(user_id=user.id, chef_id=chef_id), "This chef is already in your favorites")
    logger.info("Chef %s added to favorites of %s", chef_id, user.id)
    return favorite


def remove_favorite_chef(db: Session, user: User, chef_id) -> None:
    favorite = db.query(FavoriteChef).filter(FavoriteChef.user_id == user.id, FavoriteChef.chef_id == chef_id).first()
    if favorite is None:
        raise NotFound("This chef is not in your favorites")
    db.delete(favorite)
    db.commit()
    logger.info("Chef %s removed from favorites of %s", chef_id, user.id)


def is_favorite_chef(db: Session, user_id, chef_id) -> bool:
    return db.query(FavoriteChef.id).filter(
        FavoriteChef.user_id == user_id, FavoriteChef.chef_id == chef_id
    ).first() is not None


def list_favorite_chefs(db: Session, user_id) -> List[FavoriteChefView]:
    favorites = (
        db.query(FavoriteChef)
        .filter(FavoriteChef.user_id == user_id)
        .order_by(FavoriteChef.created_at.desc())
        .all()
    )
    views = []
    for favorite in favorites:
        chef = db.get(User, favorite.chef_id)
        if chef is None:
            continue
        plat_count = db.query(func.count(Plat.id)).filter(Plat.chef_id == chef.id).scalar()
        views.append(FavoriteChefView(favorite, chef, int(plat_count or 0), chef_rating(db, chef.id)))
    return views
