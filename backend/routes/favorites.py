# backend/routes/favorites.py
import uuid
from typing import List
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from database import get_db
from models.users import User
from schemas.favorite import (
    FavoritePlatCreate, FavoriteChefCreate, FavoriteOut, FavoritePlatOut, FavoriteChefOut, FavoriteCheck,
)
from schemas.plat import PromotionInfo
from services import favorites as favorite_service
from services.favorites import FavoritePlatView, FavoriteChefView
from utils.audit import write_log
from utils.tokenJWT import get_current_user

router = APIRouter(prefix="/favorites", tags=["Favorites"])


def _client_ip(request: Request):
    return request.client.host if request.client else None

def _plat_view_to_out(view: FavoritePlatView) -> FavoritePlatOut:
    price, plat = view.price, view.plat
    promotion = None
    if price.promotion is not None:
        promotion = PromotionInfo(
            id=price.promotion.id,
            discount_percentage=float(price.promotion.discount_percentage),
            original_price=float(price.original_price),
            discounted_price=float(price.unit_price),
            ends_at=price.promotion.ends_at,
        )
    return FavoritePlatOut(
        id=view.favorite.id,
        plat_id=plat.id,
        plat_name=plat.name,
        plat_description=plat.description,
        plat_image_url=plat.image_url,
        category=plat.category,
        chef_id=plat.chef_id,
        price=float(price.original_price),
        effective_price=float(price.unit_price),
        promotion=promotion,
        average_rating=view.rating.average,
        review_count=view.rating.count,
        created_at=view.favorite.created_at,
    )

def _chef_view_to_out(view: FavoriteChefView) -> FavoriteChefOut:
    return FavoriteChefOut(
        id=view.favorite.id,
        chef_id=view.chef.id,
        first_name=view.chef.first_name,
        last_name=view.chef.last_name,
        plat_count=view.plat_count,
        average_rating=view.rating.average,
        review_count=view.rating.count,
        created_at=view.favorite.created_at,
    )


# Dishes

@router.post("/plats", response_model=FavoriteOut, status_code=status.HTTP_201_CREATED)
def add_favorite_plat(
    payload: FavoritePlatCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    favorite = favorite_service.add_favorite_plat(db, current_user, payload.plat_id)
    write_log(db, user_id=current_user.id, action="FAVORITE_PLAT_ADD", resource="favorites",
              ip=_client_ip(request), meta={"plat_id": payload.plat_id})
    return FavoriteOut(id=favorite.id, user_id=favorite.user_id, created_at=favorite.created_at)


@router.get("/plats", response_model=List[FavoritePlatOut])
def list_favorite_plats(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return [_plat_view_to_out(v) for v in favorite_service.list_favorite_plats(db, current_user.id)]


@router.get("/plats/{plat_id}/check", response_model=FavoriteCheck)
def check_favorite_plat(
    plat_id: uuid.UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return {"is_favorite": favorite_service.is_favorite_plat(db, current_user.id, plat_id)}


@router.delete("/plats/{plat_id}")
def remove_favorite_plat(
    plat_id: uuid.UUID,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    favorite_service.remove_favorite_plat(db, current_user, plat_id)
    write_log(db, user_id=current_user.id, action="FAVORITE_PLAT_REMOVE", resource="favorites",
              ip=_client_ip(request), meta={"plat_id": plat_id})
    return {"message": "Dish removed from favorites", "plat_id": plat_id}


# Chefs

@router.post("/chefs", response_model=FavoriteOut, status_code=status.HTTP_201_CREATED)
def add_favorite_chef(
    payload: FavoriteChefCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    favorite = favorite_service.add_favorite_chef(db, current_user, payload.chef_id)
    write_log(db, user_id=current_user.id, action="FAVORITE_CHEF_ADD", resource="favorites",
              ip=_client_ip(request), meta={"chef_id": payload.chef_id})
    return FavoriteOut(id=favorite.id, user_id=favorite.user_id, created_at=favorite.created_at)


@router.get("/chefs", response_model=List[FavoriteChefOut])
def list_favorite_chefs(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return [_chef_view_to_out(v) for v in favorite_service.list_favorite_chefs(db, current_user.id)]


@router.get("/chefs/{chef_id}/check", response_model=FavoriteCheck)
def check_favorite_chef(
    chef_id: uuid.UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return {"is_favorite": favorite_service.is_favorite_chef(db, current_user.id, chef_id)}


@router.delete("/chefs/{chef_id}")
def remove_favorite_chef(
    chef_id: uuid.UUID,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    favorite_service.remove_favorite_chef(db, current_user, chef_id)
    write_log(db, user_id=current_user.id, action="FAVORITE_CHEF_REMOVE", resource="favorites",
              ip=_client_ip(request), meta={"chef_id": chef_id})
    return {"message": "Chef removed from favorites", "chef_id": chef_id}
