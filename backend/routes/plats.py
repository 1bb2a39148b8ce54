# backend/routes/plats.py
import uuid
from typing import List, Optional
from fastapi import APIRouter, Depends, Request, Query, status
from sqlalchemy.orm import Session

from database import get_db
from models.plat import Plat
from models.users import User
from schemas.plat import PlatCreate, PlatUpdate, PlatResponse, IngredientOut, PromotionInfo
from services import plats as plat_service
from services.pricing import price_for
from utils.audit import write_log
from utils.tokenJWT import get_current_user

router = APIRouter(prefix="/plats", tags=["Plats"])


# Map a dish to its public representation with the live price
def _plat_to_out(db: Session, plat: Plat) -> PlatResponse:
    price = price_for(db, plat)
    promotion = None
    if price.promotion is not None:
        promotion = PromotionInfo(
            id=price.promotion.id,
            discount_percentage=float(price.promotion.discount_percentage),
            original_price=float(price.original_price),
            discounted_price=float(price.unit_price),
            ends_at=price.promotion.ends_at,
        )
    return PlatResponse(
        id=plat.id,
        chef_id=plat.chef_id,
        name=plat.name,
        description=plat.description,
        price=float(price.original_price),
        effective_price=float(price.unit_price),
        image_url=plat.image_url,
        category=plat.category,
        estimated_cook_time=plat.estimated_cook_time,
        ingredients=[IngredientOut.model_validate(i) for i in plat.ingredients],
        promotion=promotion,
        created_at=plat.created_at,
        updated_at=plat.updated_at,
    )


@router.get("", response_model=List[PlatResponse])
def list_plats(
    chef_id: Optional[uuid.UUID] = Query(None),
    category: Optional[str] = Query(None),
    name: Optional[str] = Query(None, description="Search by name"),
    db: Session = Depends(get_db),
):
    return [_plat_to_out(db, p) for p in plat_service.list_plats(db, chef_id=chef_id, category=category, name=name)]


@router.get("/{plat_id}", response_model=PlatResponse)
def get_plat(plat_id: uuid.UUID, db: Session = Depends(get_db)):
    return _plat_to_out(db, plat_service.get_plat(db, plat_id))


@router.post("", response_model=PlatResponse, status_code=status.HTTP_201_CREATED)
def create_plat(
    payload: PlatCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    plat = plat_service.create_plat(db, current_user, payload.model_dump())
    write_log(db, user_id=current_user.id, action="PLAT_CREATE", resource="plats",
              ip=request.client.host if request.client else None,
              meta={"plat_id": plat.id, "name": plat.name, "price": plat.price})
    return _plat_to_out(db, plat)


@router.put("/{plat_id}", response_model=PlatResponse)
def update_plat(
    plat_id: uuid.UUID,
    payload: PlatUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    # Only fields actually sent are applied
    data = payload.model_dump(exclude_unset=True)
    plat = plat_service.update_plat(db, current_user, plat_id, data)
    write_log(db, user_id=current_user.id, action="PLAT_UPDATE", resource="plats",
              ip=request.client.host if request.client else None,
              meta={"plat_id": plat.id, "fields": sorted(data.keys())})
    return _plat_to_out(db, plat)


@router.delete("/{plat_id}")
def delete_plat(
    plat_id: uuid.UUID,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    plat_service.delete_plat(db, current_user, plat_id)
    write_log(db, user_id=current_user.id, action="PLAT_DELETE", resource="plats",
              ip=request.client.host if request.client else None, meta={"plat_id": plat_id})
    return {"message": "Dish deleted", "id": plat_id}
