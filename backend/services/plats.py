# backend/services/plats.py
import logging
from decimal import Decimal
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session, selectinload

from models.plat import Plat, Ingredient
from models.favorite import FavoritePlat
from models.promotion import Promotion
from models.review import PlatReview
from models.users import User, ROLE_CHEF, ROLE_ADMIN
from utils.errors import NotFound, InvalidArgument
from utils.permissions import authorize, enforce, require_role

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ("name", "description", "price", "image_url", "category", "estimated_cook_time")


def _check_price(price):
    if price is None or Decimal(str(price)) < 0:
        raise InvalidArgument("Price cannot be negative")


def _ingredients(data: Iterable[dict]) -> List[Ingredient]:
    out = []
    for row in data:
        is_free = row.get("is_free", True)
        price = Decimal("0") if is_free else Decimal(str(row.get("price") or 0))
        if price < 0:
            raise InvalidArgument("Ingredient price cannot be negative")
        out.append(Ingredient(name=row["name"], price=price, is_free=is_free))
    return out


def get_plat(db: Session, plat_id) -> Plat:
    plat = db.query(Plat).options(selectinload(Plat.ingredients)).filter(Plat.id == plat_id).first()
    if plat is None:
        raise NotFound(f"Dish {plat_id} not found")
    return plat


def select_ingredients(db: Session, plat_id, ingredient_ids: Optional[Iterable]) -> List[Ingredient]:
    """Ingredients of this dish among ``ingredient_ids``; ids of other dishes are ignored."""
    wanted = set(ingredient_ids or ())
    if not wanted:
        return []
    return (
        db.query(Ingredient)
        .filter(Ingredient.plat_id == plat_id, Ingredient.id.in_(wanted))
        .order_by(Ingredient.name)
        .all()
    )


def list_plats(db: Session, chef_id=None, category: Optional[str] = None, name: Optional[str] = None) -> List[Plat]:
    q = db.query(Plat).options(selectinload(Plat.ingredients))
    if chef_id is not None:
        q = q.filter(Plat.chef_id == chef_id)
    if category:
        q = q.filter(Plat.category.ilike(category))
    if name:
        q = q.filter(Plat.name.ilike(f"%{name}%"))
    return q.order_by(Plat.created_at.desc()).all()


def create_plat(db: Session, chef: User, data: dict) -> Plat:
    require_role(chef, ROLE_CHEF, ROLE_ADMIN, message="Only chefs can publish dishes")
    _check_price(data.get("price"))
    if not (data.get("name") or "").strip():
        raise InvalidArgument("Dish name cannot be empty")
    chef_id = data.get("chef_id") or chef.id
    if chef_id != chef.id:
        # Admins may publish on behalf of a chef
        require_role(chef, ROLE_ADMIN, message="Cannot publish dishes for another chef")
        owner = db.get(User, chef_id)
        if owner is None or (owner.role or "").lower() != ROLE_CHEF:
            raise NotFound(f"Chef {chef_id} not found")

    plat = Plat(chef_id=chef_id, **{k: data.get(k) for k in EDITABLE_FIELDS})
    plat.ingredients = _ingredients(data.get("ingredients") or [])
    db.add(plat)
    db.commit()
    db.refresh(plat)
    logger.info("Dish %s created by %s", plat.id, chef.id)
    return plat


def update_plat(db: Session, actor: User, plat_id, data: dict) -> Plat:
    plat = get_plat(db, plat_id)
    enforce(authorize(actor, [plat.chef_id], allow_admin=True), "Only the chef of this dish can edit it")
    if "price" in data:
        _check_price(data["price"])
    if "name" in data and not (data["name"] or "").strip():
        raise InvalidArgument("Dish name cannot be empty")

    for key in EDITABLE_FIELDS:
        if key in data:
            setattr(plat, key, data[key])
    if data.get("ingredients") is not None:
        # Replaced wholesale; past orders keep their own snapshot
        plat.ingredients = _ingredients(data["ingredients"])
    db.commit()
    db.refresh(plat)
    logger.info("Dish %s updated by %s", plat.id, actor.id)
    return plat


def delete_plat(db: Session, actor: User, plat_id) -> None:
    plat = get_plat(db, plat_id)
    enforce(authorize(actor, [plat.chef_id], allow_admin=True), "Only the chef of this dish can delete it")
    for model in (Promotion, FavoritePlat, PlatReview):
        db.query(model).filter(model.plat_id == plat.id).delete(synchronize_session=False)
    db.delete(plat)
    db.commit()
    logger.info("Dish %s deleted by %s", plat_id, actor.id)
