# backend/routes/cart.py
import uuid
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from database import get_db
from utils.tokenJWT import get_current_user
from utils.audit import write_log
from models.users import User
from schemas.cart import CartAddItem, CartUpdateItem, CartOut, CartItemOut, CartCount, CartIngredientOut
from schemas.plat import PromotionInfo
from services import cart as cart_service
from services.cart import CartLine, UNAVAILABLE_PLAT_NAME

router = APIRouter(prefix="/cart", tags=["Cart"])


def _client_ip(request: Request):
    return request.client.host if request.client else None

def _line_to_out(line: CartLine) -> CartItemOut:
    promotion = None
    if line.promotion is not None:
        promotion = PromotionInfo(
            id=line.promotion.id,
            discount_percentage=float(line.promotion.discount_percentage),
            original_price=float(line.original_price),
            discounted_price=float(line.unit_price),
            ends_at=line.promotion.ends_at,
        )
    plat = line.plat
    return CartItemOut(
        id=line.item.id,
        plat_id=line.item.plat_id,
        plat_name=plat.name if plat else UNAVAILABLE_PLAT_NAME,
        plat_description=plat.description if plat else None,
        plat_image_url=plat.image_url if plat else None,
        chef_id=plat.chef_id if plat else None,
        available=line.available,
        quantity=line.item.quantity,
        unit_price=float(line.unit_price),
        original_price=float(line.original_price),
        extras_price=float(line.extras_price),
        line_total=float(line.line_total),
        selected_ingredients=[CartIngredientOut.model_validate(s) for s in line.item.ingredients],
        promotion=promotion,
        added_at=line.item.added_at,
        updated_at=line.item.updated_at,
    )

@router.get("", response_model=CartOut)
def get_cart(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    summary = cart_service.get_cart(db, current_user.id)
    return CartOut(
        items=[_line_to_out(line) for line in summary.lines],
        total_items=summary.total_items,
        subtotal=float(summary.subtotal),
        total=float(summary.total),
    )

@router.get("/count", response_model=CartCount)
def get_cart_count(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return {"count": cart_service.count_items(db, current_user.id)}

@router.post("", response_model=CartItemOut, status_code=status.HTTP_201_CREATED)
def add_to_cart(
    payload: CartAddItem,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    item = cart_service.add_item(db, current_user.id, payload.plat_id, payload.quantity,
                                 selected_ingredient_ids=payload.selected_ingredient_ids)
    out = _line_to_out(cart_service.price_line(db, item))

    write_log(
        db,
        user_id=current_user.id,
        action="CART_ADD",
        resource="cart",
        status="SUCCESS",
        ip=_client_ip(request),
        meta={"plat_id": payload.plat_id, "qty": payload.quantity, "line_qty": out.quantity},
    )
    return out

@router.put("/{item_id}", response_model=CartItemOut)
def update_cart_item(
    item_id: uuid.UUID,
    payload: CartUpdateItem,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    item = cart_service.update_item(db, current_user, item_id, payload.quantity,
                                    selected_ingredient_ids=payload.selected_ingredient_ids)
    out = _line_to_out(cart_service.price_line(db, item))

    write_log(
        db,
        user_id=current_user.id,
        action="CART_UPDATE",
        resource="cart",
        status="SUCCESS",
        ip=_client_ip(request),
        meta={"item_id": item_id, "qty": payload.quantity},
    )
    return out

@router.delete("/{item_id}")
def delete_cart_item(
    item_id: uuid.UUID,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    cart_service.remove_item(db, current_user, item_id)

    write_log(
        db,
        user_id=current_user.id,
        action="CART_DELETE",
        resource="cart",
        status="SUCCESS",
        ip=_client_ip(request),
        meta={"item_id": item_id},
    )
    return {"message": "Item removed from cart", "id": item_id}

@router.delete("")
def clear_cart(
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    removed = cart_service.clear_cart(db, current_user.id)

    write_log(
        db,
        user_id=current_user.id,
        action="CART_CLEAR",
        resource="cart",
        status="SUCCESS",
        ip=_client_ip(request),
        meta={"removed": removed},
    )
    return {"message": "Cart cleared", "removed": removed}
