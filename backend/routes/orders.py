# backend/routes/orders.py
import logging
import uuid
from typing import List, Optional
from fastapi import APIRouter, Depends, Request, Query, status
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from database import get_db
from utils.tokenJWT import get_current_user, role_required
from utils.audit import write_log
from utils.geocoding import Geocoder, get_geocoder
from models.users import User, ROLE_CHEF, ROLE_ADMIN
from models.plat import Plat
from models.order import Order, OrderStatus
from schemas.order import (
    OrderResponse, OrdersPage, OrderStatusPatch, OrderIngredientOut, OrderCreatePayload,
    CheckoutPayload, OrderPricePatch, DeliveryAddressUpdate, DeliveryLocation, OrderStatistics,
)
from services import orders as order_service

router = APIRouter(prefix="/orders", tags=["Orders"])
logger = logging.getLogger(__name__)


def _client_ip(request: Request):
    return request.client.host if request.client else None

# Map Order model to OrderResponse schema
def _order_to_out(db: Session, order: Order) -> OrderResponse:
    plat = db.get(Plat, order.plat_id)
    return OrderResponse(
        id=order.id,
        plat_id=order.plat_id,
        plat_name=plat.name if plat else None,
        customer_id=order.customer_id,
        chef_id=order.chef_id,
        status=order.status,
        status_label=order.status.label,
        quantity=order.quantity,
        description=order.description,
        chef_notes=order.chef_notes,
        delivery_address=order.delivery_address,
        estimated_delivery_time=order.estimated_delivery_time,
        actual_delivery_time=order.actual_delivery_time,
        total_price=float(order.total_price),
        selected_ingredients=[OrderIngredientOut.model_validate(i) for i in order.ingredients],
        created_at=order.created_at,
        updated_at=order.updated_at,
    )

def _page(db: Session, orders: List[Order], page: int, page_size: int) -> dict:
    start = (page - 1) * page_size
    return {
        "items": [_order_to_out(db, o) for o in orders[start:start + page_size]],
        "total": len(orders),
        "page": page,
        "page_size": page_size,
    }


# Order a single dish
@router.post("", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
def create_order(
    payload: OrderCreatePayload,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    order = order_service.create_order(
        db,
        current_user,
        payload.plat_id,
        quantity=payload.quantity,
        selected_ingredient_ids=payload.selected_ingredient_ids,
        description=payload.description,
        delivery_address=payload.delivery_address,
    )
    write_log(db, user_id=current_user.id, action="ORDER_CREATE", resource="orders",
              ip=_client_ip(request),
              meta={"order_id": order.id, "plat_id": order.plat_id, "total": order.total_price})
    return _order_to_out(db, order)


# Turn every cart line into an order and empty the cart
@router.post("/checkout", response_model=List[OrderResponse], status_code=status.HTTP_201_CREATED)
def checkout(
    payload: CheckoutPayload,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    orders = order_service.checkout_cart(
        db, current_user, delivery_address=payload.delivery_address, description=payload.description
    )
    write_log(db, user_id=current_user.id, action="ORDER_CHECKOUT", resource="orders",
              ip=_client_ip(request),
              meta={"order_ids": [o.id for o in orders], "total": sum(o.total_price for o in orders)})
    return [_order_to_out(db, o) for o in orders]


# Orders placed by the current customer
@router.get("", response_model=OrdersPage)
def list_my_orders(
    status_filter: Optional[OrderStatus] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    orders = order_service.list_customer_orders(db, current_user.id, status=status_filter)
    return _page(db, orders, page, page_size)


# Orders received by the current chef
@router.get("/chef", response_model=OrdersPage)
def list_chef_orders(
    status_filter: Optional[OrderStatus] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(role_required(ROLE_CHEF, ROLE_ADMIN)),
):
    orders = order_service.list_chef_orders(db, current_user.id, status=status_filter)
    return _page(db, orders, page, page_size)


@router.get("/my-statistics", response_model=OrderStatistics)
def my_statistics(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return order_service.order_statistics(db, current_user.id)


@router.get("/{order_id}", response_model=OrderResponse)
def get_order(
    order_id: uuid.UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return _order_to_out(db, order_service.get_order(db, current_user, order_id))


# Chef (or admin) moves the order along its lifecycle
@router.patch("/{order_id}/status", response_model=OrderResponse)
def update_order_status(
    order_id: uuid.UUID,
    payload: OrderStatusPatch,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    order, previous = order_service.update_status(
        db,
        current_user,
        order_id,
        payload.status,
        chef_notes=payload.chef_notes,
        estimated_delivery_time=payload.estimated_delivery_time,
    )
    write_log(db, user_id=current_user.id, action="ORDER_STATUS_CHANGE", resource="orders",
              ip=_client_ip(request),
              meta={"order_id": order.id, "from": previous.value, "to": order.status.value})
    return _order_to_out(db, order)


@router.post("/{order_id}/cancel", response_model=OrderResponse)
def cancel_order(
    order_id: uuid.UUID,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    order = order_service.cancel_order(db, current_user, order_id)
    write_log(db, user_id=current_user.id, action="ORDER_CANCEL", resource="orders",
              ip=_client_ip(request), meta={"order_id": order.id})
    return _order_to_out(db, order)


# Audited correction of the captured total
@router.patch("/{order_id}/price", response_model=OrderResponse)
def adjust_order_price(
    order_id: uuid.UUID,
    payload: OrderPricePatch,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    order, previous_total = order_service.adjust_price(
        db, current_user, order_id, payload.total_price, payload.reason
    )
    write_log(db, user_id=current_user.id, action="ORDER_PRICE_ADJUST", resource="orders",
              ip=_client_ip(request),
              meta={"order_id": order.id, "from": previous_total, "to": order.total_price,
                    "reason": payload.reason})
    return _order_to_out(db, order)


@router.put("/{order_id}/delivery-address", response_model=OrderResponse)
def update_delivery_address(
    order_id: uuid.UUID,
    payload: DeliveryAddressUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    order = order_service.update_delivery_address(db, current_user, order_id, payload.delivery_address)
    write_log(db, user_id=current_user.id, action="ORDER_ADDRESS_CHANGE", resource="orders",
              ip=_client_ip(request), meta={"order_id": order.id})
    return _order_to_out(db, order)


# Coordinates of the delivery address, for the map on the order page
@router.get("/{order_id}/delivery-location", response_model=DeliveryLocation)
async def get_delivery_location(
    order_id: uuid.UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    geocoder: Geocoder = Depends(get_geocoder),
):
    order = await run_in_threadpool(order_service.get_order, db, current_user, order_id)
    if not order.delivery_address:
        return DeliveryLocation(order_id=order.id, found=False)

    coordinates = await geocoder.geocode(order.delivery_address)
    if coordinates is None:
        logger.info("No coordinates found for order %s", order.id)
        return DeliveryLocation(order_id=order.id, delivery_address=order.delivery_address, found=False)
    return DeliveryLocation(
        order_id=order.id,
        delivery_address=order.delivery_address,
        latitude=coordinates.latitude,
        longitude=coordinates.longitude,
        found=True,
    )
