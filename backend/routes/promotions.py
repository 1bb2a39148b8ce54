# backend/routes/promotions.py
import logging
import uuid
from typing import List, Optional
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from database import get_db
from models.users import User, ROLE_ADMIN
from schemas.promotion import PromotionCreate, PromotionResponse, SweepResult
from services import promotions as promotion_service
from utils.audit import write_log
from utils.scheduler import PeriodicTask
from utils.tokenJWT import get_current_user, role_required

router = APIRouter(prefix="/promotions", tags=["Promotions"])
logger = logging.getLogger(__name__)


def get_sweep_task(request: Request) -> PeriodicTask:
    return request.app.state.promotion_sweep


@router.post("", response_model=PromotionResponse, status_code=status.HTTP_201_CREATED)
def create_promotion(
    payload: PromotionCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    promotion = promotion_service.create_promotion(
        db,
        current_user,
        payload.plat_id,
        payload.discount_percentage,
        ends_at=payload.ends_at,
        starts_at=payload.starts_at,
    )
    write_log(db, user_id=current_user.id, action="PROMOTION_CREATE", resource="promotions",
              ip=request.client.host if request.client else None,
              meta={"promotion_id": promotion.id, "plat_id": promotion.plat_id,
                    "discount_percentage": promotion.discount_percentage, "ends_at": promotion.ends_at})
    return promotion


# Active promotion of a dish, or null
@router.get("/plat/{plat_id}", response_model=Optional[PromotionResponse])
def get_active_promotion(plat_id: uuid.UUID, db: Session = Depends(get_db)):
    return promotion_service.get_active_promotion(db, plat_id)


@router.get("/my-promotions", response_model=List[PromotionResponse])
def my_promotions(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return promotion_service.list_chef_promotions(db, current_user.id)


# Run the expiry sweep now instead of waiting for the scheduler (Admin only)
@router.post("/sweep", response_model=SweepResult)
def run_sweep(
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(role_required(ROLE_ADMIN)),
    sweep_task: PeriodicTask = Depends(get_sweep_task),
):
    with sweep_task.exclusive() as acquired:
        if not acquired:
            logger.info("Manual sweep by %s skipped, a run is in progress", current_user.id)
            return {"deactivated": 0, "skipped": True}
        count = promotion_service.deactivate_expired_promotions(db)
    write_log(db, user_id=current_user.id, action="PROMOTION_SWEEP", resource="promotions",
              ip=request.client.host if request.client else None, meta={"deactivated": count})
    return {"deactivated": count, "skipped": False}


@router.delete("/{promotion_id}")
def delete_promotion(
    promotion_id: uuid.UUID,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    promotion_service.delete_promotion(db, current_user, promotion_id)
    write_log(db, user_id=current_user.id, action="PROMOTION_DELETE", resource="promotions",
              ip=request.client.host if request.client else None, meta={"promotion_id": promotion_id})
    return {"message": "Promotion deleted", "id": promotion_id}
