# backend/services/promotions.py
import logging
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from sqlalchemy.orm import Session

from models.plat import Plat
from models.promotion import Promotion
from models.users import User
from services.pricing import find_effective_promotion
from utils.clock import to_naive_utc, utcnow
from utils.errors import NotFound, InvalidArgument, Conflict
from utils.permissions import authorize, enforce

logger = logging.getLogger(__name__)


def create_promotion(db: Session, chef: User, plat_id, discount_percentage, ends_at: datetime,
                     starts_at: Optional[datetime] = None) -> Promotion:
    plat = db.get(Plat, plat_id)
    if plat is None:
        raise NotFound(f"Dish {plat_id} not found")
    enforce(authorize(chef, [plat.chef_id]), "Only the chef of this dish can promote it")

    pct = Decimal(str(discount_percentage))
    if pct <= 0 or pct > 100:
        raise InvalidArgument("Discount percentage must be greater than 0 and at most 100")

    now = utcnow()
    ends_at = to_naive_utc(ends_at)
    starts_at = to_naive_utc(starts_at) or now
    if ends_at <= now:
        raise InvalidArgument("End date must be in the future")
    if ends_at <= starts_at:
        raise InvalidArgument("End date must be after the start date")

    if find_effective_promotion(db, plat.id, starts_at) is not None:
        raise Conflict("This dish already has an active promotion")

    promotion = Promotion(
        plat_id=plat.id,
        discount_percentage=pct,
        starts_at=starts_at,
        ends_at=ends_at,
        is_active=True,
    )
    db.add(promotion)
    db.commit()
    db.refresh(promotion)
    logger.info("Promotion %s (%s%%) created for dish %s until %s", promotion.id, pct, plat.id, ends_at)
    return promotion


def get_active_promotion(db: Session, plat_id, as_of: Optional[datetime] = None) -> Optional[Promotion]:
    return find_effective_promotion(db, plat_id, as_of or utcnow())


def list_chef_promotions(db: Session, chef_id) -> List[Promotion]:
    return (
        db.query(Promotion)
        .join(Plat, Plat.id == Promotion.plat_id)
        .filter(Plat.chef_id == chef_id)
        .order_by(Promotion.created_at.desc())
        .all()
    )


def delete_promotion(db: Session, actor: User, promotion_id) -> None:
    promotion = db.get(Promotion, promotion_id)
    if promotion is None:
        raise NotFound(f"Promotion {promotion_id} not found")
    plat = db.get(Plat, promotion.plat_id)
    owners = [plat.chef_id] if plat is not None else []
    enforce(authorize(actor, owners, allow_admin=True), "Only the chef of this dish can delete its promotion")
    db.delete(promotion)
    db.commit()
    logger.info("Promotion %s deleted by %s", promotion_id, actor.id)


def deactivate_expired_promotions(db: Session, now: Optional[datetime] = None) -> int:
    """Flip every active promotion whose end time has passed to inactive.

    Returns the number of promotions deactivated; a second run finds nothing.
    """
    now = now or utcnow()
    expired = (
        db.query(Promotion)
        .filter(Promotion.is_active.is_(True), Promotion.ends_at < now)
        .all()
    )
    if not expired:
        logger.info("No expired promotions found")
        return 0

    for promotion in expired:
        promotion.is_active = False
        logger.info("Deactivated expired promotion %s for dish %s", promotion.id, promotion.plat_id)
    db.commit()
    logger.info("Deactivated %s expired promotion(s)", len(expired))
    return len(expired)


def sweep_with_new_session(session_factory) -> int:
    """Entry point for the scheduler thread, which has no request session."""
    db = session_factory()
    try:
        return deactivate_expired_promotions(db)
    finally:
        db.close()
