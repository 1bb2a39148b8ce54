# backend/services/pricing.py
"""Effective price of a dish at a given instant.

A dish has at most one *effective* promotion: the active row whose
``[starts_at, ends_at)`` window contains the instant. When several active
promotions overlap, the highest discount wins; equal discounts go to the most
recently created one.
"""
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from sqlalchemy.orm import Session

from models.plat import Plat
from models.promotion import Promotion
from utils.clock import utcnow
from utils.errors import NotFound

CENT = Decimal("0.01")
HUNDRED = Decimal("100")


@dataclass(frozen=True)
class EffectivePrice:
    plat: Plat
    unit_price: Decimal
    original_price: Decimal
    promotion: Optional[Promotion] = None


def to_money(value) -> Decimal:
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def apply_discount(price, discount_percentage) -> Decimal:
    pct = min(max(Decimal(str(discount_percentage)), Decimal("0")), HUNDRED)
    return to_money(Decimal(str(price)) * (HUNDRED - pct) / HUNDRED)


def find_effective_promotion(db: Session, plat_id, as_of: datetime) -> Optional[Promotion]:
    return (
        db.query(Promotion)
        .filter(
            Promotion.plat_id == plat_id,
            Promotion.is_active.is_(True),
            Promotion.starts_at <= as_of,
            Promotion.ends_at > as_of,
        )
        .order_by(
            Promotion.discount_percentage.desc(),
            Promotion.created_at.desc(),
            Promotion.id.desc(),
        )
        .first()
    )


def price_for(db: Session, plat: Plat, as_of: Optional[datetime] = None) -> EffectivePrice:
    as_of = as_of or utcnow()
    original = to_money(plat.price)
    promotion = find_effective_promotion(db, plat.id, as_of)
    if promotion is None:
        return EffectivePrice(plat=plat, unit_price=original, original_price=original)
    return EffectivePrice(
        plat=plat,
        unit_price=apply_discount(original, promotion.discount_percentage),
        original_price=original,
        promotion=promotion,
    )


def resolve_effective_price(db: Session, plat_id, as_of: Optional[datetime] = None) -> EffectivePrice:
    plat = db.get(Plat, plat_id)
    if plat is None:
        raise NotFound(f"Dish {plat_id} not found")
    return price_for(db, plat, as_of)
