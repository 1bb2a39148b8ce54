# backend/services/reviews.py
"""Ratings of dishes and chefs.

A user rates a given dish or chef once, from 1 to 5, with a short text.
Reviews are public; the author and the score never change after posting.
"""
import logging
from dataclasses import dataclass
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from models.plat import Plat
from models.review import PlatReview, ChefReview, REVIEW_TEXT_MAX, RATE_MIN, RATE_MAX
from models.users import User
from utils.errors import NotFound, InvalidArgument, Conflict
from utils.permissions import is_chef

logger = logging.getLogger(__name__)

UNKNOWN_AUTHOR = "Unknown user"


@dataclass(frozen=True)
class RatingSummary:
    average: Optional[float]
    count: int


def _check_review(rate: int, review_text: str) -> str:
    if rate is None or not RATE_MIN <= rate <= RATE_MAX:
        raise InvalidArgument(f"Rating must be between {RATE_MIN} and {RATE_MAX}")
    text = (review_text or "").strip()
    if not text:
        raise InvalidArgument("Review text cannot be empty")
    if len(text) > REVIEW_TEXT_MAX:
        raise InvalidArgument(f"Review text cannot exceed {REVIEW_TEXT_MAX} characters")
    return text


def _save(db: Session, review, duplicate_message: str):
    db.add(review)
    try:
        db.commit()
    except IntegrityError:
        # Lost a race against the same user's first review
        db.rollback()
        raise Conflict(duplicate_message)
    db.refresh(review)
    return review


def get_chef(db: Session, chef_id) -> User:
    chef = db.get(User, chef_id)
    if chef is None or not is_chef(chef):
        raise NotFound(f"Chef {chef_id} not found")
    return chef


def author_name(db: Session, user_id) -> str:
    user = db.get(User, user_id)
    if user is None:
        return UNKNOWN_AUTHOR
    return " ".join(part for part in (user.first_name, user.last_name) if part) or user.email


def _summary(db: Session, model, column, target_id) -> RatingSummary:
    average, count = db.query(func.avg(model.rate), func.count(model.id)).filter(column == target_id).one()
    return RatingSummary(average=round(float(average), 2) if count else None, count=int(count))


# Dishes

def add_plat_review(db: Session, user: User, plat_id, rate: int, review_text: str) -> PlatReview:
    if db.get(Plat, plat_id) is None:
        raise NotFound(f"Dish {plat_id} not found")
    text = _check_review(rate, review_text)
    if has_reviewed_plat(db, user.id, plat_id):
        raise Conflict("You have already reviewed this dish")

    review = _save(db, PlatReview(plat_id=plat_id, user_id=user.id, review_text=text, rate=rate),
                   "You have already reviewed this dish")
    logger.info("Review %s (%s/5) added for dish %s by %s", review.id, rate, plat_id, user.id)
    return review


def list_plat_reviews(db: Session, plat_id) -> List[PlatReview]:
    return db.query(PlatReview).filter(PlatReview.plat_id == plat_id).order_by(PlatReview.created_at.desc()).all()


def list_user_plat_reviews(db: Session, user_id) -> List[PlatReview]:
    return db.query(PlatReview).filter(PlatReview.user_id == user_id).order_by(PlatReview.created_at.desc()).all()


def has_reviewed_plat(db: Session, user_id, plat_id) -> bool:
    return db.query(PlatReview.id).filter(PlatReview.user_id == user_id, PlatReview.plat_id == plat_id).first() is not None


def plat_rating(db: Session, plat_id) -> RatingSummary:
    return _summary(db, PlatReview, PlatReview.plat_id, plat_id)


# Chefs

def add_chef_review(db: Session, user: User, chef_id, rate: int, review_text: str) -> ChefReview:
    get_chef(db, chef_id)
    text = _check_review(rate, review_text)
    if has_reviewed_chef(db, user.id, chef_id):
        raise Conflict("You have already reviewed this chef")

    review = _save(db, ChefReview(chef_id=chef_id, user_id=user.id, review_text=text, rate=rate),
                   "You have already reviewed this chef")
    logger.info("Review %s (%s/5) added for chef %s by %s", review.id, rate, chef_id, user.id)
    return review


def list_chef_reviews(db: Session, chef_id) -> List[ChefReview]:
    return db.query(ChefReview).filter(ChefReview.chef_id == chef_id).order_by(ChefReview.created_at.desc()).all()


def list_user_chef_reviews(db: Session, user_id) -> List[ChefReview]:
    return db.query(ChefReview).filter(ChefReview.user_id == user_id).order_by(ChefReview.created_at.desc()).all()


def has_reviewed_chef(db: Session, user_id, chef_id) -> bool:
    return db.query(ChefReview.id).filter(ChefReview.user_id == user_id, ChefReview.chef_id == chef_id).first() is not None


def chef_rating(db: Session, chef_id) -> RatingSummary:
    return _summary(db, ChefReview, ChefReview.chef_id, chef_id)
