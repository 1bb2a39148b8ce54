# backend/routes/reviews.py
import uuid
from typing import List
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from database import get_db
from models.users import User
from schemas.review import PlatReviewCreate, ChefReviewCreate, ReviewOut, ReviewList, ReviewCheck
from services import reviews as review_service
from utils.audit import write_log
from utils.tokenJWT import get_current_user

router = APIRouter(prefix="/reviews", tags=["Reviews"])


def _client_ip(request: Request):
    return request.client.host if request.client else None

# Map a dish or chef review to its public form
def _review_to_out(db: Session, review, target_id) -> ReviewOut:
    return ReviewOut(
        id=review.id,
        target_id=target_id,
        user_id=review.user_id,
        user_name=review_service.author_name(db, review.user_id),
        rate=review.rate,
        review_text=review.review_text,
        created_at=review.created_at,
        updated_at=review.updated_at,
    )


# Dishes

@router.post("/plats", response_model=ReviewOut, status_code=status.HTTP_201_CREATED)
def add_plat_review(
    payload: PlatReviewCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    review = review_service.add_plat_review(db, current_user, payload.plat_id, payload.rate, payload.review_text)
    write_log(db, user_id=current_user.id, action="REVIEW_PLAT_ADD", resource="reviews",
              ip=_client_ip(request), meta={"plat_id": payload.plat_id, "rate": payload.rate})
    return _review_to_out(db, review, review.plat_id)


@router.get("/plats/mine", response_model=List[ReviewOut])
def my_plat_reviews(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return [_review_to_out(db, r, r.plat_id) for r in review_service.list_user_plat_reviews(db, current_user.id)]


# Public
@router.get("/plats/{plat_id}", response_model=ReviewList)
def plat_reviews(plat_id: uuid.UUID, db: Session = Depends(get_db)):
    rating = review_service.plat_rating(db, plat_id)
    return ReviewList(
        items=[_review_to_out(db, r, r.plat_id) for r in review_service.list_plat_reviews(db, plat_id)],
        average_rating=rating.average,
        count=rating.count,
    )


@router.get("/plats/{plat_id}/check", response_model=ReviewCheck)
def check_plat_review(
    plat_id: uuid.UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return {"reviewed": review_service.has_reviewed_plat(db, current_user.id, plat_id)}


# Chefs

@router.post("/chefs", response_model=ReviewOut, status_code=status.HTTP_201_CREATED)
def add_chef_review(
    payload: ChefReviewCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    review = review_service.add_chef_review(db, current_user, payload.chef_id, payload.rate, payload.review_text)
    write_log(db, user_id=current_user.id, action="REVIEW_CHEF_ADD", resource="reviews",
              ip=_client_ip(request), meta={"chef_id": payload.chef_id, "rate": payload.rate})
    return _review_to_out(db, review, review.chef_id)


@router.get("/chefs/mine", response_model=List[ReviewOut])
def my_chef_reviews(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return [_review_to_out(db, r, r.chef_id) for r in review_service.list_user_chef_reviews(db, current_user.id)]


@router.get("/chefs/{chef_id}", response_model=ReviewList)
def chef_reviews(chef_id: uuid.UUID, db: Session = Depends(get_db)):
    rating = review_service.chef_rating(db, chef_id)
    return ReviewList(
        items=[_review_to_out(db, r, r.chef_id) for r in review_service.list_chef_reviews(db, chef_id)],
        average_rating=rating.average,
        count=rating.count,
    )


@router.get("/chefs/{chef_id}/check", response_model=ReviewCheck)
def check_chef_review(
    chef_id: uuid.UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return {"reviewed": review_service.has_reviewed_chef(db, current_user.id, chef_id)}
