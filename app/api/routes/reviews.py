# app/api/routes/reviews.py
import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from app.core.permissions import Caller, get_caller
from app.db.base import get_db
from app.db.models.booking import Booking
from app.db.models.enums import BookingStatus
from app.db.models.review import Review
from app.db.models.service import Service
from app.schemas.common import MessageResponse, Pagination
from app.schemas.review import ReviewCreate, ReviewListResponse, ReviewResponse, ReviewUpdate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/reviews", tags=["reviews"])

DUPLICATE_REVIEW = "You have already reviewed this service"


def already_reviewed(db: Session, user_id: int, service_id: int) -> bool:
    return (
        db.query(Review.id)
        .filter(Review.user_id == user_id, Review.service_id == service_id)
        .first()
    ) is not None


def _get_review_for_change(db: Session, review_id: int, caller: Caller) -> Review:
    review = db.query(Review).filter(Review.id == review_id).first()
    if not review:
        raise HTTPException(status_code=404, detail="Review not found")

    # author or admin only
    if review.user_id != caller.id and not caller.is_admin:
        raise HTTPException(status_code=403, detail="Not authorized")
    return review


# Create review (renter with a completed booking)
@router.post("", response_model=ReviewResponse, status_code=status.HTTP_201_CREATED)
def create_review(review_in: ReviewCreate, db: Session = Depends(get_db), caller: Caller = Depends(get_caller)):
    service = db.query(Service).filter(Service.id == review_in.service_id).first()
    if not service:
        raise HTTPException(status_code=404, detail="Service not found")

    # Booking must be completed
    has_completed = (
        db.query(Booking.id)
        .filter(
            Booking.user_id == caller.id,
            Booking.service_id == service.id,
            Booking.status == BookingStatus.COMPLETED.value,
        )
        .first()
    )
    if not has_completed:
        raise HTTPException(status_code=400, detail="You can only review services you have booked")

    # One review per user and service (db unique + check)
    if already_reviewed(db, caller.id, service.id):
        raise HTTPException(status_code=400, detail=DUPLICATE_REVIEW)

    review = Review(
        user_id=caller.id,
        service_id=service.id,
        rating=review_in.rating,
        comment=review_in.comment,
    )

    db.add(review)
    try:
        db.commit()
    except IntegrityError:
        # a concurrent submit got past the check above first
        db.rollback()
        logger.info(f"Duplicate review rejected by constraint for user {caller.id}, service {service.id}")
        raise HTTPException(status_code=400, detail=DUPLICATE_REVIEW)
    db.refresh(review)

    logger.info(f"User {caller.id} reviewed service {service.id} ({review.rating}/5)")
    return review


# List reviews for a service (public)
@router.get("/service/{service_id}", response_model=ReviewListResponse)
def list_service_reviews(
    service_id: int,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
):
    q = db.query(Review).filter(Review.service_id == service_id)
    total = q.count()
    offset = (page - 1) * limit
    reviews = (
        q.options(selectinload(Review.user))
        .order_by(Review.created_at.desc(), Review.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )
    return {"reviews": reviews, "pagination": Pagination.build(page, limit, total)}


@router.put("/{review_id}", response_model=ReviewResponse)
def update_review(
    review_id: int,
    review_in: ReviewUpdate,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller),
):
    review = _get_review_for_change(db, review_id, caller)

    for field, value in review_in.model_dump(exclude_unset=True).items():
        if field == "rating" and value is None:
            continue
        setattr(review, field, value)

    db.commit()
    db.refresh(review)
    return review


@router.delete("/{review_id}", response_model=MessageResponse)
def delete_review(review_id: int, db: Session = Depends(get_db), caller: Caller = Depends(get_caller)):
    review = _get_review_for_change(db, review_id, caller)

    db.delete(review)
    db.commit()
    logger.info(f"User {caller.id} deleted review {review_id}")
    return {"message": "Review deleted successfully"}
