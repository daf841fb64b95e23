# app/schemas/review.py
from pydantic import BaseModel, Field, conint
from typing import List, Optional
from datetime import datetime

from app.schemas.common import Pagination
from app.schemas.service import ReviewerMini


class ReviewCreate(BaseModel):
    service_id: int
    rating: conint(ge=1, le=5) = Field(..., description="Rating 1-5")
    comment: Optional[str] = None


class ReviewUpdate(BaseModel):
    rating: Optional[conint(ge=1, le=5)] = Field(default=None, description="Rating 1-5")
    comment: Optional[str] = None


class ReviewResponse(BaseModel):
    id: int
    user_id: int
    service_id: int
    rating: int
    comment: Optional[str]
    created_at: datetime
    updated_at: Optional[datetime] = None
    user: Optional[ReviewerMini] = None

    class Config:
        from_attributes = True


class ReviewListResponse(BaseModel):
    reviews: List[ReviewResponse]
    pagination: Pagination
