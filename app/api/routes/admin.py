# app/api/routes/admin.py
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from app.core.security import require_admin
from app.db.base import get_db
from app.db.models.booking import Booking
from app.db.models.enums import BookingStatus, UserRole
from app.db.models.provider import ServiceProvider
from app.db.models.service import Service
from app.db.models.template import ServiceTemplate
from app.db.models.user import User
from app.schemas.admin import (
    CategoryCount,
    ProviderListItem,
    ProviderListResponse,
    RecentBookingItem,
    RoleUpdateRequest,
    RoleUpdateResponse,
    StatisticsOverview,
    StatisticsResponse,
    UserListResponse,
    VerifyProviderRequest,
)
from app.schemas.common import MessageResponse, Pagination
from app.schemas.provider import ProviderResponse
from app.schemas.template import TemplateCreate, TemplateResponse, TemplateUpdate
from app.utils.seats import release_user_seats

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["admin"])

REVENUE_STATUSES = (BookingStatus.CONFIRMED.value, BookingStatus.COMPLETED.value)
ROLES = {r.value for r in UserRole}


# -------------------------
# 1. Users
# -------------------------
@router.get("/users", response_model=UserListResponse)
def list_users(
    role: Optional[UserRole] = Query(None),
    search: Optional[str] = Query(None, description="Matches name or email"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=200),
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    q = db.query(User)
    if role:
        q = q.filter(User.role == role.value)
    if search and search.strip():
        q_like = f"%{search.strip()}%"
        q = q.filter((User.name.ilike(q_like)) | (User.email.ilike(q_like)))

    total = q.count()
    offset = (page - 1) * limit
    users = (
        q.options(selectinload(User.service_provider))
        .order_by(User.created_at.desc(), User.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )
    return {"users": users, "pagination": Pagination.build(page, limit, total)}


@router.patch("/users/{user_id}/role", response_model=RoleUpdateResponse)
def update_user_role(
    user_id: int,
    payload: RoleUpdateRequest,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    if payload.role not in ROLES:
        raise HTTPException(status_code=400, detail="Invalid role")

    if user_id == admin.id:
        raise HTTPException(status_code=400, detail="Cannot change your own role")

    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")

    # Provider profiles and listings are left as they are on demotion
    previous = user.role
    user.role = payload.role
    db.commit()
    db.refresh(user)
    logger.info(f"Admin {admin.id} changed role of user {user.id}: {previous} -> {user.role}")
    return RoleUpdateResponse(id=user.id, role=user.role)


@router.delete("/users/{user_id}", response_model=MessageResponse)
def delete_user(
    user_id: int,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    if user_id == admin.id:
        raise HTTPException(status_code=400, detail="Cannot delete your own account")

    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")

    # seats held by the user's bookings go back to their services in the same transaction
    released = release_user_seats(db, user.id)

    # cascades to provider profile, its services, their bookings and reviews,
    # and the user's own bookings and reviews
    db.delete(user)
    db.commit()
    logger.info(f"Admin {admin.id} deleted user {user_id} (released {released} booking(s))")
    return {"message": "User deleted successfully"}


# --------------------------------------------------
# 2. Providers
# --------------------------------------------------
@router.get("/providers", response_model=ProviderListResponse)
def list_providers(
    verified: Optional[bool] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=200),
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    q = db.query(ServiceProvider)
    if verified is not None:
        q = q.filter(ServiceProvider.is_verified == verified)

    total = q.count()
    offset = (page - 1) * limit
    providers = (
        q.options(selectinload(ServiceProvider.user))
        .order_by(ServiceProvider.created_at.desc(), ServiceProvider.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )

    counts = dict(
        db.query(Service.provider_id, func.count(Service.id))
        .filter(Service.provider_id.in_([p.id for p in providers]))
        .group_by(Service.provider_id)
        .all()
    ) if providers else {}

    items = []
    for p in providers:
        item = ProviderListItem.model_validate(p)
        item.service_count = int(counts.get(p.id, 0))
        items.append(item)
    return ProviderListResponse(providers=items, pagination=Pagination.build(page, limit, total))


@router.patch("/providers/{provider_id}/verify", response_model=ProviderResponse)
def verify_provider(
    provider_id: int,
    payload: VerifyProviderRequest,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    provider = db.query(ServiceProvider).filter(ServiceProvider.id == provider_id).first()
    if not provider:
        raise HTTPException(status_code=404, detail="Provider not found")
    provider.is_verified = payload.is_verified
    db.commit()
    db.refresh(provider)
    logger.info(f"Admin {admin.id} set provider {provider.id} verified={provider.is_verified}")
    return provider


# --------------------------------------------------
# 3. Platform statistics
# --------------------------------------------------
@router.get("/statistics", response_model=StatisticsResponse)
def statistics(db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    total_users = db.query(func.count(User.id)).scalar() or 0
    total_providers = db.query(func.count(ServiceProvider.id)).scalar() or 0
    verified_providers = db.query(func.count(ServiceProvider.id)).filter(
        ServiceProvider.is_verified == True  # noqa: E712
    ).scalar() or 0
    total_services = db.query(func.count(Service.id)).scalar() or 0
    active_services = db.query(func.count(Service.id)).filter(Service.is_active == True).scalar() or 0  # noqa: E712
    total_bookings = db.query(func.count(Booking.id)).scalar() or 0
    total_revenue = db.query(func.coalesce(func.sum(Booking.total_price), 0)).filter(
        Booking.status.in_(REVENUE_STATUSES)
    ).scalar() or 0.0

    users_by_role = {row[0]: int(row[1]) for row in db.query(User.role, func.count(User.id)).group_by(User.role).all()}
    bookings_by_status = {
        row[0]: int(row[1]) for row in db.query(Booking.status, func.count(Booking.id)).group_by(Booking.status).all()
    }
    services_by_category = [
        CategoryCount(category=row[0], count=int(row[1]))
        for row in db.query(Service.category, func.count(Service.id)).group_by(Service.category).all()
    ]

    recent_rows = (
        db.query(Booking)
        .options(selectinload(Booking.user), selectinload(Booking.service))
        .order_by(Booking.created_at.desc(), Booking.id.desc())
        .limit(10)
        .all()
    )
    recent_bookings = [
        RecentBookingItem(
            id=b.id,
            status=b.status,
            total_price=float(b.total_price),
            created_at=b.created_at,
            user_name=b.user.name if b.user else None,
            service_title=b.service.title if b.service else None,
        )
        for b in recent_rows
    ]

    return StatisticsResponse(
        overview=StatisticsOverview(
            total_users=int(total_users),
            total_providers=int(total_providers),
            verified_providers=int(verified_providers),
            total_services=int(total_services),
            active_services=int(active_services),
            total_bookings=int(total_bookings),
            total_revenue=float(total_revenue),
        ),
        users_by_role=users_by_role,
        bookings_by_status=bookings_by_status,
        services_by_category=services_by_category,
        recent_bookings=recent_bookings,
    )


# --------------------------------------------------
# 4. Service templates
# --------------------------------------------------
@router.get("/templates", response_model=List[TemplateResponse])
def list_templates(db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    return db.query(ServiceTemplate).order_by(ServiceTemplate.created_at.desc(), ServiceTemplate.id.desc()).all()


@router.post("/templates", response_model=TemplateResponse, status_code=status.HTTP_201_CREATED)
def create_template(payload: TemplateCreate, db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    existing = db.query(ServiceTemplate).filter(ServiceTemplate.name == payload.name).first()
    if existing:
        raise HTTPException(status_code=400, detail="Template with this name already exists")

    template = ServiceTemplate(
        name=payload.name,
        category=payload.category.value,
        description=payload.description,
        base_price=payload.base_price,
        icon=payload.icon,
    )
    db.add(template)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=400, detail="Template with this name already exists")
    db.refresh(template)
    logger.info(f"Admin {admin.id} created template {template.id}")
    return template


@router.put("/templates/{template_id}", response_model=TemplateResponse)
def update_template(
    template_id: int,
    payload: TemplateUpdate,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    template = db.query(ServiceTemplate).filter(ServiceTemplate.id == template_id).first()
    if not template:
        raise HTTPException(status_code=404, detail="Template not found")

    for field, value in payload.model_dump(exclude_unset=True).items():
        if value is None and field != "icon":
            continue
        if field == "category":
            value = value.value
        setattr(template, field, value)

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=400, detail="Template with this name already exists")
    db.refresh(template)
    return template


@router.delete("/templates/{template_id}", response_model=MessageResponse)
def delete_template(template_id: int, db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    template = db.query(ServiceTemplate).filter(ServiceTemplate.id == template_id).first()
    if not template:
        raise HTTPException(status_code=404, detail="Template not found")

    in_use = db.query(func.count(Service.id)).filter(Service.template_id == template_id).scalar() or 0
    if in_use > 0:
        raise HTTPException(
            status_code=400,
            detail=f"Cannot delete template. {in_use} service(s) are using it.",
        )

    db.delete(template)
    db.commit()
    return {"message": "Template deleted successfully"}
