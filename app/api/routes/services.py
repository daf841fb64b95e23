# app/api/routes/services.py
import json
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile, status
from pydantic import BaseModel, ValidationError
from sqlalchemy.orm import Session, selectinload

from app.core.permissions import Caller, get_caller, get_optional_caller, require_provider_profile
from app.db.base import get_db
from app.db.models.enums import ServiceCategory
from app.db.models.service import Service
from app.db.models.service_details import AccommodationDetails, FoodDetails, LaundryDetails, TravelDetails
from app.db.models.template import ServiceTemplate
from app.schemas.common import MessageResponse, Pagination
from app.schemas.service import (
    DETAILS_CREATE_SCHEMAS,
    ServiceDetailResponse,
    ServiceListItem,
    ServiceListResponse,
    ServiceResponse,
)
from app.utils.uploads import remove_images, save_images, validate_images

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/services", tags=["services"])

DETAILS_MODELS = {
    ServiceCategory.ACCOMMODATION.value: AccommodationDetails,
    ServiceCategory.FOOD.value: FoodDetails,
    ServiceCategory.TRAVEL.value: TravelDetails,
    ServiceCategory.LAUNDRY.value: LaundryDetails,
}


def _with_relations(query):
    return query.options(
        selectinload(Service.provider),
        selectinload(Service.reviews),
        selectinload(Service.accommodation_details),
        selectinload(Service.food_details),
        selectinload(Service.travel_details),
        selectinload(Service.laundry_details),
    )


def _load_details_payload(raw: Optional[str]) -> dict:
    if not raw:
        return {}
    try:
        data = json.loads(raw)
    except json.JSONDecodeError:
        raise HTTPException(status_code=400, detail="details must be a JSON object")
    if not isinstance(data, dict):
        raise HTTPException(status_code=400, detail="details must be a JSON object")
    return data


def _validate_details(category: str, data: dict) -> BaseModel:
    schema = DETAILS_CREATE_SCHEMAS[category]
    try:
        return schema(**data)
    except ValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(p) for p in first.get("loc", ()))
        raise HTTPException(status_code=400, detail=f"Invalid {category.lower()} details: {field} {first.get('msg')}")


def build_details_row(category: str, service_id: int, details: BaseModel):
    return DETAILS_MODELS[category](service_id=service_id, **details.model_dump())


def _get_service_or_404(db: Session, service_id: int) -> Service:
    service = _with_relations(db.query(Service)).filter(Service.id == service_id).first()
    if not service:
        raise HTTPException(status_code=404, detail="Service not found")
    return service


# Public catalog

@router.get("", response_model=ServiceListResponse)
def list_services(
    category: Optional[ServiceCategory] = Query(None),
    search: Optional[str] = Query(None, description="Case-insensitive match on title and description"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
):
    q = db.query(Service).filter(Service.is_active == True)  # noqa: E712
    if category:
        q = q.filter(Service.category == category.value)
    if search and search.strip():
        q_like = f"%{search.strip()}%"
        q = q.filter((Service.title.ilike(q_like)) | (Service.description.ilike(q_like)))

    total = q.count()
    offset = (page - 1) * limit
    services = (
        _with_relations(q)
        .order_by(Service.created_at.desc(), Service.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )
    return {"services": services, "pagination": Pagination.build(page, limit, total)}


# Provider's own listings, inactive ones included

@router.get("/provider/my-services", response_model=List[ServiceListItem])
def my_services(db: Session = Depends(get_db), caller: Caller = Depends(get_caller)):
    if not caller.is_provider:
        raise HTTPException(status_code=403, detail="Forbidden: Provider access required")
    provider_id = require_provider_profile(caller)

    return (
        _with_relations(db.query(Service))
        .filter(Service.provider_id == provider_id)
        .order_by(Service.created_at.desc(), Service.id.desc())
        .all()
    )


@router.get("/{service_id}", response_model=ServiceDetailResponse)
def get_service(
    service_id: int,
    db: Session = Depends(get_db),
    caller: Optional[Caller] = Depends(get_optional_caller),
):
    service = _get_service_or_404(db, service_id)
    if not service.is_active and not (caller and caller.can_manage_service(service)):
        # hidden listings only exist for their owner and admins
        raise HTTPException(status_code=404, detail="Service not found")
    return service


@router.post("", response_model=ServiceResponse, status_code=status.HTTP_201_CREATED)
def create_service(
    title: str = Form(..., min_length=1),
    category: ServiceCategory = Form(...),
    base_price: float = Form(..., ge=0),
    description: Optional[str] = Form(None),
    capacity: int = Form(1, ge=1),
    location: Optional[str] = Form(None),
    template_id: Optional[int] = Form(None),
    details: Optional[str] = Form(None, description="JSON object with category-specific fields"),
    images: Optional[List[UploadFile]] = File(None),
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller),
):
    if not caller.is_provider:
        raise HTTPException(status_code=403, detail="Forbidden: Provider access required")
    provider_id = require_provider_profile(caller, "You must be a registered provider")

    details_in = _validate_details(category.value, _load_details_payload(details))
    files = validate_images(images)

    if template_id is not None:
        template = db.query(ServiceTemplate).filter(ServiceTemplate.id == template_id).first()
        if not template:
            raise HTTPException(status_code=404, detail="Template not found")

    image_urls = save_images(files)

    # Service row and its details row commit together or not at all
    try:
        new_service = Service(
            provider_id=provider_id,
            template_id=template_id,
            category=category.value,
            title=title,
            description=description,
            location=location or None,
            base_price=base_price,
            capacity=capacity,
            booked_count=0,
            images=image_urls,
            is_active=True,
        )
        db.add(new_service)
        db.flush()

        db.add(build_details_row(category.value, new_service.id, details_in))
        db.commit()
    except Exception:
        db.rollback()
        remove_images(image_urls)
        logger.exception("Failed to create service, rolled back")
        raise

    logger.info(f"Provider {provider_id} created service {new_service.id} ({category.value})")
    return _get_service_or_404(db, new_service.id)


@router.put("/{service_id}", response_model=ServiceResponse)
def update_service(
    service_id: int,
    title: Optional[str] = Form(None, min_length=1),
    description: Optional[str] = Form(None),
    base_price: Optional[float] = Form(None, ge=0),
    capacity: Optional[int] = Form(None, ge=1),
    location: Optional[str] = Form(None),
    is_active: Optional[bool] = Form(None),
    category: Optional[ServiceCategory] = Form(None),
    details: Optional[str] = Form(None, description="JSON object with the detail fields to change"),
    images: Optional[List[UploadFile]] = File(None),
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller),
):
    service = _get_service_or_404(db, service_id)

    # Permission check
    if not caller.can_manage_service(service):
        raise HTTPException(status_code=403, detail="Not authorized to update this service")

    if category is not None and category.value != service.category:
        raise HTTPException(status_code=400, detail="Service category cannot be changed")

    if capacity is not None and capacity < service.booked_count:
        raise HTTPException(
            status_code=400,
            detail=f"Capacity cannot be lower than the {service.booked_count} seat(s) already booked",
        )

    details_patch = _load_details_payload(details)
    details_row = service.details
    details_in = None
    if details_patch:
        schema = DETAILS_CREATE_SCHEMAS[service.category]
        unknown = set(details_patch) - set(schema.model_fields)
        if unknown:
            raise HTTPException(status_code=400, detail=f"Unknown detail fields: {', '.join(sorted(unknown))}")
        current = {name: getattr(details_row, name) for name in schema.model_fields} if details_row else {}
        details_in = _validate_details(service.category, {**current, **details_patch})

    files = validate_images(images)
    new_urls = save_images(files)

    try:
        if title is not None:
            service.title = title
        if description is not None:
            service.description = description
        if base_price is not None:
            service.base_price = base_price
        if capacity is not None:
            service.capacity = capacity
        if location is not None:
            service.location = location or None
        if is_active is not None:
            service.is_active = is_active
        if new_urls:
            service.images = [*(service.images or []), *new_urls]

        if details_in is not None:
            if details_row is None:
                db.add(build_details_row(service.category, service.id, details_in))
            else:
                for field, value in details_in.model_dump().items():
                    setattr(details_row, field, value)

        db.commit()
    except Exception:
        db.rollback()
        remove_images(new_urls)
        logger.exception(f"Failed to update service {service_id}, rolled back")
        raise

    logger.info(f"User {caller.id} updated service {service_id}")
    db.refresh(service)
    return service


@router.delete("/{service_id}", response_model=MessageResponse)
def delete_service(
    service_id: int,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller),
):
    service = db.query(Service).filter(Service.id == service_id).first()
    if not service:
        raise HTTPException(status_code=404, detail="Service not found")

    if not caller.can_manage_service(service):
        raise HTTPException(status_code=403, detail="Not authorized to delete this service")

    image_urls = list(service.images or [])
    db.delete(service)
    db.commit()
    remove_images(image_urls)

    logger.info(f"User {caller.id} deleted service {service_id}")
    return {"message": "Service deleted successfully"}
