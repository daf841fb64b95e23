# app/core/permissions.py
"""
Per-request authorization capability.

`Caller` is computed once per request from the authenticated user: role,
the provider profile id they own (if any) and the ids of the services under
that profile. Route handlers ask it ownership questions instead of
re-querying the provider chain.
"""
from dataclasses import dataclass, field
from typing import FrozenSet, Optional

from fastapi import Depends, HTTPException
from sqlalchemy.orm import Session

from app.core.booking_rules import ActorKind
from app.core.security import get_current_user, get_optional_user
from app.db.base import get_db
from app.db.models.booking import Booking
from app.db.models.enums import UserRole
from app.db.models.provider import ServiceProvider
from app.db.models.service import Service
from app.db.models.user import User


@dataclass(frozen=True)
class Caller:
    id: int
    email: str
    name: str
    role: str
    provider_id: Optional[int] = None
    service_ids: FrozenSet[int] = field(default_factory=frozenset)

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value

    @property
    def is_provider(self) -> bool:
        return self.role in (UserRole.SERVICE_PROVIDER.value, UserRole.ADMIN.value)

    def owns_service(self, service: Service) -> bool:
        return self.provider_id is not None and service.provider_id == self.provider_id

    def can_manage_service(self, service: Service) -> bool:
        return self.is_admin or self.owns_service(service)

    def actor_kind_for(self, booking: Booking) -> Optional[ActorKind]:
        """Relation of the caller to `booking`; admin beats provider beats renter."""
        if self.is_admin:
            return ActorKind.ADMIN
        if booking.service_id in self.service_ids:
            return ActorKind.PROVIDER
        if booking.user_id == self.id:
            return ActorKind.RENTER
        return None


def build_caller(db: Session, user: User) -> Caller:
    provider = db.query(ServiceProvider).filter(ServiceProvider.user_id == user.id).first()
    service_ids: FrozenSet[int] = frozenset()
    if provider:
        rows = db.query(Service.id).filter(Service.provider_id == provider.id).all()
        service_ids = frozenset(r[0] for r in rows)
    return Caller(
        id=user.id,
        email=user.email,
        name=user.name,
        role=user.role,
        provider_id=provider.id if provider else None,
        service_ids=service_ids,
    )


def get_caller(db: Session = Depends(get_db), user: User = Depends(get_current_user)) -> Caller:
    return build_caller(db, user)


def get_optional_caller(
    db: Session = Depends(get_db), user: Optional[User] = Depends(get_optional_user)
) -> Optional[Caller]:
    if user is None:
        return None
    return build_caller(db, user)


def require_provider_profile(caller: Caller, message: str = "Provider profile not found") -> int:
    if caller.provider_id is None:
        raise HTTPException(status_code=400, detail=message)
    return caller.provider_id
