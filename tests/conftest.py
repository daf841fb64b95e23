import os
import tempfile
from datetime import datetime

# Configure before the app reads its settings
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="housiee-uploads-"))
os.environ.setdefault("DB_LOG_SLOW_QUERIES", "false")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.security import create_access_token, hash_password
from app.db.base import Base, build_engine, get_db
from app.db.models.booking import Booking
from app.db.models.enums import BookingStatus, ServiceCategory, UserRole
from app.db.models.provider import ServiceProvider
from app.db.models.service import Service
from app.db.models.service_details import AccommodationDetails, FoodDetails, LaundryDetails, TravelDetails
from app.db.models.user import User
from app.main import app

DETAILS_ROWS = {
    ServiceCategory.ACCOMMODATION.value: AccommodationDetails,
    ServiceCategory.FOOD.value: FoodDetails,
    ServiceCategory.TRAVEL.value: TravelDetails,
    ServiceCategory.LAUNDRY.value: LaundryDetails,
}

TEST_PASSWORD = "password123"


@pytest.fixture()
def engine():
    test_engine = build_engine("sqlite://", poolclass=StaticPool)
    Base.metadata.create_all(bind=test_engine)
    yield test_engine
    Base.metadata.drop_all(bind=test_engine)
    test_engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture()
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture()
def auth_headers():
    def _headers(user: User) -> dict:
        return {"Authorization": f"Bearer {create_access_token({'sub': str(user.id)})}"}

    return _headers


@pytest.fixture()
def make_user(db):
    counter = {"n": 0}

    def _make(role: str = UserRole.USER.value, email: str = None, name: str = None) -> User:
        counter["n"] += 1
        user = User(
            email=email or f"user{counter['n']}@example.com",
            name=name or f"User {counter['n']}",
            password_hash=hash_password(TEST_PASSWORD),
            role=role,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture()
def make_provider(db, make_user):
    def _make(user: User = None, business_name: str = "Acme Stays", is_verified: bool = False) -> ServiceProvider:
        if user is None:
            user = make_user(role=UserRole.SERVICE_PROVIDER.value)
        provider = ServiceProvider(user_id=user.id, business_name=business_name, city="Pune", is_verified=is_verified)
        db.add(provider)
        db.commit()
        db.refresh(provider)
        return provider

    return _make


@pytest.fixture()
def make_service(db):
    def _make(
        provider: ServiceProvider,
        category: str = ServiceCategory.ACCOMMODATION.value,
        title: str = "Sea view flat",
        description: str = "Two rooms near the beach",
        base_price: float = 100.0,
        capacity: int = 1,
        is_active: bool = True,
        booked_count: int = 0,
    ) -> Service:
        service = Service(
            provider_id=provider.id,
            category=category,
            title=title,
            description=description,
            base_price=base_price,
            capacity=capacity,
            booked_count=booked_count,
            images=[],
            is_active=is_active,
        )
        db.add(service)
        db.flush()
        db.add(DETAILS_ROWS[category](service_id=service.id))
        db.commit()
        db.refresh(service)
        return service

    return _make


@pytest.fixture()
def make_booking(db):
    def _make(
        user: User,
        service: Service,
        status: str = BookingStatus.PENDING.value,
        quantity: int = 1,
        total_price: float = None,
    ) -> Booking:
        booking = Booking(
            user_id=user.id,
            service_id=service.id,
            start_date=datetime(2024, 1, 1),
            quantity=quantity,
            total_price=service.base_price * quantity if total_price is None else total_price,
            status=status,
        )
        if status != BookingStatus.CANCELLED.value:
            service.booked_count = (service.booked_count or 0) + quantity
        db.add(booking)
        db.commit()
        db.refresh(booking)
        return booking

    return _make
