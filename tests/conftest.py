import os

# Must be set before anything imports app.config
os.environ["DATABASE_URL_OVERRIDE"] = "sqlite+aiosqlite://"
os.environ["ENVIRONMENT"] = "test"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["STRIPE_SECRET_KEY"] = ""
os.environ["STRIPE_WEBHOOK_SECRET"] = "whsec_test"
os.environ["SENDGRID_API_KEY"] = ""

from datetime import date, datetime, time, timedelta
from decimal import Decimal

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import app.models  # noqa: F401
from app.core.security import create_access_token, get_password_hash
from app.database import Base, get_db
from app.main import app
from app.models.booking import Booking
from app.models.user import ChefProfile, User

PASSWORD = "Secret123!"
PASSWORD_HASH = get_password_hash(PASSWORD)


@pytest.fixture()
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture()
def session_maker(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest.fixture()
async def db_session(session_maker):
    async with session_maker() as session:
        yield session


@pytest.fixture()
async def client(session_maker):
    async def override_get_db():
        async with session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


def auth_headers(user: User) -> dict[str, str]:
    token = create_access_token({"sub": str(user.id), "email": user.email, "role": user.role})
    return {"Authorization": f"Bearer {token}"}


def future_date(days: int = 30) -> date:
    return date.today() + timedelta(days=days)


@pytest.fixture()
def make_customer(db_session):
    counter = {"n": 0}

    async def _make(**overrides) -> User:
        counter["n"] += 1
        user = User(
            email=overrides.pop("email", f"customer{counter['n']}@example.com"),
            password_hash=PASSWORD_HASH,
            role="customer",
            first_name="Thandi",
            last_name="Nkosi",
            is_verified=True,
            **overrides,
        )
        db_session.add(user)
        await db_session.commit()
        return user

    return _make


@pytest.fixture()
def make_chef(db_session):
    counter = {"n": 0}

    async def _make(
        base_rate: Decimal = Decimal("500.00"),
        holiday_rate_multiplier: Decimal = Decimal("1.50"),
        is_verified: bool = True,
        is_active: bool = True,
        **profile_fields,
    ) -> User:
        counter["n"] += 1
        user = User(
            email=f"chef{counter['n']}@example.com",
            password_hash=PASSWORD_HASH,
            role="chef",
            first_name="Sipho",
            last_name="Dlamini",
            city=profile_fields.pop("city", "Cape Town"),
            is_verified=is_verified,
            is_active=is_active,
        )
        db_session.add(user)
        await db_session.flush()
        db_session.add(
            ChefProfile(
                user_id=user.id,
                bio="Seasonal South African fine dining cooked in your own kitchen.",
                base_rate=base_rate,
                holiday_rate_multiplier=holiday_rate_multiplier,
                regions_served=profile_fields.pop("regions_served", ["Cape Town"]),
                dietary_specialties=profile_fields.pop("dietary_specialties", ["Vegan"]),
                **profile_fields,
            )
        )
        await db_session.commit()
        return user

    return _make


@pytest.fixture()
def make_booking(db_session):
    async def _make(
        customer: User,
        chef: User,
        event_date: date | None = None,
        event_time: time = time(14, 0),
        status: str = "pending",
        party_size: int = 4,
    ) -> Booking:
        booking = Booking(
            customer_id=customer.id,
            chef_id=chef.id,
            event_date=event_date or future_date(),
            event_time=event_time,
            party_size=party_size,
            event_address="12 Long Street, Cape Town",
            rate_per_guest=Decimal("500.00"),
            subtotal=Decimal("2000.00"),
            service_fee=Decimal("100.00"),
            processing_fee=Decimal("60.00"),
            total_amount=Decimal("2160.00"),
            status=status,
        )
        db_session.add(booking)
        await db_session.commit()
        return booking

    return _make


@pytest.fixture()
def frozen_now():
    return datetime(2025, 5, 1, 9, 0)
