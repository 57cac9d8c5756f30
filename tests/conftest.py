import itertools
import os
from datetime import date, datetime, timedelta

os.environ.setdefault("AUTH_JWT_SECRET", "test-secret")
os.environ["DATABASE_URL"] = "sqlite://"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from jose import jwt
from sqlmodel import SQLModel, Session, create_engine

from barber_booking import models  # noqa: F401
from barber_booking.core import parse_hhmm
from barber_booking.config import AUTH_JWT_ALGORITHM, AUTH_JWT_AUDIENCE, AUTH_JWT_SECRET
from barber_booking.db import get_session
from barber_booking.main import app
from barber_booking.models import Appointment, Shop, ShopEmployee, User

# a Monday; the day before is a Sunday
MONDAY = date(2024, 6, 10)
SUNDAY = date(2024, 6, 9)


def create_access_token(claims: dict, expires_minutes: int = 60) -> str:
    """Sign a token the way the identity provider does."""
    to_encode = dict(claims)
    to_encode["exp"] = datetime.utcnow() + timedelta(minutes=expires_minutes)
    if AUTH_JWT_AUDIENCE and "aud" not in to_encode:
        to_encode["aud"] = AUTH_JWT_AUDIENCE
    return jwt.encode(to_encode, AUTH_JWT_SECRET, algorithm=AUTH_JWT_ALGORITHM)


@pytest.fixture(name="engine")
def engine_fixture():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture(name="session")
def session_fixture(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture(name="client")
def client_fixture(session):
    def get_session_override():
        return session

    app.dependency_overrides[get_session] = get_session_override
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(session):
    counter = itertools.count(1)

    def _make(role="CUSTOMER", **fields):
        n = next(counter)
        user = User(
            auth_id=f"auth-{role.lower()}-{n}",
            email=fields.pop("email", f"{role.lower()}{n}@example.com"),
            role=role,
            **fields,
        )
        session.add(user)
        session.commit()
        session.refresh(user)
        return user

    return _make


@pytest.fixture
def auth_headers():
    def _headers(user):
        token = create_access_token({"sub": user.auth_id, "email": user.email})
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
def barber(make_user):
    return make_user("BARBER", first_name="Mehmet", last_name="Usta")


@pytest.fixture
def customer(make_user):
    return make_user("CUSTOMER", first_name="Ayse")


@pytest.fixture
def admin(make_user):
    return make_user("ADMIN")


@pytest.fixture
def shop(session, barber):
    shop = Shop(name="Fade Factory", owner_id=barber.id)
    session.add(shop)
    session.commit()
    session.refresh(shop)
    session.add(ShopEmployee(shop_id=shop.id, user_id=barber.id))
    session.commit()
    return shop


@pytest.fixture
def employee(session, shop, make_user):
    user = make_user("EMPLOYEE", first_name="Can")
    session.add(ShopEmployee(shop_id=shop.id, user_id=user.id))
    session.commit()
    return user


@pytest.fixture
def make_appointment(session):
    def _make(shop, customer, employee, day, start, end, notes=None):
        appt = Appointment(
            shop_id=shop.id,
            user_id=customer.id,
            employee_id=employee.id if employee is not None else None,
            date=day,
            time=parse_hhmm(start),
            end_time=parse_hhmm(end),
            notes=notes,
        )
        session.add(appt)
        session.commit()
        session.refresh(appt)
        return appt

    return _make
