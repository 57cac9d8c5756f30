# barber_booking/models.py

from typing import Any, Optional, List
from datetime import datetime, date as Date, time as Time

from sqlalchemy import Index, UniqueConstraint, text
from sqlalchemy.types import JSON
from sqlmodel import SQLModel, Field, Column


class User(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    auth_id: str = Field(index=True, unique=True)  # subject claim from the identity provider
    email: str = Field(index=True, unique=True)
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    role: str = "CUSTOMER"  # CUSTOMER, EMPLOYEE, BARBER or ADMIN
    created_at: datetime = Field(default_factory=datetime.utcnow)


class Shop(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    owner_id: Optional[int] = Field(default=None, foreign_key="user.id", index=True)
    address: Optional[str] = None
    phone: Optional[str] = None

    # working hours; None falls back to the configured defaults
    opening_time: Optional[Time] = None
    closing_time: Optional[Time] = None
    slot_minutes: Optional[int] = None
    closed_weekdays: Optional[List[int]] = Field(default=None, sa_column=Column(JSON))  # 0=Mon ... 6=Sun
    daily_capacity: Optional[int] = None


class ShopEmployee(SQLModel, table=True):
    shop_id: int = Field(foreign_key="shop.id", primary_key=True)
    user_id: int = Field(foreign_key="user.id", primary_key=True)


class Service(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    shop_id: int = Field(foreign_key="shop.id", index=True)
    name: str
    description: Optional[str] = None
    price: Optional[float] = None
    duration: Optional[int] = None  # minutes


class AvailableTime(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    shop_id: int = Field(foreign_key="shop.id", index=True)
    date: Date = Field(index=True)
    is_available: bool = True
    time_slots: Optional[Any] = Field(default=None, sa_column=Column(JSON))
    reason: Optional[str] = None  # e.g. holiday name


class AvailableTimeStaff(SQLModel, table=True):
    # a record with no staff rows applies to the whole shop
    available_time_id: int = Field(foreign_key="availabletime.id", primary_key=True)
    user_id: int = Field(foreign_key="user.id", primary_key=True)


class Review(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    shop_id: int = Field(foreign_key="shop.id", index=True)
    user_id: Optional[int] = Field(default=None, foreign_key="user.id")
    rating: int
    comment: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)


class Appointment(SQLModel, table=True):
    __table_args__ = (
        UniqueConstraint("shop_id", "employee_id", "date", "time", name="uq_employee_slot"),
        # NULLs are distinct in a unique constraint, so shop-level bookings get their own index
        Index(
            "uq_unassigned_slot",
            "shop_id",
            "date",
            "time",
            unique=True,
            sqlite_where=text("employee_id IS NULL"),
            postgresql_where=text("employee_id IS NULL"),
        ),
    )

    id: Optional[int] = Field(default=None, primary_key=True)

    shop_id: int = Field(foreign_key="shop.id", index=True)
    user_id: int = Field(foreign_key="user.id", index=True)  # customer
    employee_id: Optional[int] = Field(default=None, foreign_key="user.id", index=True)
    date: Date = Field(index=True)
    time: Time
    end_time: Time
    notes: Optional[str] = None
    status: str = "booked"
    review_id: Optional[int] = Field(default=None, foreign_key="review.id")
    created_at: datetime = Field(default_factory=datetime.utcnow)
